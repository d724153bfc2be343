"""
Emote Market API package.

Provides the FastAPI application for the emote marketplace service.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
