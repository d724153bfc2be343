"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    Populated from the auth provider's session token claims and made
    available to route handlers via dependency injection. The id is the
    auth provider's user id, which is also the primary key of our users table.
    """

    id: str = Field(..., description="User ID from the auth provider")
    email: Optional[str] = Field(None, description="User's primary email address")
    name: Optional[str] = Field(None, description="Display name, if the token carries one")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    last_sign_in: Optional[datetime] = Field(None, description="Token issue time")
    role: str = Field(default="user", description="User role")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }
