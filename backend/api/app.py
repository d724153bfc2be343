"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    EmoteMarketError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from modules.billing.routes import router as billing_router, stripe_router
from modules.generation.exceptions import GeneratorNotConfiguredError, StorageError
from modules.generation.routes import router as generation_router
from modules.marketplace.routes import router as marketplace_router
from modules.users.exceptions import InsufficientCreditsError
from .models.errors import ErrorResponse
from .routes import health, users

logger = logging.getLogger(__name__)


def status_for(error: EmoteMarketError) -> int:
    """HTTP status implied by an exception's place in the hierarchy."""
    if isinstance(error, InsufficientCreditsError):
        return 402
    if isinstance(error, (ValidationError, ConflictError)):
        return 400
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (StorageError, GeneratorNotConfiguredError)):
        return 503
    if isinstance(error, ExternalServiceError):
        return 502
    return 500


async def emote_market_error_handler(request: Request, exc: EmoteMarketError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.details)
        detail = "Upstream service error" if status_code in (502, 503) else "Internal error"
    else:
        detail = exc.message
    body = ErrorResponse.from_error(exc, detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse.internal()
    return JSONResponse(status_code=500, content=body.model_dump())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info("Starting %s on %s:%s", settings.app_name, settings.host, settings.port)
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL not set, using in-memory storage")
    yield
    # Shutdown
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        description="AI-generated emote marketplace API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(EmoteMarketError, emote_market_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(marketplace_router, prefix="/api/marketplace", tags=["marketplace"])
    app.include_router(billing_router, prefix="/api/billing", tags=["billing"])
    app.include_router(stripe_router, prefix="/api/stripe", tags=["billing"])
    app.include_router(generation_router, prefix="/api/generate", tags=["generation"])

    return app


# Application instance for uvicorn
app = create_app()
