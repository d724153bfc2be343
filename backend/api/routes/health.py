"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    payments: str
    storage: str


def _configured(*values: str) -> str:
    return "configured" if all(values) else "not_configured"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports which upstream services have credentials. Without a database
    the API runs on in-memory storage.
    """
    settings = get_settings()
    database = "supabase" if settings.supabase_url else "in_memory"
    payments = _configured(settings.stripe_secret_key, settings.stripe_webhook_secret)
    storage = _configured(settings.s3_bucket)
    status = "ready" if payments == "configured" and storage == "configured" else "degraded"
    return ReadinessResponse(
        status=status,
        database=database,
        payments=payments,
        storage=storage,
    )
