"""
Health check endpoints.
"""

from fastapi import APIRouter, status
from datetime import datetime
from pydantic import BaseModel

from config.settings import settings
from backend.database import mongodb


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: str
    timestamp: datetime
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health plus database and integration status."""
    mongodb_connected: bool
    youtube_configured: bool
    groq_keys_configured: int
    smtp_configured: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check"
)
async def health_check():
    return HealthResponse(
        status="ok",
        service=settings.app_name,
        timestamp=datetime.utcnow(),
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check with database and integration status"
)
async def detailed_health_check():
    """Reports ``degraded`` when MongoDB does not answer a ping."""
    mongodb_connected = await mongodb.ping()

    return DetailedHealthResponse(
        status="ok" if mongodb_connected else "degraded",
        service=settings.app_name,
        timestamp=datetime.utcnow(),
        version=settings.app_version,
        environment=settings.environment,
        mongodb_connected=mongodb_connected,
        youtube_configured=bool(settings.youtube_api_key),
        groq_keys_configured=len(settings.groq_api_keys),
        smtp_configured=settings.smtp_configured,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping endpoint"
)
async def ping():
    return {"ping": "pong"}
