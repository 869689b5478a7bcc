"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from site_accounts.config import settings
from site_accounts.core.redis_client import check_redis_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    version: str
    environment: str
    account_backend: str
    storage: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Report the configured backends and whether the storage is reachable.

    Only the Redis substrate has a remote dependency to probe.

    Returns:
        Detailed health status
    """
    storage_status = settings.storage_backend
    overall = "healthy"

    if settings.storage_backend == "redis":
        if await check_redis_connection():
            storage_status = "redis: healthy"
        else:
            storage_status = "redis: unhealthy"
            overall = "degraded"

    return DetailedHealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        account_backend=settings.account_backend,
        storage=storage_status,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
