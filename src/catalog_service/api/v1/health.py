"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from catalog_service import __version__
from catalog_service.api.deps import get_cache, get_product_repository
from catalog_service.config import get_settings
from catalog_service.infrastructure.database.repository import ProductRepository
from catalog_service.infrastructure.redis import CacheService

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str
    dependencies: dict[str, Any]


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns the service status and version information.
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        dependencies={
            "postgres": "configured",
            "redis": "configured",
            "feed": settings.feed_products_url,
        },
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    repository: ProductRepository = Depends(get_product_repository),
    cache: CacheService = Depends(get_cache),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    PostgreSQL must answer for the service to be ready. Redis is reported
    but optional, since the cache degrades to no-ops without it.
    """
    checks = {
        "postgres": await repository.ping(),
        "redis": await cache.health_check(),
    }

    return ReadinessResponse(
        ready=checks["postgres"],
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check endpoint; returns 200 while the process is running."""
    return {"status": "alive"}
