"""FastAPI dependencies shared by the v1 routers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.config import Settings, get_settings
from catalog_service.infrastructure.database.connection import get_session
from catalog_service.infrastructure.database.repository import (
    ProductRepository,
    SqlProductRepository,
)
from catalog_service.infrastructure.redis import CacheService, get_redis_client
from catalog_service.services.catalog import CatalogService


async def get_product_repository(
    session: AsyncSession = Depends(get_session),
) -> ProductRepository:
    return SqlProductRepository(session)


async def get_cache() -> CacheService:
    redis_client = await get_redis_client()
    return CacheService(redis_client)


async def get_catalog_service(
    repository: ProductRepository = Depends(get_product_repository),
    cache: CacheService = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(
        repository, cache, cache_ttl_seconds=settings.product_cache_ttl_seconds
    )
