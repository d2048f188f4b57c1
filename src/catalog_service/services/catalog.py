"""Catalog reads and manual edits used by the HTTP API."""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from catalog_service.infrastructure.database.repository import ProductRepository
from catalog_service.infrastructure.redis import CacheService
from catalog_service.models import Product
from catalog_service.services.search import rank_products

logger = structlog.get_logger()

# Fields a manual edit may change
EDITABLE_FIELDS = ("title", "handle", "body_html", "vendor", "product_type", "tags")


def utcnow() -> datetime:
    """Current time as naive UTC, the form the store keeps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_external_id() -> int:
    """External id for manually added products: epoch milliseconds."""
    return time.time_ns() // 1_000_000


class CatalogService:
    """Product CRUD and search on top of the repository, with a cached listing."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: CacheService,
        cache_ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.clock = clock

    async def list_products(self) -> list[Product]:
        cached = await self.cache.get_products()
        if cached is not None:
            return cached
        products = await self.repository.find_all()
        await self.cache.set_products(products, ttl_seconds=self.cache_ttl_seconds)
        return products

    async def get_product(self, external_id: int) -> Product | None:
        return await self.repository.find_by_external_id(external_id)

    async def search_products(self, query: str) -> list[Product]:
        """Ranked search; a blank query lists every product."""
        if not query.strip():
            return await self.list_products()
        candidates = await self.repository.search(query)
        return rank_products(candidates, query)

    async def create_product(self, data: dict[str, Any]) -> Product:
        now = self.clock()
        fields = {name: data[name] for name in EDITABLE_FIELDS if name in data}
        external_id = data.get("external_id")
        product = Product(
            external_id=generate_external_id() if external_id is None else external_id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        saved = await self.repository.insert(product)
        await self.cache.invalidate_products()
        logger.info("Product created", external_id=saved.external_id, id=saved.id)
        return saved

    async def update_product(self, external_id: int, data: dict[str, Any]) -> Product | None:
        """Overlay edited fields onto the stored product; ``None`` if it does not exist."""
        existing = await self.repository.find_by_external_id(external_id)
        if existing is None:
            return None
        changes = {name: data[name] for name in EDITABLE_FIELDS if name in data}
        changes["updated_at"] = self.clock()
        saved = await self.repository.update(existing.model_copy(update=changes))
        await self.cache.invalidate_products()
        logger.info("Product updated", external_id=external_id, fields=sorted(changes))
        return saved

    async def delete_product(self, external_id: int) -> bool:
        deleted = await self.repository.delete_by_external_id(external_id)
        if deleted:
            await self.cache.invalidate_products()
            logger.info("Product deleted", external_id=external_id)
        return deleted
