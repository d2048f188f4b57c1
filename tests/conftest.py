"""Pytest configuration and fixtures."""

from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from catalog_service.api.deps import get_cache, get_product_repository
from catalog_service.config import Settings, get_settings
from catalog_service.infrastructure.redis import CacheService
from catalog_service.main import create_app
from catalog_service.models import Product, ProductImage, ProductOption, ProductVariant
from catalog_service.services.search import matches_query


class InMemoryProductRepository:
    """Dict-backed ``ProductRepository`` with the same upsert semantics as the SQL one."""

    def __init__(self) -> None:
        self.next_id = 1
        self.products: dict[int, Product] = {}
        self.variants: dict[int, ProductVariant] = {}
        self.images: dict[int, ProductImage] = {}
        self.options: dict[tuple[int, str], ProductOption] = {}
        self.sync_statuses: dict[str, dict[str, Any]] = {}
        self.healthy = True
        # Feed ids whose variant upsert raises, to exercise failure isolation
        self.failing_variants: set[int] = set()

    def _assign_id(self) -> int:
        assigned = self.next_id
        self.next_id += 1
        return assigned

    def _with_children(self, product: Product) -> Product:
        return product.model_copy(
            update={
                "variants": sorted(
                    (v for v in self.variants.values() if v.product_id == product.id),
                    key=lambda v: v.id,
                ),
                "images": sorted(
                    (i for i in self.images.values() if i.product_id == product.id),
                    key=lambda i: i.position or 0,
                ),
                "options": sorted(
                    (o for o in self.options.values() if o.product_id == product.id),
                    key=lambda o: o.position,
                ),
            }
        )

    async def find_by_external_id(self, external_id: int) -> Product | None:
        product = self.products.get(external_id)
        return self._with_children(product) if product is not None else None

    async def find_all(self) -> list[Product]:
        return [
            self._with_children(p) for p in sorted(self.products.values(), key=lambda p: p.id)
        ]

    async def insert(self, product: Product) -> Product:
        if product.external_id in self.products:
            raise ValueError(f"duplicate external_id {product.external_id}")
        stored = product.model_copy(
            update={"id": self._assign_id(), "variants": [], "images": [], "options": []}
        )
        self.products[product.external_id] = stored
        return stored

    async def update(self, product: Product) -> Product:
        existing = self.products.get(product.external_id)
        if existing is None:
            raise LookupError(f"no product {product.external_id}")
        stored = product.model_copy(
            update={"id": existing.id, "variants": [], "images": [], "options": []}
        )
        self.products[product.external_id] = stored
        return stored

    async def delete_by_external_id(self, external_id: int) -> bool:
        product = self.products.pop(external_id, None)
        if product is None:
            return False
        self.variants = {k: v for k, v in self.variants.items() if v.product_id != product.id}
        self.images = {k: i for k, i in self.images.items() if i.product_id != product.id}
        self.options = {k: o for k, o in self.options.items() if o.product_id != product.id}
        return True

    async def search(self, query: str) -> list[Product]:
        return [p for p in await self.find_all() if matches_query(p, query)]

    async def upsert_variant(self, variant: ProductVariant) -> ProductVariant:
        if variant.external_id in self.failing_variants:
            raise RuntimeError(f"variant {variant.external_id} rejected")
        existing = self.variants.get(variant.external_id)
        if existing is None:
            stored = variant.model_copy(update={"id": self._assign_id()})
        else:
            stored = variant.model_copy(
                update={"id": existing.id, "product_id": existing.product_id}
            )
        self.variants[variant.external_id] = stored
        return stored

    async def upsert_image(self, image: ProductImage) -> ProductImage:
        existing = self.images.get(image.external_id)
        if existing is None:
            stored = image.model_copy(update={"id": self._assign_id()})
        else:
            stored = image.model_copy(update={"id": existing.id, "product_id": existing.product_id})
        self.images[image.external_id] = stored
        return stored

    async def upsert_option(self, option: ProductOption) -> ProductOption:
        key = (option.product_id, option.name)
        existing = self.options.get(key)
        stored = option.model_copy(
            update={"id": existing.id if existing is not None else self._assign_id()}
        )
        self.options[key] = stored
        return stored

    async def record_sync_status(
        self,
        sync_id: str,
        status: str,
        records_synced: int,
        records_failed: int,
        error_message: str | None = None,
    ) -> None:
        self.sync_statuses[sync_id] = {
            "id": sync_id,
            "status": status,
            "records_synced": records_synced,
            "records_failed": records_failed,
            "last_sync_at": datetime(2026, 1, 1, 12, 0),
            "error_message": error_message,
        }

    async def get_sync_status(self, sync_id: str) -> dict[str, Any] | None:
        return self.sync_statuses.get(sync_id)

    async def ping(self) -> bool:
        return self.healthy


@pytest.fixture
def test_settings() -> Settings:
    """Get test settings with overrides."""
    return Settings(
        app_env="test",
        debug=True,
        postgres_host="localhost",
        postgres_port=5432,
        postgres_user="test",
        postgres_password="test",
        postgres_db="test_db",
        redis_host="localhost",
        redis_port=6379,
        feed_products_url="https://feed.test/products.json",
        sync_on_startup=False,
    )


@pytest.fixture
def repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def app(test_settings: Settings, repository: InMemoryProductRepository) -> Any:
    """Create test application backed by the in-memory repository and no cache."""
    # Override settings
    def get_test_settings() -> Settings:
        return test_settings

    def get_test_repository() -> InMemoryProductRepository:
        return repository

    def get_test_cache() -> CacheService:
        return CacheService(None)

    app = create_app()
    app.dependency_overrides[get_settings] = get_test_settings
    app.dependency_overrides[get_product_repository] = get_test_repository
    app.dependency_overrides[get_cache] = get_test_cache
    return app


@pytest.fixture
def client(app: Any) -> TestClient:
    """Create synchronous test client."""
    return TestClient(app)


@pytest.fixture
def sample_feed_product() -> dict[str, Any]:
    """One product entry as the upstream feed sends it."""
    return {
        "id": 1001,
        "title": "Wool Sweater",
        "handle": "wool-sweater",
        "body_html": "<p>Warm</p>",
        "vendor": "Famme",
        "product_type": "Knitwear",
        "published_at": "2023-12-01T10:30:00+01:00",
        "created_at": "2023-11-30T09:00:00+01:00",
        "updated_at": "2023-12-02T08:15:00+01:00",
        "tags": ["wool", "winter"],
        "variants": [
            {"id": 2001, "title": "S", "option1": "S", "sku": "WS-S", "price": "19.99", "available": True},
            {"id": 2002, "title": "M", "option1": "M", "sku": "WS-M", "price": "n/a", "available": False},
        ],
        "images": [
            {"id": 3001, "src": "https://cdn.test/ws.jpg", "width": 800, "height": 600, "position": 1},
        ],
        "options": [
            {"name": "Size", "position": 1, "values": ["S", "M", "L"]},
        ],
    }
