"""Business logic services."""

from catalog_service.services.catalog import CatalogService
from catalog_service.services.product_sync import ProductSyncService, SyncReport

__all__ = [
    "CatalogService",
    "ProductSyncService",
    "SyncReport",
]
