"""Product synchronization tasks."""

import asyncio

import structlog
from celery import shared_task

from catalog_service.config import get_settings
from catalog_service.infrastructure.database.connection import worker_session
from catalog_service.infrastructure.database.repository import SqlProductRepository
from catalog_service.infrastructure.feed_client import FeedClient
from catalog_service.infrastructure.redis import CacheService, close_redis, get_redis_client
from catalog_service.services.product_sync import ProductSyncService, SyncReport

logger = structlog.get_logger()


async def run_sync_pass() -> SyncReport:
    """Run one pass against the configured feed and database, then drop the cached listing."""
    settings = get_settings()

    async with worker_session() as session, FeedClient(
        settings.feed_products_url, timeout=settings.feed_timeout_seconds
    ) as feed_client:
        service = ProductSyncService(
            SqlProductRepository(session),
            feed_client,
            max_products=settings.feed_max_products,
        )
        report = await service.sync_products()

    if report.created or report.updated:
        try:
            await CacheService(await get_redis_client()).invalidate_products()
        finally:
            await close_redis()

    return report


@shared_task(bind=True, ignore_result=False)
def sync_products_from_feed(self) -> dict:
    """
    Synchronize products from the external feed.

    This task:
    1. Fetches the products feed
    2. Upserts up to the configured number of products in feed order
    3. Upserts each product's variants, images and options

    Failed items are reported in the result, not retried; the next
    scheduled pass reprocesses the whole feed.

    Returns:
        dict: Summary of sync operation
    """
    logger.info("Starting product sync from feed", task_id=self.request.id)
    report = asyncio.run(run_sync_pass())
    return report.summary()
