"""Product synchronization service.

Runs one sync pass: fetch the upstream feed, parse it, and upsert every
product with its variants, images and options into the catalog store.

A pass moves through FETCHING -> PARSING -> UPSERTING -> DONE. Only a failed
fetch or an unusable document ends it early. Everything after that runs one
item at a time, in feed order, under ``attempt``, so a bad product or child
is logged and reported while the rest of the batch carries on.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, TypeVar

import structlog
from celery.exceptions import SoftTimeLimitExceeded

from catalog_service.exceptions import CatalogSyncError
from catalog_service.infrastructure.database.repository import ProductRepository
from catalog_service.infrastructure.feed_client import FeedClient
from catalog_service.models import Product
from catalog_service.services.feed_parser import (
    FeedProduct,
    entry_key,
    extract_product_entries,
    parse_image,
    parse_option,
    parse_product,
    parse_variant,
)
from catalog_service.services.upsert_rules import (
    build_image,
    build_option,
    build_variant,
    reconcile_product,
)
from shared.constants import MAX_PRODUCTS_PER_PASS, PRODUCT_SYNC_ID

logger = structlog.get_logger()

T = TypeVar("T")


class SyncPhase(str, Enum):
    FETCHING = "fetching"
    PARSING = "parsing"
    UPSERTING = "upserting"
    DONE = "done"


class SyncOutcome(str, Enum):
    COMPLETED = "completed"
    EMPTY = "empty"  # empty body or no product entries
    FAILED = "failed"  # transport or parse failure, nothing written


@dataclass
class ItemResult:
    """Outcome of syncing one product or child record."""

    kind: str
    key: str
    ok: bool
    reason: str | None = None


@dataclass
class SyncReport:
    """Aggregate outcome of one pass."""

    status: SyncOutcome = SyncOutcome.COMPLETED
    phase: SyncPhase = SyncPhase.FETCHING
    products_seen: int = 0
    created: int = 0
    updated: int = 0
    children_synced: int = 0
    failures: list[ItemResult] = field(default_factory=list)
    error: str | None = None

    def record(self, result: ItemResult) -> None:
        if not result.ok:
            self.failures.append(result)
        elif result.kind != "product":
            self.children_synced += 1

    @property
    def products_failed(self) -> int:
        return sum(1 for f in self.failures if f.kind == "product")

    @property
    def children_failed(self) -> int:
        return sum(1 for f in self.failures if f.kind != "product")

    def summary(self, include_failures: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "products_seen": self.products_seen,
            "created": self.created,
            "updated": self.updated,
            "products_failed": self.products_failed,
            "children_synced": self.children_synced,
            "children_failed": self.children_failed,
            "error": self.error,
        }
        if include_failures:
            data["failures"] = [
                {"kind": f.kind, "key": f.key, "reason": f.reason} for f in self.failures
            ]
        return data


async def attempt(
    kind: str, key: str, operation: Callable[[], Awaitable[T]]
) -> tuple[ItemResult, T | None]:
    """
    Run one item's work, turning any exception into a failed ``ItemResult``.

    The worker's soft time limit is not an item failure; it propagates so the
    whole pass stops.
    """
    try:
        value = await operation()
    except SoftTimeLimitExceeded:
        raise
    except Exception as e:
        logger.error("Failed to sync item", kind=kind, key=key, error=str(e))
        return ItemResult(kind=kind, key=key, ok=False, reason=f"{type(e).__name__}: {e}"), None
    return ItemResult(kind=kind, key=key, ok=True), value


class ProductSyncService:
    """Service for synchronizing the upstream product feed into the catalog."""

    def __init__(
        self,
        repository: ProductRepository,
        feed_client: FeedClient,
        max_products: int = MAX_PRODUCTS_PER_PASS,
    ):
        self.repository = repository
        self.feed_client = feed_client
        self.max_products = max_products

    async def sync_products(self) -> SyncReport:
        """
        Run one full sync pass.

        Pass-level failures are reported through the returned report's
        ``status`` and ``error``, item failures through ``failures``. Only the
        worker's soft time limit is raised, after the pass is recorded as failed.
        """
        report = SyncReport()
        logger.info("Starting product sync", url=self.feed_client.url)

        try:
            body = await self.feed_client.fetch()
            if not body.strip():
                logger.warning("Empty response from feed", url=self.feed_client.url)
                return await self._finish(report, SyncOutcome.EMPTY)

            report.phase = SyncPhase.PARSING
            entries = extract_product_entries(body, limit=self.max_products)
        except CatalogSyncError as e:
            logger.error("Failed to fetch or parse products feed", phase=report.phase.value, error=str(e))
            report.error = str(e)
            return await self._finish(report, SyncOutcome.FAILED)

        if not entries:
            return await self._finish(report, SyncOutcome.EMPTY)

        report.phase = SyncPhase.UPSERTING
        try:
            for entry in entries:
                report.products_seen += 1
                result, _ = await attempt(
                    "product", entry_key(entry), partial(self._sync_product, entry, report)
                )
                report.record(result)
        except SoftTimeLimitExceeded:
            logger.error("Sync pass hit the task time limit", products_seen=report.products_seen)
            report.error = "Task time limit exceeded"
            await self._finish(report, SyncOutcome.FAILED)
            raise

        return await self._finish(report, SyncOutcome.COMPLETED)

    async def _sync_product(self, entry: Any, report: SyncReport) -> Product:
        incoming = parse_product(entry)
        existing = await self.repository.find_by_external_id(incoming.external_id)
        product = reconcile_product(existing, incoming)

        if existing is None:
            saved = await self.repository.insert(product)
            report.created += 1
        else:
            saved = await self.repository.update(product)
            report.updated += 1

        # Children need the surrogate id, known only once the product row is written
        with structlog.contextvars.bound_contextvars(external_id=saved.external_id):
            await self._sync_children(saved.id, incoming, report)
        return saved

    async def _sync_children(self, product_id: int, incoming: FeedProduct, report: SyncReport) -> None:
        cascade = (
            ("variant", incoming.variants, "id", parse_variant, build_variant, self.repository.upsert_variant),
            ("image", incoming.images, "id", parse_image, build_image, self.repository.upsert_image),
            ("option", incoming.options, "name", parse_option, build_option, self.repository.upsert_option),
        )
        for kind, entries, key_field, parse, build, upsert in cascade:
            for entry in entries:
                operation = partial(self._upsert_child, product_id, entry, parse, build, upsert)
                result, _ = await attempt(kind, entry_key(entry, key_field), operation)
                report.record(result)

    @staticmethod
    async def _upsert_child(
        product_id: int,
        entry: Any,
        parse: Callable[[Any], Any],
        build: Callable[[int, Any], Any],
        upsert: Callable[[Any], Awaitable[Any]],
    ) -> Any:
        return await upsert(build(product_id, parse(entry)))

    async def _finish(self, report: SyncReport, status: SyncOutcome) -> SyncReport:
        report.status = status
        report.phase = SyncPhase.DONE
        try:
            await self.repository.record_sync_status(
                PRODUCT_SYNC_ID,
                status.value,
                records_synced=report.created + report.updated,
                records_failed=len(report.failures),
                error_message=report.error,
            )
        except Exception as e:
            logger.error("Failed to record sync status", error=str(e))

        logger.info("Product sync finished", **report.summary(include_failures=False))
        return report
