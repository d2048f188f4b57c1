"""Unit tests for the PostgreSQL repository statements."""

from datetime import datetime
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy.dialects import postgresql

from catalog_service.infrastructure.database.models import ProductVariantModel
from catalog_service.infrastructure.database.repository import SqlProductRepository
from catalog_service.models import Product, ProductImage, ProductOption, ProductVariant

VARIANT_COLUMNS = {
    "title",
    "option1",
    "option2",
    "option3",
    "sku",
    "price",
    "available",
    "created_at",
    "updated_at",
}
IMAGE_COLUMNS = {"src", "width", "height", "position", "created_at", "updated_at"}


class FakeResult:
    def __init__(self, scalar: Any, rowcount: int) -> None:
        self.scalar = scalar
        self.rowcount = rowcount

    def scalar_one(self) -> Any:
        return self.scalar

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> list[Any]:
        return []


class RecordingSession:
    """AsyncSession stand-in that keeps every executed statement."""

    def __init__(self, scalar: Any = 11, rowcount: int = 1, error: Exception | None = None) -> None:
        self.statements: list[Any] = []
        self.scalar = scalar
        self.rowcount = rowcount
        self.error = error
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, statement: Any) -> FakeResult:
        self.statements.append(statement)
        if self.error is not None:
            raise self.error
        return FakeResult(self.scalar, self.rowcount)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


def _sql(statement: Any) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def _conflict_set_columns(sql: str) -> set[str]:
    """Columns assigned by an ``ON CONFLICT ... DO UPDATE SET`` clause."""
    clause = sql.split("DO UPDATE SET ", 1)[1].split(" RETURNING", 1)[0]
    return {part.split(" = ", 1)[0].strip().strip('"') for part in clause.split(", ")}


def _update_set_columns(sql: str) -> set[str]:
    clause = sql.split(" SET ", 1)[1].split(" WHERE ", 1)[0]
    return {part.split("=", 1)[0].strip().strip('"') for part in clause.split(", ")}


@pytest.fixture
def session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture
def repo(session: RecordingSession) -> SqlProductRepository:
    return SqlProductRepository(session)


class TestChildUpserts:
    @pytest.mark.asyncio
    async def test_variant_upsert_keeps_keys(self, repo: SqlProductRepository, session: RecordingSession) -> None:
        variant = ProductVariant(external_id=2001, product_id=7, title="S", price=Decimal("19.99"))

        saved = await repo.upsert_variant(variant)

        sql = _sql(session.statements[0])
        assert "INSERT INTO catalog.product_variants" in sql
        assert "ON CONFLICT (external_id) DO UPDATE SET" in sql
        assert _conflict_set_columns(sql) == VARIANT_COLUMNS
        assert "RETURNING catalog.product_variants.id" in sql
        assert saved.id == 11
        assert session.commits == 1

    @pytest.mark.asyncio
    async def test_image_upsert_keeps_keys(self, repo: SqlProductRepository, session: RecordingSession) -> None:
        await repo.upsert_image(ProductImage(external_id=3001, product_id=7, src="a.jpg", position=1))

        sql = _sql(session.statements[0])
        assert "INSERT INTO catalog.product_images" in sql
        assert "ON CONFLICT (external_id) DO UPDATE SET" in sql
        assert _conflict_set_columns(sql) == IMAGE_COLUMNS

    @pytest.mark.asyncio
    async def test_option_upsert_uses_named_constraint(
        self, repo: SqlProductRepository, session: RecordingSession
    ) -> None:
        await repo.upsert_option(ProductOption(product_id=7, name="Size", position=1, values="S,M,L"))

        sql = _sql(session.statements[0])
        assert "ON CONFLICT ON CONSTRAINT uq_product_options_product_name DO UPDATE SET" in sql
        assert _conflict_set_columns(sql) == {"position", "values"}

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back(self) -> None:
        session = RecordingSession(error=RuntimeError("constraint violated"))
        repo = SqlProductRepository(session)

        with pytest.raises(RuntimeError):
            await repo.upsert_variant(ProductVariant(external_id=1, product_id=7))

        assert session.rollbacks == 1
        assert session.commits == 0


class TestProductWrites:
    @pytest.mark.asyncio
    async def test_update_never_touches_external_id(
        self, repo: SqlProductRepository, session: RecordingSession
    ) -> None:
        product = Product(id=7, external_id=1001, title="New", tags=["a"])

        saved = await repo.update(product)

        sql = _sql(session.statements[0])
        assert sql.startswith("UPDATE catalog.products SET")
        assert "WHERE catalog.products.external_id = " in sql
        assert _update_set_columns(sql) == {
            "title",
            "handle",
            "body_html",
            "vendor",
            "product_type",
            "published_at",
            "created_at",
            "updated_at",
            "tags",
        }
        assert saved.id == 11
        assert saved.external_id == 1001

    @pytest.mark.asyncio
    async def test_delete_reports_missing_row(self) -> None:
        repo = SqlProductRepository(RecordingSession(rowcount=0))
        assert await repo.delete_by_external_id(404) is False

    @pytest.mark.asyncio
    async def test_delete_existing_row(self, repo: SqlProductRepository, session: RecordingSession) -> None:
        assert await repo.delete_by_external_id(1001) is True
        assert _sql(session.statements[0]).startswith("DELETE FROM catalog.products")


class TestSearchStatement:
    @pytest.mark.asyncio
    async def test_matches_tags_as_text(self, repo: SqlProductRepository, session: RecordingSession) -> None:
        assert await repo.search("wool") == []

        sql = _sql(session.statements[0])
        assert "array_to_string(catalog.products.tags" in sql
        for column in ("title", "vendor", "product_type"):
            assert f"catalog.products.{column}" in sql


class TestSyncStatus:
    @pytest.mark.asyncio
    async def test_status_row_is_upserted_by_id(
        self, repo: SqlProductRepository, session: RecordingSession
    ) -> None:
        await repo.record_sync_status("products", "completed", records_synced=9, records_failed=1)

        sql = _sql(session.statements[0])
        assert "INSERT INTO catalog.sync_status" in sql
        assert "ON CONFLICT (id) DO UPDATE SET" in sql
        assert _conflict_set_columns(sql) == {
            "status",
            "records_synced",
            "records_failed",
            "last_sync_at",
            "error_message",
            "updated_at",
        }
        assert session.commits == 1

    @pytest.mark.asyncio
    async def test_ping(self, repo: SqlProductRepository) -> None:
        assert await repo.ping() is True

    @pytest.mark.asyncio
    async def test_ping_failure_is_false(self) -> None:
        repo = SqlProductRepository(RecordingSession(error=ConnectionError("down")))
        assert await repo.ping() is False


class TestPriceColumn:
    def test_price_is_not_rounded_by_the_column(self) -> None:
        price_type = ProductVariantModel.__table__.c.price.type
        assert price_type.precision is None
        assert price_type.scale is None
        assert price_type.asdecimal is True

    def test_variant_price_keeps_feed_precision(self) -> None:
        variant = ProductVariant(
            external_id=1, product_id=7, price=Decimal("19.999"), created_at=datetime(2023, 12, 1)
        )
        assert variant.model_dump(exclude={"id"})["price"] == Decimal("19.999")
