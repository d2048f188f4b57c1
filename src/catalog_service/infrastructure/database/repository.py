"""Product persistence.

``ProductRepository`` is the contract the sync pipeline and the catalog
service depend on. ``SqlProductRepository`` implements it on PostgreSQL.
Every write commits on its own: a product and its children are never grouped
in one transaction, so a failed child write rolls back only that row.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Protocol

import structlog
from sqlalchemy import Text, delete, func, or_, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalog_service.infrastructure.database.models import (
    ProductImageModel,
    ProductModel,
    ProductOptionModel,
    ProductVariantModel,
    SyncStatus,
)
from catalog_service.models import (
    PRODUCT_COLUMNS,
    Product,
    ProductImage,
    ProductOption,
    ProductVariant,
)

logger = structlog.get_logger()

_WITH_CHILDREN = (
    selectinload(ProductModel.variants),
    selectinload(ProductModel.images),
    selectinload(ProductModel.options),
)


class ProductRepository(Protocol):
    """Storage contract for products, their children and sync bookkeeping."""

    async def find_by_external_id(self, external_id: int) -> Product | None: ...

    async def find_all(self) -> list[Product]: ...

    async def insert(self, product: Product) -> Product: ...

    async def update(self, product: Product) -> Product: ...

    async def delete_by_external_id(self, external_id: int) -> bool: ...

    async def search(self, query: str) -> list[Product]: ...

    async def upsert_variant(self, variant: ProductVariant) -> ProductVariant: ...

    async def upsert_image(self, image: ProductImage) -> ProductImage: ...

    async def upsert_option(self, option: ProductOption) -> ProductOption: ...

    async def record_sync_status(
        self,
        sync_id: str,
        status: str,
        records_synced: int,
        records_failed: int,
        error_message: str | None = None,
    ) -> None: ...

    async def get_sync_status(self, sync_id: str) -> dict[str, Any] | None: ...

    async def ping(self) -> bool: ...


class SqlProductRepository:
    """PostgreSQL implementation of ``ProductRepository``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _atomic(self) -> AsyncGenerator[None, None]:
        """Commit one write, rolling it back if anything fails."""
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def find_by_external_id(self, external_id: int) -> Product | None:
        query = (
            select(ProductModel)
            .options(*_WITH_CHILDREN)
            .where(ProductModel.external_id == external_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.session.execute(query)).scalar_one_or_none()
        return Product.model_validate(row) if row is not None else None

    async def find_all(self) -> list[Product]:
        query = (
            select(ProductModel)
            .options(*_WITH_CHILDREN)
            .order_by(ProductModel.id)
            .execution_options(populate_existing=True)
        )
        rows = (await self.session.execute(query)).scalars().all()
        return [Product.model_validate(row) for row in rows]

    async def insert(self, product: Product) -> Product:
        row = ProductModel(**product.model_dump(include=PRODUCT_COLUMNS))
        async with self._atomic():
            self.session.add(row)
            await self.session.flush()
        logger.debug("Inserted product", external_id=product.external_id, id=row.id)
        return product.model_copy(update={"id": row.id})

    async def update(self, product: Product) -> Product:
        values = product.model_dump(include=PRODUCT_COLUMNS - {"external_id"})
        statement = (
            update(ProductModel)
            .where(ProductModel.external_id == product.external_id)
            .values(**values)
            .returning(ProductModel.id)
        )
        async with self._atomic():
            product_id = (await self.session.execute(statement)).scalar_one()
        logger.debug("Updated product", external_id=product.external_id, id=product_id)
        return product.model_copy(update={"id": product_id})

    async def delete_by_external_id(self, external_id: int) -> bool:
        statement = delete(ProductModel).where(ProductModel.external_id == external_id)
        async with self._atomic():
            result = await self.session.execute(statement)
        return result.rowcount > 0

    async def search(self, query: str) -> list[Product]:
        """Products whose title, vendor, type or any tag contains ``query``, case-insensitively."""
        tags_text = _tags_text(ProductModel.tags)
        statement = (
            select(ProductModel)
            .options(*_WITH_CHILDREN)
            .where(
                or_(
                    ProductModel.title.icontains(query, autoescape=True),
                    ProductModel.vendor.icontains(query, autoescape=True),
                    ProductModel.product_type.icontains(query, autoescape=True),
                    tags_text.icontains(query, autoescape=True),
                )
            )
        )
        rows = (await self.session.execute(statement)).scalars().all()
        return [Product.model_validate(row) for row in rows]

    # -------------------------------------------------------------------------
    # Children (insert-or-replace)
    # -------------------------------------------------------------------------

    async def upsert_variant(self, variant: ProductVariant) -> ProductVariant:
        values = variant.model_dump(exclude={"id"})
        statement = pg_insert(ProductVariantModel).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[ProductVariantModel.external_id],
            set_=_replace_columns(statement, values, keep={"external_id", "product_id"}),
        ).returning(ProductVariantModel.id)
        async with self._atomic():
            variant_id = (await self.session.execute(statement)).scalar_one()
        return variant.model_copy(update={"id": variant_id})

    async def upsert_image(self, image: ProductImage) -> ProductImage:
        values = image.model_dump(exclude={"id"})
        statement = pg_insert(ProductImageModel).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[ProductImageModel.external_id],
            set_=_replace_columns(statement, values, keep={"external_id", "product_id"}),
        ).returning(ProductImageModel.id)
        async with self._atomic():
            image_id = (await self.session.execute(statement)).scalar_one()
        return image.model_copy(update={"id": image_id})

    async def upsert_option(self, option: ProductOption) -> ProductOption:
        values = option.model_dump(exclude={"id"})
        statement = pg_insert(ProductOptionModel).values(**values)
        statement = statement.on_conflict_do_update(
            constraint="uq_product_options_product_name",
            set_=_replace_columns(statement, values, keep={"product_id", "name"}),
        ).returning(ProductOptionModel.id)
        async with self._atomic():
            option_id = (await self.session.execute(statement)).scalar_one()
        return option.model_copy(update={"id": option_id})

    # -------------------------------------------------------------------------
    # Sync bookkeeping
    # -------------------------------------------------------------------------

    async def record_sync_status(
        self,
        sync_id: str,
        status: str,
        records_synced: int,
        records_failed: int,
        error_message: str | None = None,
    ) -> None:
        now = datetime.now()  # Use naive datetime for DB
        values = {
            "id": sync_id,
            "status": status,
            "records_synced": records_synced,
            "records_failed": records_failed,
            "last_sync_at": now,
            "error_message": error_message,
            "updated_at": now,
        }
        statement = pg_insert(SyncStatus).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[SyncStatus.id],
            set_=_replace_columns(statement, values, keep={"id"}),
        )
        async with self._atomic():
            await self.session.execute(statement)

    async def get_sync_status(self, sync_id: str) -> dict[str, Any] | None:
        row = await self.session.get(SyncStatus, sync_id)
        if row is None:
            return None
        return {
            "id": row.id,
            "status": row.status,
            "records_synced": row.records_synced,
            "records_failed": row.records_failed,
            "last_sync_at": row.last_sync_at,
            "error_message": row.error_message,
        }

    async def ping(self) -> bool:
        try:
            await self.session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed", error=str(e))
            return False


def _tags_text(column: Any) -> Any:
    """Tags flattened to one string for substring matching."""
    # Unit separator keeps a query from matching across two tags
    return func.array_to_string(column, "\x1f", type_=Text)


def _replace_columns(statement: Any, values: dict[str, Any], keep: set[str]) -> dict[str, Any]:
    """ON CONFLICT assignments taking every incoming value except the key columns."""
    return {name: statement.excluded[name] for name in values if name not in keep}
