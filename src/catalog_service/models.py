"""Catalog records shared by the sync pipeline, the repository and the API.

``id`` is the local surrogate key assigned by the store and is ``None`` until
the record has been inserted. ``external_id`` is the key assigned by the
upstream feed and is what every upsert matches on.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CatalogRecord(BaseModel):
    """Base for catalog records; readable straight from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class ProductVariant(CatalogRecord):
    id: int | None = None
    external_id: int
    product_id: int
    title: str | None = None
    option1: str | None = None
    option2: str | None = None
    option3: str | None = None
    sku: str | None = None
    price: Decimal = Decimal("0")
    available: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductImage(CatalogRecord):
    id: int | None = None
    external_id: int
    product_id: int
    src: str | None = None
    width: int | None = None
    height: int | None = None
    position: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductOption(CatalogRecord):
    """Product option keyed by ``(product_id, name)``; ``values`` is comma-joined."""

    id: int | None = None
    product_id: int
    name: str
    position: int
    values: str | None = None


class Product(CatalogRecord):
    """A catalog product with its optional child collections."""

    id: int | None = None
    external_id: int
    title: str
    handle: str | None = None
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    images: list[ProductImage] = Field(default_factory=list)
    options: list[ProductOption] = Field(default_factory=list)


# Product columns written by insert/update; children are upserted separately.
PRODUCT_COLUMNS = frozenset(
    {
        "external_id",
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
)
