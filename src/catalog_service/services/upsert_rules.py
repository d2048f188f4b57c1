"""Reconciliation rules turning parsed feed records into records to persist.

These are pure functions: they never touch the store. Products are matched
on ``external_id`` by the caller, which passes the stored product (if any) to
``reconcile_product``. Variants and images are keyed by their own external
id and options by ``(product_id, name)``; for those the store performs an
insert-or-replace, so the builders only shape the incoming values.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from catalog_service.models import Product, ProductImage, ProductOption, ProductVariant
from catalog_service.services.feed_parser import (
    FeedImage,
    FeedOption,
    FeedProduct,
    FeedVariant,
)
from shared.constants import OPTION_VALUES_SEPARATOR

ZERO = Decimal("0")

# Fields of a feed product overlaid onto the stored record on every sync
SYNCED_PRODUCT_FIELDS = (
    "title",
    "handle",
    "body_html",
    "vendor",
    "product_type",
    "published_at",
    "created_at",
    "updated_at",
    "tags",
)


def parse_price(value: Any) -> Decimal:
    """Convert a feed price to Decimal; missing or unparsable prices are zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return price if price.is_finite() else ZERO


def join_option_values(values: list[str] | None) -> str | None:
    """Join option values into the stored comma-separated form."""
    if values is None:
        return None
    return OPTION_VALUES_SEPARATOR.join(values)


def reconcile_product(existing: Product | None, incoming: FeedProduct) -> Product:
    """
    Produce the product record to persist for a feed entry.

    With a stored product, every synced field is overlaid onto a copy of it
    while ``id`` and ``external_id`` stay as stored. Without one, a new
    record is built with no surrogate id; the store assigns it on insert.
    """
    fields = {name: getattr(incoming, name) for name in SYNCED_PRODUCT_FIELDS}
    fields["tags"] = list(incoming.tags)

    if existing is None:
        return Product(external_id=incoming.external_id, **fields)
    return existing.model_copy(update=fields)


def build_variant(product_id: int, incoming: FeedVariant) -> ProductVariant:
    return ProductVariant(
        external_id=incoming.external_id,
        product_id=product_id,
        title=incoming.title,
        option1=incoming.option1,
        option2=incoming.option2,
        option3=incoming.option3,
        sku=incoming.sku,
        price=parse_price(incoming.price),
        available=bool(incoming.available),
        created_at=incoming.created_at,
        updated_at=incoming.updated_at,
    )


def build_image(product_id: int, incoming: FeedImage) -> ProductImage:
    return ProductImage(
        external_id=incoming.external_id,
        product_id=product_id,
        src=incoming.src,
        width=incoming.width,
        height=incoming.height,
        position=incoming.position,
        created_at=incoming.created_at,
        updated_at=incoming.updated_at,
    )


def build_option(product_id: int, incoming: FeedOption) -> ProductOption:
    return ProductOption(
        product_id=product_id,
        name=incoming.name,
        position=incoming.position,
        values=join_option_values(incoming.values),
    )
