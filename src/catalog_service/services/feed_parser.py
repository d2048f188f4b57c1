"""Parsing of the upstream ``products.json`` feed.

The document is only split into raw product entries here. Each entry, and
each of its nested variants, images and options, is validated on its own so
that the sync pass can isolate a malformed record instead of failing the
whole batch.
"""

from datetime import datetime
from typing import Any

import orjson
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_service.exceptions import FeedParseError
from catalog_service.services.timestamps import parse_timestamp
from shared.constants import MAX_PRODUCTS_PER_PASS

logger = structlog.get_logger()


# =============================================================================
# Feed schemas
# =============================================================================


def as_text(v: Any) -> Any:
    """Render JSON scalars as text (``true``, ``36``); other values pass through."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


def as_boolean(v: Any) -> bool | None:
    """Lenient flag: only ``true``, the text ``"true"`` or a non-zero number count as true."""
    if v is None or isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip() == "true"
    if isinstance(v, (int, float)):
        return v != 0
    return False


# Free-text fields across feed records; scalars of any JSON type are accepted
TEXT_FIELDS = (
    "title",
    "handle",
    "body_html",
    "vendor",
    "product_type",
    "option1",
    "option2",
    "option3",
    "sku",
    "src",
    "name",
)


class FeedRecord(BaseModel):
    """Base for feed entries: ``id`` maps to ``external_id``, unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator(*TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def scalar_as_text(cls, v: Any) -> Any:
        return as_text(v)

    @field_validator(
        "published_at", "created_at", "updated_at", mode="before", check_fields=False
    )
    @classmethod
    def normalize_timestamp(cls, v: Any) -> datetime | None:
        if v is None or isinstance(v, datetime):
            return v
        return parse_timestamp(str(v))


class FeedVariant(FeedRecord):
    external_id: int = Field(..., alias="id")
    title: str | None = None
    option1: str | None = None
    option2: str | None = None
    option3: str | None = None
    sku: str | None = None
    # Kept raw; converted by the upsert rules so a bad price never fails the variant
    price: Any = None
    available: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("available", mode="before")
    @classmethod
    def lenient_available(cls, v: Any) -> bool | None:
        return as_boolean(v)


class FeedImage(FeedRecord):
    external_id: int = Field(..., alias="id")
    src: str | None = None
    width: int | None = None
    height: int | None = None
    position: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedOption(FeedRecord):
    name: str
    position: int
    values: list[str] | None = None

    @field_validator("values", mode="before")
    @classmethod
    def values_as_text(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [as_text(item) for item in v]
        return v


class FeedProduct(FeedRecord):
    external_id: int = Field(..., alias="id")
    title: str
    handle: str | None = None
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    variants: list[Any] = Field(default_factory=list)
    images: list[Any] = Field(default_factory=list)
    options: list[Any] = Field(default_factory=list)

    @field_validator("tags", "variants", "images", "options", mode="before")
    @classmethod
    def absent_list_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def tags_as_text(cls, v: Any) -> Any:
        # Order and duplicates are kept as the feed sends them
        if isinstance(v, list):
            return [t if isinstance(t, str) else str(as_text(t)) for t in v]
        return v


# =============================================================================
# Document and entry parsing
# =============================================================================


def extract_product_entries(
    body: bytes | str, limit: int = MAX_PRODUCTS_PER_PASS
) -> list[Any]:
    """
    Decode a feed body and return at most ``limit`` raw product entries.

    Raises:
        FeedParseError: The body is not JSON, the root is not an object, or
            ``products`` is not a list.

    A document without a ``products`` field yields an empty list.
    """
    try:
        document = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise FeedParseError(f"Malformed feed JSON: {e}") from e

    if not isinstance(document, dict):
        raise FeedParseError(f"Feed root must be an object, got {type(document).__name__}")

    products = document.get("products")
    if products is None:
        logger.warning("No 'products' field in feed document")
        return []
    if not isinstance(products, list):
        raise FeedParseError(f"'products' must be a list, got {type(products).__name__}")

    if len(products) > limit:
        logger.info("Feed truncated to pass limit", available=len(products), limit=limit)
    return products[:limit]


def parse_product(entry: Any) -> FeedProduct:
    """Validate one product entry; raises ``pydantic.ValidationError`` on bad input."""
    return FeedProduct.model_validate(entry)


def parse_variant(entry: Any) -> FeedVariant:
    return FeedVariant.model_validate(entry)


def parse_image(entry: Any) -> FeedImage:
    return FeedImage.model_validate(entry)


def parse_option(entry: Any) -> FeedOption:
    return FeedOption.model_validate(entry)


def entry_key(entry: Any, field: str = "id") -> str:
    """Best-effort identifier of a raw entry for log lines and failure reports."""
    if isinstance(entry, dict) and entry.get(field) is not None:
        return str(entry[field])
    return "unknown"
