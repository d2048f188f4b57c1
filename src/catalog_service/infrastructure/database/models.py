"""SQLAlchemy models for the product catalog.

All tables live in the 'catalog' schema. Products are keyed locally by a
surrogate ``id`` and matched against the feed by ``external_id``; child rows
reference the surrogate and are removed with their product.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Schema for all catalog tables
SCHEMA = "catalog"


class Base(DeclarativeBase):
    """Base class for all models."""

    __table_args__ = {"schema": SCHEMA}


# =============================================================================
# Products
# =============================================================================


class ProductModel(Base):
    """A product as synced from the feed or added manually."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    handle: Mapped[Optional[str]] = mapped_column(String(500))
    body_html: Mapped[Optional[str]] = mapped_column(Text)
    vendor: Mapped[Optional[str]] = mapped_column(String(255))
    product_type: Mapped[Optional[str]] = mapped_column(String(255))
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'")
    )

    # Timestamps as reported by the feed (naive UTC)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    variants: Mapped[list["ProductVariantModel"]] = relationship(
        back_populates="product", passive_deletes=True, order_by="ProductVariantModel.id"
    )
    images: Mapped[list["ProductImageModel"]] = relationship(
        back_populates="product", passive_deletes=True, order_by="ProductImageModel.position"
    )
    options: Mapped[list["ProductOptionModel"]] = relationship(
        back_populates="product", passive_deletes=True, order_by="ProductOptionModel.position"
    )

    __table_args__ = (
        Index("ix_products_title", "title"),
        {"schema": SCHEMA},
    )


class ProductVariantModel(Base):
    """Purchasable variant of a product, upserted by its feed id."""

    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey(f"{SCHEMA}.products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[Optional[str]] = mapped_column(String(500))
    option1: Mapped[Optional[str]] = mapped_column(String(255))
    option2: Mapped[Optional[str]] = mapped_column(String(255))
    option3: Mapped[Optional[str]] = mapped_column(String(255))
    sku: Mapped[Optional[str]] = mapped_column(String(255))
    price: Mapped[Decimal] = mapped_column(
        Numeric, nullable=False, default=Decimal("0"), server_default=text("0")
    )
    available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    product: Mapped[ProductModel] = relationship(back_populates="variants")


class ProductImageModel(Base):
    """Product image, upserted by its feed id."""

    __tablename__ = "product_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey(f"{SCHEMA}.products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    src: Mapped[Optional[str]] = mapped_column(Text)
    width: Mapped[Optional[int]] = mapped_column(Integer)
    height: Mapped[Optional[int]] = mapped_column(Integer)
    position: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    product: Mapped[ProductModel] = relationship(back_populates="images")


class ProductOptionModel(Base):
    """Named option of a product (e.g. Size), keyed by product and name."""

    __tablename__ = "product_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey(f"{SCHEMA}.products.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    # Comma-separated option values
    values: Mapped[Optional[str]] = mapped_column(Text)

    product: Mapped[ProductModel] = relationship(back_populates="options")

    __table_args__ = (
        UniqueConstraint("product_id", "name", name="uq_product_options_product_name"),
        {"schema": SCHEMA},
    )


# =============================================================================
# Sync Status
# =============================================================================


class SyncStatus(Base):
    """Outcome of the most recent sync pass, one row per sync kind."""

    __tablename__ = "sync_status"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)  # 'products'
    status: Mapped[str] = mapped_column(String(50), default="idle")  # completed, empty, failed
    records_synced: Mapped[int] = mapped_column(Integer, default=0)
    records_failed: Mapped[int] = mapped_column(Integer, default=0)
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = ({"schema": SCHEMA},)
