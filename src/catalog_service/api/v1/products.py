"""Product catalog API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator

from catalog_service.api.deps import get_catalog_service
from catalog_service.models import Product
from catalog_service.services.catalog import CatalogService

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================


def split_tags(v: Any) -> Any:
    """Accept tags as a list or as a comma-separated string such as ``"[a, b]"``."""
    if isinstance(v, str):
        cleaned = v.replace("[", "").replace("]", "")
        return [tag.strip() for tag in cleaned.split(",") if tag.strip()]
    return v


class ProductCreateRequest(BaseModel):
    """Request model for adding a product manually."""

    external_id: int | None = Field(
        None, description="Feed id; generated from the current time when omitted"
    )
    title: str = Field(..., min_length=1)
    handle: str | None = None
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    tags: list[str] = Field(default_factory=list)

    normalize_tags = field_validator("tags", mode="before")(split_tags)


class ProductUpdateRequest(BaseModel):
    """Request model for editing a product; only the fields sent are changed."""

    title: str | None = Field(None, min_length=1)
    handle: str | None = None
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    tags: list[str] | None = None

    normalize_tags = field_validator("tags", mode="before")(split_tags)

    @model_validator(mode="after")
    def normalize_nulls(self) -> "ProductUpdateRequest":
        if "title" in self.model_fields_set and self.title is None:
            raise ValueError("title cannot be null")
        if "tags" in self.model_fields_set and self.tags is None:
            self.tags = []
        return self


class DeleteResponse(BaseModel):
    deleted: bool
    external_id: int


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[Product])
async def list_products(
    service: CatalogService = Depends(get_catalog_service),
) -> list[Product]:
    """Get all products."""
    return await service.list_products()


@router.get("/search", response_model=list[Product])
async def search_products(
    query: Annotated[str, Query(description="Matched against title, vendor, type and tags")] = "",
    service: CatalogService = Depends(get_catalog_service),
) -> list[Product]:
    """
    Search products.

    Title-prefix matches rank first, then vendor-prefix, then type-prefix,
    then any other match, ties by title. A blank query returns everything.
    """
    return await service.search_products(query)


@router.get("/{external_id}", response_model=Product)
async def get_product(
    external_id: int,
    service: CatalogService = Depends(get_catalog_service),
) -> Product:
    """Get a product by its external id."""
    product = await service.get_product(external_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {external_id} not found")
    return product


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> Product:
    """Add a product manually."""
    if request.external_id is not None and await service.get_product(request.external_id) is not None:
        raise HTTPException(
            status_code=409, detail=f"Product {request.external_id} already exists"
        )
    return await service.create_product(request.model_dump())


@router.put("/{external_id}", response_model=Product)
async def update_product(
    external_id: int,
    request: ProductUpdateRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> Product:
    """Update a product's editable fields; surrogate and external ids never change."""
    updated = await service.update_product(external_id, request.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Product {external_id} not found")
    return updated


@router.delete("/{external_id}", response_model=DeleteResponse)
async def delete_product(
    external_id: int,
    service: CatalogService = Depends(get_catalog_service),
) -> DeleteResponse:
    """Delete a product and, through the store's cascade, its children."""
    if not await service.delete_product(external_id):
        raise HTTPException(status_code=404, detail=f"Product {external_id} not found")
    return DeleteResponse(deleted=True, external_id=external_id)
