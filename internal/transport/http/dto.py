"""
Data Transfer Objects for Catalog Sync Service API.

Contains Pydantic models for request/response validation. Responses are
serialized with camelCase field names.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from internal.domain.product import Product, ProductVariant
from internal.domain.value_objects import Price


MAX_BULK_IDS = 100

ShopifyId = Annotated[str, Field(min_length=1, max_length=50)]


class CamelModel(BaseModel):
    """Base model emitting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Response DTOs
class PriceDTO(CamelModel):
    """Price in minor units with its display form."""

    amount: int = Field(..., description="Amount in cents")
    currency: str = Field(..., description="ISO 4217 currency code")
    formatted: str = Field(..., description="Display string, e.g. $29.99")

    @classmethod
    def from_price(cls, price: Price) -> "PriceDTO":
        return cls(
            amount=price.amount,
            currency=price.currency.value,
            formatted=price.format(),
        )


class VariantDTO(CamelModel):
    """Product variant."""

    id: Optional[int] = None
    sku: str
    price: PriceDTO
    inventory: int = Field(..., description="Units in stock")
    shopify_variant_id: Optional[str] = None

    @classmethod
    def from_variant(cls, variant: ProductVariant) -> "VariantDTO":
        return cls(
            id=variant.id,
            sku=variant.sku.value,
            price=PriceDTO.from_price(variant.price),
            inventory=variant.inventory_quantity,
            shopify_variant_id=variant.shopify_variant_id,
        )


class ProductResponse(CamelModel):
    """Full product representation."""

    id: Optional[int] = Field(None, description="Local product ID")
    sku: str = Field(..., description="Product SKU")
    title: str
    description: Optional[str] = None
    status: str = Field(..., description="draft, active or archived")
    price: PriceDTO
    inventory: int = Field(..., description="Product-level units in stock")
    in_stock: bool
    shopify_id: Optional[str] = None
    variants: List[VariantDTO] = Field(default_factory=list)
    created_at: str = Field(..., description="ISO 8601 creation timestamp")
    updated_at: str = Field(..., description="ISO 8601 update timestamp")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "sku": "SHOPIFY-001",
                "title": "Test Product",
                "description": "<p>Description</p>",
                "status": "active",
                "price": {"amount": 2999, "currency": "USD", "formatted": "$29.99"},
                "inventory": 100,
                "inStock": True,
                "shopifyId": "123456",
                "variants": [],
                "createdAt": "2024-01-15T10:30:00+00:00",
                "updatedAt": "2024-01-15T10:35:00+00:00",
            }
        },
    )

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            sku=product.sku.value,
            title=product.title,
            description=product.description,
            status=product.status.value,
            price=PriceDTO.from_price(product.price),
            inventory=product.inventory_quantity,
            in_stock=product.is_in_stock(),
            shopify_id=product.shopify_id,
            variants=[VariantDTO.from_variant(v) for v in product.variants],
            created_at=product.created_at.isoformat(),
            updated_at=product.updated_at.isoformat(),
        )


class PaginationMeta(CamelModel):
    """Pagination metadata."""

    total: int
    page: int
    per_page: int
    last_page: int


class ProductListResponse(BaseModel):
    """Paginated list of products."""

    data: List[ProductResponse]
    meta: PaginationMeta


class BulkImportError(CamelModel):
    shopify_id: str
    error: str


class BulkImportResponse(CamelModel):
    """Outcome of a bulk import."""

    success_count: int
    failed_count: int
    skipped_count: int
    total_processed: int
    success_rate: float = Field(..., description="Percentage of successful items")
    errors: List[BulkImportError] = Field(default_factory=list)


class QueuedResponse(BaseModel):
    message: str
    count: int


class InventoryUpdatedResponse(BaseModel):
    message: str
    sku: str
    quantity: int


# Request DTOs
class SyncProductRequest(BaseModel):
    """Request body for syncing a single product."""

    shopify_id: str = Field(..., min_length=1, max_length=50, description="Shopify product ID")
    force_update: bool = Field(True, description="Re-fetch even if the product exists locally")

    model_config = ConfigDict(
        json_schema_extra={"example": {"shopify_id": "632910392", "force_update": True}}
    )


class BulkSyncRequest(BaseModel):
    """Request body for bulk imports."""

    shopify_ids: List[ShopifyId] = Field(
        ...,
        min_length=1,
        max_length=MAX_BULK_IDS,
        description="Shopify product IDs, at most 100",
    )
    skip_duplicates: bool = Field(True, description="Skip products that already exist")


class QueueSyncRequest(BaseModel):
    """Request body for queuing sync jobs."""

    shopify_ids: List[ShopifyId] = Field(..., min_length=1, max_length=MAX_BULK_IDS)
    force_update: bool = True


class UpdateInventoryRequest(BaseModel):
    """Request body for setting inventory."""

    quantity: int = Field(..., ge=0, description="New absolute quantity")
    reason: Optional[str] = Field(None, max_length=255, description="Reason for the change")


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
    request_id: Optional[str] = None
