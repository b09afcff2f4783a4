"""
Domain package for Catalog Sync Service.

Contains domain entities, value objects, events, and domain errors.
"""
from .product import Product, ProductVariant
from .value_objects import Currency, Price, ProductStatus, Sku
from .events import InventoryUpdated, ProductCreated, ProductSynced
from .errors import (
    DomainError,
    DomainValidationError,
    InvalidSkuError,
    InvalidPriceError,
    CurrencyMismatchError,
    InvalidInventoryError,
    ProductNotFoundError,
    DuplicateProductError,
    RemoteApiError,
    SyncFailedError,
    CacheError,
    EventPublishError,
)

__all__ = [
    "Product",
    "ProductVariant",
    "Currency",
    "Price",
    "ProductStatus",
    "Sku",
    "InventoryUpdated",
    "ProductCreated",
    "ProductSynced",
    "DomainError",
    "DomainValidationError",
    "InvalidSkuError",
    "InvalidPriceError",
    "CurrencyMismatchError",
    "InvalidInventoryError",
    "ProductNotFoundError",
    "DuplicateProductError",
    "RemoteApiError",
    "SyncFailedError",
    "CacheError",
    "EventPublishError",
]
