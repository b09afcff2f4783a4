"""
Domain events for the Product aggregate.

Events are immutable facts stamped with the time they were raised.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .product import TIMESTAMP_FORMAT, Product, utcnow
from .value_objects import Sku


@dataclass(frozen=True)
class ProductSynced:
    """
    Raised after a product was pulled from the remote catalog and persisted.

    Attributes:
        product: The persisted product.
        source: Origin of the data, always "shopify" for now.
        occurred_at: Time the event was raised.
    """
    product: Product
    source: str = "shopify"
    occurred_at: datetime = field(default_factory=utcnow)

    event_type = "product.synced"

    @property
    def product_id(self) -> Optional[int]:
        return self.product.id

    @property
    def sku(self) -> str:
        return self.product.sku.value

    @property
    def shopify_id(self) -> Optional[str]:
        return self.product.shopify_id

    @property
    def aggregate_key(self) -> str:
        return self.sku

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "shopify_id": self.shopify_id,
            "source": self.source,
            "occurred_at": self.occurred_at.strftime(TIMESTAMP_FORMAT),
        }


@dataclass(frozen=True)
class InventoryUpdated:
    """
    Raised after a product's local inventory quantity changed.

    Attributes:
        sku: SKU of the product.
        previous_quantity: Quantity before the change.
        new_quantity: Quantity after the change.
        reason: Optional free-text reason supplied by the caller.
        occurred_at: Time the event was raised.
    """
    sku: Sku
    previous_quantity: int
    new_quantity: int
    reason: Optional[str] = None
    occurred_at: datetime = field(default_factory=utcnow)

    event_type = "product.inventory_updated"

    @property
    def difference(self) -> int:
        return self.new_quantity - self.previous_quantity

    @property
    def is_increase(self) -> bool:
        return self.difference > 0

    @property
    def is_decrease(self) -> bool:
        return self.difference < 0

    @property
    def aggregate_key(self) -> str:
        return self.sku.value

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "sku": self.sku.value,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "difference": self.difference,
            "reason": self.reason,
            "occurred_at": self.occurred_at.strftime(TIMESTAMP_FORMAT),
        }


@dataclass(frozen=True)
class ProductCreated:
    """Raised when a product is first created locally."""
    product: Product
    occurred_at: datetime = field(default_factory=utcnow)

    event_type = "product.created"

    @property
    def aggregate_key(self) -> str:
        return self.product.sku.value

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "product_id": self.product.id,
            "sku": self.product.sku.value,
            "title": self.product.title,
            "occurred_at": self.occurred_at.strftime(TIMESTAMP_FORMAT),
        }
