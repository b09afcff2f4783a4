"""
Domain model for Product.

This module contains the core domain entities following DDD principles.
Entities are immutable: every mutator returns a new instance.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import DomainValidationError, InvalidInventoryError
from .value_objects import Currency, Price, ProductStatus, Sku


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _parse_price(value: Any) -> Price:
    if value is None or value == "":
        return Price.zero(Currency.USD)
    return Price.from_decimal(value, Currency.USD)


@dataclass(frozen=True)
class ProductVariant:
    """
    ProductVariant is owned by a Product and has no independent lifecycle.

    Attributes:
        sku: Variant SKU.
        price: Variant price.
        inventory_quantity: Units in stock, never negative.
        id: Local identifier, None until persisted.
        shopify_variant_id: Remote variant identifier.
        weight: Optional non-negative weight.
        weight_unit: Unit of the weight (e.g. "kg").
    """
    sku: Sku
    price: Price
    inventory_quantity: int = 0
    id: Optional[int] = None
    shopify_variant_id: Optional[str] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate domain invariants after initialization."""
        if self.inventory_quantity < 0:
            raise InvalidInventoryError(self.inventory_quantity)
        if self.weight is not None and self.weight < 0:
            raise DomainValidationError("Weight cannot be negative")

    @classmethod
    def create(
        cls,
        sku: Sku,
        price: Price,
        inventory_quantity: int = 0,
        id: Optional[int] = None,
        shopify_variant_id: Optional[str] = None,
        weight: Optional[float] = None,
        weight_unit: Optional[str] = None,
    ) -> "ProductVariant":
        return cls(
            sku=sku,
            price=price,
            inventory_quantity=inventory_quantity,
            id=id,
            shopify_variant_id=shopify_variant_id,
            weight=weight,
            weight_unit=weight_unit,
        )

    @classmethod
    def from_shopify_data(cls, data: dict) -> "ProductVariant":
        """
        Build a variant from a Shopify variant mapping.

        Args:
            data: Raw variant data ("sku", "price", "inventory_quantity", ...).

        Returns:
            ProductVariant instance.

        Raises:
            DomainValidationError: If the variant has no SKU.
        """
        sku = data.get("sku")
        if not sku:
            raise DomainValidationError("Variant SKU is required")

        weight = data.get("weight")
        return cls(
            sku=Sku(sku),
            price=_parse_price(data.get("price")),
            inventory_quantity=int(data.get("inventory_quantity") or 0),
            shopify_variant_id=str(data["id"]) if data.get("id") is not None else None,
            weight=float(weight) if weight is not None else None,
            weight_unit=data.get("weight_unit"),
        )

    def with_price(self, price: Price) -> "ProductVariant":
        return replace(self, price=price)

    def with_inventory_quantity(self, quantity: int) -> "ProductVariant":
        return replace(self, inventory_quantity=quantity)

    def is_in_stock(self) -> bool:
        return self.inventory_quantity > 0

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "sku": self.sku.value,
            "price": self.price.amount,
            "currency": self.price.currency.value,
            "inventory_quantity": self.inventory_quantity,
            "shopify_variant_id": self.shopify_variant_id,
            "weight": self.weight,
            "weight_unit": self.weight_unit,
        }


@dataclass(frozen=True)
class Product:
    """
    Product is the aggregate root for catalog operations.

    Instances are never mutated. The ``with_*`` methods return a copy with
    the targeted field changed and ``updated_at`` advanced; ``created_at``
    is carried over unchanged.

    Attributes:
        sku: Product SKU.
        title: Display title.
        price: Product-level price.
        status: Publication status.
        inventory_quantity: Product-level stock, independent of variants.
        created_at: Timestamp of creation.
        updated_at: Timestamp of last change.
        id: Local identifier, None until persisted.
        description: Optional HTML/text description.
        shopify_id: Remote product identifier.
        variants: Owned variants in remote order.
    """
    sku: Sku
    title: str
    price: Price
    status: ProductStatus = ProductStatus.DRAFT
    inventory_quantity: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None
    description: Optional[str] = None
    shopify_id: Optional[str] = None
    variants: tuple[ProductVariant, ...] = ()

    def __post_init__(self) -> None:
        """Validate domain invariants after initialization."""
        if self.inventory_quantity < 0:
            raise InvalidInventoryError(self.inventory_quantity)
        if not isinstance(self.variants, tuple):
            object.__setattr__(self, "variants", tuple(self.variants))

    @classmethod
    def create(
        cls,
        sku: Sku,
        title: str,
        price: Price,
        description: Optional[str] = None,
        status: Optional[ProductStatus] = None,
        shopify_id: Optional[str] = None,
        inventory_quantity: int = 0,
        id: Optional[int] = None,
        variants: tuple[ProductVariant, ...] = (),
    ) -> "Product":
        """
        Create a new product.

        Status defaults to DRAFT. Both timestamps are set to now.

        Raises:
            InvalidInventoryError: If inventory_quantity is negative.
        """
        now = utcnow()
        return cls(
            sku=sku,
            title=title,
            price=price,
            status=status or ProductStatus.DRAFT,
            inventory_quantity=inventory_quantity,
            created_at=now,
            updated_at=now,
            id=id,
            description=description,
            shopify_id=shopify_id,
            variants=tuple(variants),
        )

    @classmethod
    def from_shopify_data(cls, data: dict) -> "Product":
        """
        Build a product from a Shopify product mapping.

        The first variant seeds the product SKU, price and inventory.
        Unknown status values fall back to DRAFT.

        Args:
            data: Raw product data as returned by the remote catalog.

        Returns:
            Product instance without a local id.

        Raises:
            DomainValidationError: If there are no variants or the first
                variant has no SKU.
        """
        variants = data.get("variants") or []
        if not variants:
            raise DomainValidationError("Product must have at least one variant")

        first_variant = variants[0]
        sku = first_variant.get("sku")
        if not sku:
            raise DomainValidationError("Product variant must have a SKU")

        status = ProductStatus.DRAFT
        if data.get("status") is not None:
            try:
                status = ProductStatus.from_string(str(data["status"]))
            except ValueError:
                status = ProductStatus.DRAFT

        product_variants = tuple(
            ProductVariant.from_shopify_data(variant)
            for variant in variants
            if variant.get("sku")
        )

        title = data.get("title")
        now = utcnow()
        return cls(
            sku=Sku(sku),
            title=title if title is not None else "Untitled Product",
            price=_parse_price(first_variant.get("price")),
            status=status,
            inventory_quantity=int(first_variant.get("inventory_quantity") or 0),
            created_at=now,
            updated_at=now,
            id=None,
            description=data.get("body_html"),
            shopify_id=str(data["id"]) if data.get("id") is not None else None,
            variants=product_variants,
        )

    def _with(self, **changes: Any) -> "Product":
        changes["updated_at"] = max(utcnow(), self.updated_at)
        return replace(self, **changes)

    def with_title(self, title: str) -> "Product":
        return self._with(title=title)

    def with_price(self, price: Price) -> "Product":
        return self._with(price=price)

    def with_status(self, status: ProductStatus) -> "Product":
        return self._with(status=status)

    def with_inventory_quantity(self, quantity: int) -> "Product":
        """
        Return a copy with a new inventory quantity.

        Raises:
            InvalidInventoryError: If quantity is negative.
        """
        return self._with(inventory_quantity=quantity)

    def with_description(self, description: Optional[str]) -> "Product":
        return self._with(description=description)

    def with_id(self, id: Optional[int]) -> "Product":
        return self._with(id=id)

    def add_variant(self, variant: ProductVariant) -> "Product":
        return self._with(variants=self.variants + (variant,))

    def is_in_stock(self) -> bool:
        return self.inventory_quantity > 0

    def is_active(self) -> bool:
        return self.status.is_active

    def to_dict(self) -> dict:
        """
        Convert to dictionary representation.

        Returns:
            Flat mapping used for caching, events and HTTP responses.
        """
        return {
            "id": self.id,
            "sku": self.sku.value,
            "title": self.title,
            "description": self.description,
            "price": self.price.to_dict(),
            "status": self.status.value,
            "inventory_quantity": self.inventory_quantity,
            "shopify_id": self.shopify_id,
            "variants": [v.to_dict() for v in self.variants],
            "created_at": self.created_at.strftime(TIMESTAMP_FORMAT),
            "updated_at": self.updated_at.strftime(TIMESTAMP_FORMAT),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """
        Rebuild a product from its ``to_dict`` mapping.

        Used to restore cached products.
        """
        price = data["price"]
        variants = tuple(
            ProductVariant(
                sku=Sku(v["sku"]),
                price=Price(v["price"], Currency(v["currency"])),
                inventory_quantity=v["inventory_quantity"],
                id=v.get("id"),
                shopify_variant_id=v.get("shopify_variant_id"),
                weight=v.get("weight"),
                weight_unit=v.get("weight_unit"),
            )
            for v in data.get("variants", [])
        )
        return cls(
            sku=Sku(data["sku"]),
            title=data["title"],
            price=Price(price["amount"], Currency(price["currency"])),
            status=ProductStatus(data["status"]),
            inventory_quantity=data["inventory_quantity"],
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
            id=data.get("id"),
            description=data.get("description"),
            shopify_id=data.get("shopify_id"),
            variants=variants,
        )


def _parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
