"""
Ports used by the use cases.

Protocols describing the collaborators the application layer depends on.
Concrete implementations live in internal.infrastructure.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

from internal.domain.product import Product
from internal.domain.value_objects import Sku


@dataclass
class ProductPage:
    """One page of products returned by the repository."""
    data: list[Product] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, -(-self.total // self.per_page))

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "data": [p.to_dict() for p in self.data],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "last_page": self.last_page,
        }


class ProductRepository(Protocol):
    """Protocol for product repository operations."""

    async def save(self, product: Product) -> Product:
        """Insert or update a product, keyed by shopify_id, else by SKU."""
        ...

    async def find_by_sku(self, sku: Sku) -> Optional[Product]:
        """Get product by SKU."""
        ...

    async def find_by_shopify_id(self, shopify_id: str) -> Optional[Product]:
        """Get product by remote Shopify ID."""
        ...

    async def find_by_id(self, product_id: int) -> Optional[Product]:
        """Get product by local ID."""
        ...

    async def find_all(self, page: int = 1, per_page: int = 10) -> ProductPage:
        """Get one page of products, newest first."""
        ...

    async def delete(self, sku: Sku) -> None:
        """Delete product by SKU."""
        ...

    async def delete_by_id(self, product_id: int) -> None:
        """Delete product by local ID."""
        ...

    async def exists_by_sku(self, sku: Sku) -> bool:
        """Check whether a product with the SKU exists."""
        ...

    async def exists_by_shopify_id(self, shopify_id: str) -> bool:
        """Check whether a product with the Shopify ID exists."""
        ...

    async def count(self) -> int:
        """Count all products."""
        ...


class CacheService(Protocol):
    """Protocol for cache operations with tag support."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        ...

    async def forget(self, key: str) -> bool:
        ...

    async def has(self, key: str) -> bool:
        ...

    async def flush(self) -> None:
        ...

    async def remember(
        self,
        key: str,
        ttl: int,
        callback: Callable[[], Awaitable[Any]],
    ) -> Any:
        ...

    async def set_with_tags(
        self,
        tags: list[str],
        key: str,
        value: Any,
        ttl: Optional[int] = None,
    ) -> bool:
        ...

    async def remember_with_tags(
        self,
        tags: list[str],
        key: str,
        ttl: int,
        callback: Callable[[], Awaitable[Any]],
    ) -> Any:
        ...

    async def flush_tags(self, tags: list[str]) -> int:
        """Evict every key stored under any of the tags."""
        ...


class DomainEvent(Protocol):
    """Shape shared by all domain events."""

    event_type: str

    @property
    def aggregate_key(self) -> str:
        ...

    def to_dict(self) -> dict:
        ...


class EventDispatcher(Protocol):
    """Protocol for dispatching domain events."""

    async def dispatch(self, event: DomainEvent) -> None:
        ...

    async def dispatch_many(self, events: Iterable[DomainEvent]) -> None:
        ...


class RemoteCatalogClient(Protocol):
    """
    Protocol for the remote commerce catalog.

    Failures surface as RemoteApiError (not found, rate limited,
    unauthorized).
    """

    async def get_product(self, shopify_id: str) -> dict:
        ...

    async def get_products(self, page: int = 1, limit: int = 50) -> list[dict]:
        ...

    async def update_product(self, shopify_id: str, data: dict) -> dict:
        ...

    async def get_products_count(self) -> int:
        ...

    async def update_inventory(self, inventory_item_id: str, quantity: int) -> dict:
        ...
