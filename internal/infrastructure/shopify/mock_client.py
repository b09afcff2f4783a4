"""
In-memory Shopify client.

Deterministic stand-in for the Admin API, used in development
(SHOPIFY_USE_MOCK=true) and in tests.
"""
import copy
from datetime import datetime, timezone
from typing import Iterable, Optional

from internal.domain.errors import RemoteApiError
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


DEFAULT_LOCATION_ID = 1001


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sample_product(
    product_id: int,
    title: str,
    vendor: str,
    tags: str,
    variants: list[tuple[int, str, str, str, int]],
    status: str = "active",
) -> dict:
    """Build an Admin-API-shaped product from (id, title, price, sku, qty) rows."""
    handle = title.lower().replace(" ", "-")
    return {
        "id": product_id,
        "title": title,
        "body_html": f"<p>{title}</p>",
        "vendor": vendor,
        "handle": handle,
        "status": status,
        "tags": tags,
        "created_at": "2024-01-15T09:00:00+00:00",
        "updated_at": "2024-02-10T14:30:00+00:00",
        "admin_graphql_api_id": f"gid://shopify/Product/{product_id}",
        "variants": [
            {
                "id": variant_id,
                "product_id": product_id,
                "title": variant_title,
                "price": price,
                "sku": sku,
                "position": position,
                "weight": 0.2,
                "weight_unit": "kg",
                "inventory_item_id": variant_id,
                "inventory_quantity": quantity,
            }
            for position, (variant_id, variant_title, price, sku, quantity)
            in enumerate(variants, start=1)
        ],
    }


SAMPLE_PRODUCTS = (
    _sample_product(
        632910392,
        "IPod Nano - 8GB",
        "Apple",
        "Flash Memory, MP3, Music",
        [
            (808950810, "Pink", "199.00", "IPOD2008PINK", 10),
            (49148385, "Red", "199.00", "IPOD2008RED", 20),
            (39072856, "Green", "199.00", "IPOD2008GREEN", 30),
            (457924702, "Black", "199.00", "IPOD2008BLACK", 40),
        ],
    ),
    _sample_product(
        921728736,
        "Burton Custom Freestyle 151",
        "Burton",
        "Snowboard, Winter",
        [
            (447654529, "151", "499.00", "BURTON-151", 5),
            (447654530, "155", "519.00", "BURTON-155", 8),
            (447654531, "158", "539.00", "BURTON-158", 12),
        ],
    ),
    _sample_product(
        789456123,
        "Nike Air Max 90",
        "Nike",
        "Shoes, Running",
        [
            (111222301, "40 / White", "159.00", "NIKE-AM90-40-WHT", 15),
            (111222302, "42 / Black", "159.00", "NIKE-AM90-42-BLK", 18),
        ],
    ),
)


class InMemoryShopifyClient:
    """
    Remote catalog client backed by a dict.

    Products are keyed by numeric ID. Updates merge ``title``, ``body_html``,
    ``status`` and ``tags``. Inventory updates create a level at the default
    location for unknown items.
    """

    def __init__(self, products: Optional[Iterable[dict]] = None) -> None:
        self._products: dict[int, dict] = {}
        self._inventory: dict[int, dict] = {}
        for product in products or ():
            self.add_product(product)

    @classmethod
    def with_sample_products(cls) -> "InMemoryShopifyClient":
        return cls(copy.deepcopy(SAMPLE_PRODUCTS))

    def add_product(self, product: dict) -> None:
        product_id = int(product["id"])
        self._products[product_id] = product
        for variant in product.get("variants", []):
            item_id = variant.get("inventory_item_id")
            if item_id is not None:
                self._inventory[int(item_id)] = {
                    "inventory_item_id": int(item_id),
                    "location_id": DEFAULT_LOCATION_ID,
                    "available": variant.get("inventory_quantity", 0),
                    "updated_at": _now_iso(),
                }

    async def get_product(self, shopify_id: str) -> dict:
        logger.debug("In-memory get_product", shopify_id=shopify_id)
        return copy.deepcopy(self._get(shopify_id))

    async def get_products(self, page: int = 1, limit: int = 50) -> list[dict]:
        offset = (max(1, page) - 1) * limit
        products = list(self._products.values())[offset:offset + limit]
        return copy.deepcopy(products)

    async def update_product(self, shopify_id: str, data: dict) -> dict:
        product = self._get(shopify_id)
        for key in ("title", "body_html", "status", "tags"):
            if key in data:
                product[key] = data[key]
        product["updated_at"] = _now_iso()
        return copy.deepcopy(product)

    async def get_products_count(self) -> int:
        return len(self._products)

    async def update_inventory(self, inventory_item_id: str, quantity: int) -> dict:
        item_id = int(inventory_item_id)

        level = self._inventory.get(item_id)
        if level is None:
            logger.warning(
                "Inventory item not found, creating entry",
                inventory_item_id=inventory_item_id,
            )
            level = {"inventory_item_id": item_id, "location_id": DEFAULT_LOCATION_ID}
            self._inventory[item_id] = level

        level["available"] = quantity
        level["updated_at"] = _now_iso()

        for product in self._products.values():
            for variant in product.get("variants", []):
                if variant.get("inventory_item_id") == item_id:
                    variant["inventory_quantity"] = quantity

        return dict(level)

    async def aclose(self) -> None:
        return None

    def _get(self, shopify_id: str) -> dict:
        try:
            product_id = int(shopify_id)
        except (TypeError, ValueError):
            raise RemoteApiError.product_not_found(str(shopify_id)) from None

        product = self._products.get(product_id)
        if product is None:
            raise RemoteApiError.product_not_found(str(shopify_id))
        return product
