"""
Cache key generation for product data.
"""


class CacheKeyGenerator:
    """Builds cache keys and tags shared by readers and writers."""

    PRODUCTS_LIST_PREFIX = "products_json"
    PRODUCT_SKU_PREFIX = "product.sku"
    PRODUCT_ID_PREFIX = "product.id"
    PRODUCT_SHOPIFY_PREFIX = "product.shopify"
    PRODUCTS_TAG = "products"

    def products_list_key(self, page: int, per_page: int) -> str:
        return f"{self.PRODUCTS_LIST_PREFIX}_{page}_{per_page}"

    def product_by_sku_key(self, sku: str) -> str:
        return f"{self.PRODUCT_SKU_PREFIX}.{sku}"

    def product_by_id_key(self, product_id: int) -> str:
        return f"{self.PRODUCT_ID_PREFIX}.{product_id}"

    def product_by_shopify_id_key(self, shopify_id: str) -> str:
        return f"{self.PRODUCT_SHOPIFY_PREFIX}.{shopify_id}"

    def products_tag(self) -> str:
        return self.PRODUCTS_TAG
