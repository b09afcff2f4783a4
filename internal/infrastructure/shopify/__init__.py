"""
Shopify infrastructure package.
"""
from .auth import ShopifyTokenProvider
from .client import (
    ShopifyAdminClient,
    ShopifyDiscoveryClient,
    create_shopify_client,
)
from .mock_client import InMemoryShopifyClient

__all__ = [
    "ShopifyTokenProvider",
    "ShopifyAdminClient",
    "ShopifyDiscoveryClient",
    "create_shopify_client",
    "InMemoryShopifyClient",
]
