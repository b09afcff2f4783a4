"""
Metrics package.
"""
from .prometheus import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION,
    SYNC_REQUESTS_CONSUMED,
    BULK_IMPORT_ITEMS,
    SHOPIFY_API_REQUESTS,
    SHOPIFY_API_DURATION,
)

__all__ = [
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "SYNC_REQUESTS_CONSUMED",
    "BULK_IMPORT_ITEMS",
    "SHOPIFY_API_REQUESTS",
    "SHOPIFY_API_DURATION",
]
