"""
Prometheus Metrics for Catalog Sync Service.

Defines all metrics for monitoring sync throughput and API health.
"""

from prometheus_client import Counter, Histogram

# HTTP API metrics
HTTP_REQUESTS_TOTAL = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

HTTP_REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Sync metrics
SYNC_REQUESTS_CONSUMED = Counter(
    'sync_requests_consumed_total',
    'Total sync request messages consumed',
    ['status']  # status: synced, failed, skipped
)

BULK_IMPORT_ITEMS = Counter(
    'bulk_import_items_total',
    'Bulk import items by outcome',
    ['status']  # success, failed, skipped
)

# Shopify API metrics
SHOPIFY_API_REQUESTS = Counter(
    'shopify_api_requests_total',
    'Total Shopify API requests',
    ['api', 'method', 'status_code']  # api: admin, discovery, oauth
)

SHOPIFY_API_DURATION = Histogram(
    'shopify_api_duration_seconds',
    'Shopify API request duration',
    ['api'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)
