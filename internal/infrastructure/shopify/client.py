"""
Shopify API clients.

Two implementations of the remote catalog port:

* ShopifyAdminClient talks to the Admin REST API and can read and write.
* ShopifyDiscoveryClient searches the global product discovery endpoint.
  It is read-only and reshapes results to look like Admin API products.

Use create_shopify_client() to pick one from the configured credentials.
"""
import json
import re
import time
from decimal import Decimal
from typing import Any, Optional

import httpx
from circuitbreaker import CircuitBreakerError, circuit

from internal.domain.errors import RemoteApiError
from internal.infrastructure.metrics.prometheus import (
    SHOPIFY_API_DURATION,
    SHOPIFY_API_REQUESTS,
)
from internal.infrastructure.shopify.auth import ShopifyTokenProvider
from pkg.logger.logger import get_logger
from pkg.resilience.rate_limiter import RateLimiter


logger = get_logger(__name__)


DEFAULT_API_VERSION = "2026-01"
DISCOVERY_ENDPOINT = "https://discover.shopifyapps.com/global/mcp"
DISCOVERY_TOOL = "search_global_products"
MAX_PAGE_SIZE = 250

# Circuit Breaker configuration
FAILURE_THRESHOLD = 5
RECOVERY_TIMEOUT = 60

_PRODUCT_GID = re.compile(r"Product/(\d+)")
_VARIANT_GID = re.compile(r"ProductVariant/(\d+)")


def error_for_status(status_code: int, message: str) -> RemoteApiError:
    """Map an HTTP error status to a RemoteApiError."""
    if status_code == 429:
        return RemoteApiError.rate_limited()
    if status_code in (401, 403):
        return RemoteApiError.unauthorized(message, status_code)
    return RemoteApiError(message, status_code)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def is_transient_failure(thrown_type: type, thrown_value: BaseException) -> bool:
    """
    Decide whether an error counts against the circuit breaker.

    Client errors such as 404 or 401 do not; transport errors, 429 and 5xx do.
    """
    if not isinstance(thrown_value, RemoteApiError):
        return False
    return (
        thrown_value.status_code == 0
        or thrown_value.status_code >= 500
        or thrown_value.is_rate_limited
    )


class ShopifyHttpClient:
    """
    Shared transport for Shopify clients.

    Every request waits on the token bucket, goes through a circuit breaker
    (opens after 5 transient failures, retries after 60 seconds) and is
    recorded in Prometheus. Error responses become RemoteApiError.
    """

    api_name = "shopify"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        rate_limiter: Optional[RateLimiter] = None,
        owns_http_client: bool = False,
    ) -> None:
        self._http = http_client
        self._rate_limiter = rate_limiter or RateLimiter()
        self._owns_http_client = owns_http_client
        self._send = circuit(
            failure_threshold=FAILURE_THRESHOLD,
            recovery_timeout=RECOVERY_TIMEOUT,
            expected_exception=is_transient_failure,
            name=f"shopify-{self.api_name}-{id(self)}",
        )(self._send_request)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request through the circuit breaker.

        Raises:
            RemoteApiError: On transport failures, error responses, or when
                the circuit is open (status 503).
        """
        try:
            return await self._send(method, url, **kwargs)
        except CircuitBreakerError as e:
            logger.warning("Shopify circuit open", api=self.api_name, url=url)
            raise RemoteApiError(
                f"Shopify {self.api_name} API temporarily unavailable", 503
            ) from e

    async def _send_request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        await self._rate_limiter.wait_and_acquire()

        start_time = time.perf_counter()
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            SHOPIFY_API_REQUESTS.labels(
                api=self.api_name, method=method, status_code="error"
            ).inc()
            logger.error(
                "Shopify request failed",
                api=self.api_name,
                method=method,
                url=url,
                error=str(e),
            )
            raise RemoteApiError(f"Shopify {self.api_name} request failed: {e}") from e
        finally:
            SHOPIFY_API_DURATION.labels(api=self.api_name).observe(
                time.perf_counter() - start_time
            )

        SHOPIFY_API_REQUESTS.labels(
            api=self.api_name,
            method=method,
            status_code=str(response.status_code),
        ).inc()

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            if retry_after:
                await self._rate_limiter.drain(retry_after)

        if response.is_error:
            logger.error(
                "Shopify API error",
                api=self.api_name,
                status=response.status_code,
                body=response.text,
            )
            raise error_for_status(
                response.status_code,
                f"Shopify {self.api_name} API returned error: "
                f"{response.status_code} - {response.text}",
            )

        return response


class ShopifyAdminClient(ShopifyHttpClient):
    """Read/write client for the Shopify Admin REST API."""

    api_name = "admin"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: ShopifyTokenProvider,
        shop_domain: str,
        api_version: str = DEFAULT_API_VERSION,
        rate_limiter: Optional[RateLimiter] = None,
        owns_http_client: bool = False,
    ) -> None:
        super().__init__(http_client, rate_limiter, owns_http_client)
        self._tokens = token_provider
        self.base_url = f"https://{shop_domain}/admin/api/{api_version}"

    async def get_product(self, shopify_id: str) -> dict:
        """
        Fetch one product.

        Raises:
            RemoteApiError: 404 if the product does not exist.
        """
        try:
            result = await self._api("GET", f"products/{shopify_id}.json")
        except RemoteApiError as e:
            if e.status_code == 404:
                raise RemoteApiError.product_not_found(shopify_id) from e
            raise

        if "product" not in result:
            raise RemoteApiError.product_not_found(shopify_id)
        return result["product"]

    async def get_products(self, page: int = 1, limit: int = 50) -> list[dict]:
        """
        Fetch one page of products.

        The Admin API paginates with cursors, so page N is reached by
        following the ``next`` link N-1 times.
        """
        url = f"{self.base_url}/products.json"
        params: Optional[dict] = {"limit": min(limit, MAX_PAGE_SIZE)}
        headers = await self._headers()

        for _ in range(max(1, page) - 1):
            response = await self._request("GET", url, params=params, headers=headers)
            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                return []
            url, params = next_url, None

        response = await self._request("GET", url, params=params, headers=headers)
        return response.json().get("products", [])

    async def update_product(self, shopify_id: str, data: dict) -> dict:
        result = await self._api(
            "PUT", f"products/{shopify_id}.json", json_body={"product": data}
        )
        return result.get("product", {})

    async def get_products_count(self) -> int:
        result = await self._api("GET", "products/count.json")
        return int(result.get("count", 0))

    async def update_inventory(self, inventory_item_id: str, quantity: int) -> dict:
        """
        Set the available quantity of an inventory item.

        The first inventory level found for the item decides the location.

        Returns:
            The updated inventory level, or {} when the item has no levels.
        """
        levels = await self._api(
            "GET",
            "inventory_levels.json",
            params={"inventory_item_ids": inventory_item_id},
        )

        if not levels.get("inventory_levels"):
            logger.warning(
                "No inventory levels found",
                inventory_item_id=inventory_item_id,
            )
            return {}

        location_id = levels["inventory_levels"][0]["location_id"]

        result = await self._api(
            "POST",
            "inventory_levels/set.json",
            json_body={
                "location_id": location_id,
                "inventory_item_id": inventory_item_id,
                "available": quantity,
            },
        )
        return result.get("inventory_level", {})

    async def _headers(self) -> dict:
        token = await self._tokens.get_token()
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": token,
        }

    async def _api(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> dict:
        url = f"{self.base_url}/{endpoint}"
        logger.debug("Shopify Admin API request", method=method, url=url)

        response = await self._request(
            method,
            url,
            params=params,
            json=json_body,
            headers=await self._headers(),
        )
        if not response.content:
            return {}
        return response.json()


class ShopifyDiscoveryClient(ShopifyHttpClient):
    """
    Read-only client for the global product discovery endpoint.

    Writes are not supported: update_product returns the current product
    and update_inventory returns {}; both log a warning.
    """

    api_name = "discovery"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: ShopifyTokenProvider,
        saved_catalog: str = "",
        endpoint: str = DISCOVERY_ENDPOINT,
        rate_limiter: Optional[RateLimiter] = None,
        owns_http_client: bool = False,
    ) -> None:
        super().__init__(http_client, rate_limiter, owns_http_client)
        self._tokens = token_provider
        self._saved_catalog = saved_catalog
        self._endpoint = endpoint

    async def get_product(self, shopify_id: str) -> dict:
        products = await self._search(query=str(shopify_id), limit=1)
        if not products:
            raise RemoteApiError.product_not_found(shopify_id)
        return products[0]

    async def get_products(self, page: int = 1, limit: int = 50) -> list[dict]:
        page = max(1, page)
        products = await self._search(query="", limit=min(page * limit, MAX_PAGE_SIZE))
        return products[(page - 1) * limit:page * limit]

    async def update_product(self, shopify_id: str, data: dict) -> dict:
        logger.warning(
            "update_product not supported by discovery API",
            shopify_id=shopify_id,
        )
        return await self.get_product(shopify_id)

    async def get_products_count(self) -> int:
        return len(await self.get_products(1, MAX_PAGE_SIZE))

    async def update_inventory(self, inventory_item_id: str, quantity: int) -> dict:
        logger.warning(
            "update_inventory not supported by discovery API",
            inventory_item_id=inventory_item_id,
        )
        return {}

    async def _search(self, query: str, limit: int) -> list[dict]:
        result = await self._call_tool({
            "query": query,
            "context": "",
            "limit": limit,
            "saved_catalog": self._saved_catalog,
        })
        return extract_discovery_products(result)

    async def _call_tool(self, arguments: dict) -> Any:
        """
        Invoke the search tool over JSON-RPC.

        Raises:
            RemoteApiError: 400 if the response carries a JSON-RPC error.
        """
        headers = {"Content-Type": "application/json"}
        if self._tokens.can_use_oauth:
            headers["Authorization"] = f"Bearer {await self._tokens.get_oauth_token()}"

        payload = {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "id": 1,
            "params": {"name": DISCOVERY_TOOL, "arguments": arguments},
        }
        logger.debug("Shopify discovery request", arguments=arguments)

        response = await self._request("POST", self._endpoint, json=payload, headers=headers)
        result = response.json()

        if isinstance(result, dict) and "error" in result:
            raise RemoteApiError(
                f"Shopify discovery error: {json.dumps(result['error'])}", 400
            )
        if isinstance(result, dict) and "result" in result:
            return result["result"]
        return result


def extract_discovery_products(result: Any) -> list[dict]:
    """
    Pull products out of a discovery response.

    Products arrive either as a bare list or under a ``content`` key. Items
    without variants are dropped.
    """
    items = result
    if isinstance(result, dict):
        items = result.get("content") if isinstance(result.get("content"), list) else []

    if not isinstance(items, list) or not items:
        return []
    if not isinstance(items[0], dict) or "id" not in items[0]:
        return []

    products = []
    for item in items:
        product = transform_discovery_product(item)
        if product is not None:
            products.append(product)

    logger.debug("Extracted discovery products", count=len(products))
    return products


def transform_discovery_product(item: dict) -> Optional[dict]:
    """Reshape a discovery product into the Admin API product layout."""
    variants = item.get("variants") or []
    if not variants:
        logger.warning(
            "Discovery product has no variants",
            product_id=item.get("id", "unknown"),
        )
        return None

    product_id = None
    match = _PRODUCT_GID.search(str(variants[0].get("productId", "")))
    if match:
        product_id = match.group(1)

    shaped_variants = []
    for index, variant in enumerate(variants):
        variant_id: Any = index + 1
        match = _VARIANT_GID.search(str(variant.get("id", "")))
        if match:
            variant_id = match.group(1)

        shaped_variants.append({
            "id": variant_id,
            "price": _cents_to_price(variant.get("price")),
            "sku": variant.get("sku") or f"MCP-{product_id or 'unknown'}-{index + 1}",
            "inventory_quantity": variant.get("inventory_quantity", 0),
            "title": variant.get("displayName") or item.get("title") or "Default",
        })

    title = item.get("title")
    handle = ""
    if title:
        handle = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")

    return {
        "id": product_id,
        "title": title or "Untitled Product",
        "body_html": item.get("description", ""),
        "handle": handle,
        "status": "active",
        "variants": shaped_variants,
    }


def _cents_to_price(price: Any) -> str:
    if isinstance(price, dict) and price.get("amount") is not None:
        return str((Decimal(str(price["amount"])) / 100).quantize(Decimal("0.01")))
    return "0.00"


def create_shopify_client(
    shop_domain: str,
    access_token: str = "",
    client_id: str = "",
    client_secret: str = "",
    api_version: str = DEFAULT_API_VERSION,
    saved_catalog: str = "",
    use_mock: bool = False,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
):
    """
    Build the remote catalog client for the configured credentials.

    Args:
        shop_domain: Store domain, e.g. "example.myshopify.com".
        access_token: Static Admin API token (shpat_*).
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        api_version: Admin API version.
        saved_catalog: Saved catalog used by discovery searches.
        use_mock: Return the in-memory client instead.
        http_client: Shared httpx client. One is created when omitted.
        timeout: Request timeout for a created client.

    Returns:
        ShopifyAdminClient when a static token or client credentials are
        configured, ShopifyDiscoveryClient otherwise, or
        InMemoryShopifyClient when use_mock is set.
    """
    if use_mock:
        from internal.infrastructure.shopify.mock_client import InMemoryShopifyClient

        logger.info("Using in-memory Shopify client")
        return InMemoryShopifyClient.with_sample_products()

    owns_http_client = http_client is None
    http = http_client or httpx.AsyncClient(timeout=timeout)

    tokens = ShopifyTokenProvider(
        http_client=http,
        shop_domain=shop_domain,
        access_token=access_token,
        client_id=client_id,
        client_secret=client_secret,
    )

    if tokens.is_configured:
        logger.info(
            "Using Shopify Admin API client",
            shop_domain=shop_domain,
            api_version=api_version,
            oauth=not tokens.has_static_token,
        )
        return ShopifyAdminClient(
            http_client=http,
            token_provider=tokens,
            shop_domain=shop_domain,
            api_version=api_version,
            owns_http_client=owns_http_client,
        )

    logger.warning(
        "No write-capable Shopify credentials, using read-only discovery client",
        shop_domain=shop_domain,
    )
    return ShopifyDiscoveryClient(
        http_client=http,
        token_provider=tokens,
        saved_catalog=saved_catalog,
        owns_http_client=owns_http_client,
    )
