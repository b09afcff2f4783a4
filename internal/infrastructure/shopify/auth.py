"""
Shopify credential handling.

Resolves the token used for API calls: either a static Admin API token
(``shpat_*``) or one minted through the OAuth client-credentials grant.
"""
import time
from typing import Optional

import httpx

from internal.domain.errors import RemoteApiError
from internal.infrastructure.metrics.prometheus import SHOPIFY_API_REQUESTS
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


STATIC_TOKEN_PREFIX = "shpat_"
PLACEHOLDER_TOKEN = "your-access-token"
PLACEHOLDER_CLIENT_ID = "your-api-key"
PLACEHOLDER_CLIENT_SECRET = "your-api-secret"

DEFAULT_TOKEN_LIFETIME = 3600
TOKEN_EXPIRY_MARGIN = 60

NO_CREDENTIALS_MESSAGE = (
    "No valid Shopify credentials configured. Provide either "
    "SHOPIFY_ACCESS_TOKEN (shpat_*) or SHOPIFY_API_KEY + SHOPIFY_API_SECRET."
)
APP_NOT_INSTALLED_MESSAGE = (
    "Shopify app is not installed on this store. Use an Admin API access "
    "token (shpat_*) from a custom app instead."
)


def has_static_token(access_token: Optional[str]) -> bool:
    return bool(
        access_token
        and access_token != PLACEHOLDER_TOKEN
        and access_token.startswith(STATIC_TOKEN_PREFIX)
    )


def has_client_credentials(client_id: Optional[str], client_secret: Optional[str]) -> bool:
    return bool(
        client_id
        and client_secret
        and client_id != PLACEHOLDER_CLIENT_ID
        and client_secret != PLACEHOLDER_CLIENT_SECRET
    )


class ShopifyTokenProvider:
    """
    Supplies access tokens for a shop.

    A static token always wins. Otherwise a token is requested from
    ``https://{shop}/admin/oauth/access_token`` and reused until 60 seconds
    before it expires.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        shop_domain: str,
        access_token: str = "",
        client_id: str = "",
        client_secret: str = "",
    ) -> None:
        self._http = http_client
        self._shop_domain = shop_domain
        self._access_token = access_token
        self._client_id = client_id
        self._client_secret = client_secret
        self._cached_token: Optional[str] = None
        self._expires_at = 0.0

    @property
    def oauth_endpoint(self) -> str:
        return f"https://{self._shop_domain}/admin/oauth/access_token"

    @property
    def has_static_token(self) -> bool:
        return has_static_token(self._access_token)

    @property
    def can_use_oauth(self) -> bool:
        return has_client_credentials(self._client_id, self._client_secret)

    @property
    def is_configured(self) -> bool:
        return self.has_static_token or self.can_use_oauth

    async def get_token(self) -> str:
        """
        Return a usable access token.

        Raises:
            RemoteApiError: 401 when no credentials are configured or the
                OAuth request is rejected.
        """
        if self.has_static_token:
            return self._access_token

        if not self.can_use_oauth:
            raise RemoteApiError.unauthorized(NO_CREDENTIALS_MESSAGE)

        return await self.get_oauth_token()

    async def get_oauth_token(self) -> str:
        """
        Return the cached OAuth token or request a new one.

        Raises:
            RemoteApiError: If the token endpoint rejects the request.
        """
        if self._cached_token and time.monotonic() < self._expires_at:
            logger.debug("Using cached OAuth token", shop_domain=self._shop_domain)
            return self._cached_token

        logger.debug(
            "Requesting new OAuth token",
            endpoint=self.oauth_endpoint,
            client_id=self._client_id,
        )

        try:
            response = await self._http.post(
                self.oauth_endpoint,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
            )
        except httpx.HTTPError as e:
            SHOPIFY_API_REQUESTS.labels(api="oauth", method="POST", status_code="error").inc()
            raise RemoteApiError(f"OAuth token request failed: {e}") from e

        SHOPIFY_API_REQUESTS.labels(
            api="oauth", method="POST", status_code=str(response.status_code)
        ).inc()

        if response.is_error:
            body = response.text
            if "app_not_installed" in body:
                logger.error(
                    "OAuth failed: app not installed on store",
                    shop_domain=self._shop_domain,
                )
                raise RemoteApiError.unauthorized(APP_NOT_INSTALLED_MESSAGE)

            logger.error(
                "OAuth token request failed",
                status=response.status_code,
                body=body,
            )
            raise RemoteApiError(
                f"Failed to obtain OAuth token: {body}",
                response.status_code,
            )

        data = response.json()
        token = data["access_token"]
        expires_in = int(data.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
        lifetime = max(TOKEN_EXPIRY_MARGIN, expires_in - TOKEN_EXPIRY_MARGIN)

        self._cached_token = token
        self._expires_at = time.monotonic() + lifetime

        logger.debug("OAuth token obtained and cached", expires_in=expires_in)
        return token
