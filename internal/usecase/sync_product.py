"""
Sync Product From Shopify Use Case.

Pulls a single product from the remote catalog and reconciles it with the
local store.
"""
from typing import Optional

from internal.domain.errors import RemoteApiError, SyncFailedError
from internal.domain.events import ProductSynced
from internal.domain.product import Product
from internal.usecase.cache_keys import CacheKeyGenerator
from internal.usecase.ports import (
    CacheService,
    EventDispatcher,
    ProductRepository,
    RemoteCatalogClient,
)
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class SyncProductInput:
    """Input DTO for syncing a product."""

    def __init__(self, shopify_id: str, force_update: bool = True) -> None:
        """
        Initialize sync product input.

        Args:
            shopify_id: Remote product ID.
            force_update: Re-fetch even if the product already exists locally.
        """
        self.shopify_id = str(shopify_id)
        self.force_update = force_update

    @classmethod
    def from_dict(cls, data: dict) -> "SyncProductInput":
        """Create SyncProductInput from dictionary."""
        return cls(
            shopify_id=str(data.get("shopify_id", "")),
            force_update=bool(data.get("force_update", True)),
        )


class SyncProductUseCase:
    """
    Use case for syncing one product from Shopify.

    This use case:
    1. Looks up the local product by Shopify ID
    2. Returns it untouched when it exists and no update is forced
    3. Fetches the remote product and builds a fresh aggregate
    4. Keeps the local ID so the save updates instead of inserting
    5. Persists, flushes the product listing cache and emits ProductSynced
    """

    def __init__(
        self,
        remote_client: RemoteCatalogClient,
        repository: ProductRepository,
        event_dispatcher: EventDispatcher,
        cache: CacheService,
        cache_keys: Optional[CacheKeyGenerator] = None,
    ) -> None:
        """
        Initialize the use case.

        Args:
            remote_client: Remote catalog client.
            repository: Product repository for persistence.
            event_dispatcher: Dispatcher for domain events.
            cache: Cache service for invalidation.
            cache_keys: Cache key generator.
        """
        self._remote_client = remote_client
        self._repository = repository
        self._event_dispatcher = event_dispatcher
        self._cache = cache
        self._cache_keys = cache_keys or CacheKeyGenerator()

    async def execute(self, input_dto: SyncProductInput) -> Product:
        """
        Execute the sync product use case.

        Args:
            input_dto: Input data for the sync.

        Returns:
            The persisted product, or the existing one when the sync was skipped.

        Raises:
            SyncFailedError: If any step fails. The original error is
                available as ``cause`` and ``__cause__``.
        """
        shopify_id = input_dto.shopify_id
        logger.info("Starting product sync", shopify_id=shopify_id)

        try:
            existing = await self._repository.find_by_shopify_id(shopify_id)
            if existing is not None and not input_dto.force_update:
                logger.info(
                    "Product already exists, skipping sync",
                    shopify_id=shopify_id,
                    sku=existing.sku.value,
                )
                return existing

            shopify_data = await self._remote_client.get_product(shopify_id)
            if not shopify_data:
                raise RemoteApiError.product_not_found(shopify_id)

            product = Product.from_shopify_data(shopify_data)

            if existing is not None:
                product = product.with_id(existing.id)

            saved = await self._repository.save(product)

            await self._cache.flush_tags([self._cache_keys.products_tag()])

            await self._event_dispatcher.dispatch(ProductSynced(product=saved))

            logger.info(
                "Product synced successfully",
                shopify_id=shopify_id,
                sku=saved.sku.value,
                product_id=saved.id,
            )
            return saved

        except Exception as e:
            logger.error(
                "Product sync failed",
                shopify_id=shopify_id,
                error=str(e),
            )
            raise SyncFailedError.from_remote_error(shopify_id, e) from e
