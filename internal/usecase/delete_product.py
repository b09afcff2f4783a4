"""
Delete Product Use Case.
"""
from typing import Optional

from internal.domain.errors import ProductNotFoundError
from internal.domain.value_objects import Sku
from internal.usecase.cache_keys import CacheKeyGenerator
from internal.usecase.ports import CacheService, ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class DeleteProductUseCase:
    """Deletes a product by SKU and evicts cached product data."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: CacheService,
        cache_keys: Optional[CacheKeyGenerator] = None,
    ):
        self._repository = repository
        self._cache = cache
        self._cache_keys = cache_keys or CacheKeyGenerator()

    async def execute(self, sku: str) -> None:
        """
        Delete the product with the given SKU.

        Raises:
            InvalidSkuError: If the SKU is malformed.
            ProductNotFoundError: If no product has the SKU.
        """
        value = Sku(sku)

        if not await self._repository.exists_by_sku(value):
            raise ProductNotFoundError.with_sku(value.value)

        await self._repository.delete(value)
        await self._cache.flush_tags([self._cache_keys.products_tag()])

        logger.info("Product deleted", sku=value.value)
