"""
Get Product Details Use Case.

Resolves a single product by SKU, local ID or Shopify ID, reading
through the cache.
"""
from dataclasses import dataclass
from typing import Optional

from internal.domain.errors import DomainValidationError, ProductNotFoundError
from internal.domain.product import Product
from internal.domain.value_objects import Sku
from internal.usecase.cache_keys import CacheKeyGenerator
from internal.usecase.ports import CacheService, ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)

PRODUCT_CACHE_TTL = 3600


@dataclass
class GetProductInput:
    """Input for GetProductUseCase. At least one identifier is required."""

    sku: Optional[str] = None
    id: Optional[int] = None
    shopify_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.sku is None and self.id is None and self.shopify_id is None:
            raise DomainValidationError(
                "At least one identifier (sku, id, or shopify_id) must be provided"
            )


class GetProductUseCase:
    """
    Use case for reading product details.

    Lookup precedence is SKU, then local ID, then Shopify ID. Found products
    are cached under the ``products`` tag so any sync or delete evicts them.
    """

    def __init__(
        self,
        repository: ProductRepository,
        cache: CacheService,
        cache_keys: Optional[CacheKeyGenerator] = None,
    ):
        self._repository = repository
        self._cache = cache
        self._cache_keys = cache_keys or CacheKeyGenerator()

    async def execute(self, input_data: GetProductInput) -> Product:
        """
        Execute the get product use case.

        Args:
            input_data: Identifier to look the product up by.

        Returns:
            The product.

        Raises:
            InvalidSkuError: If a malformed SKU is given.
            ProductNotFoundError: If nothing matches the identifier.
        """
        if input_data.sku is not None:
            sku = Sku(input_data.sku)
            key = self._cache_keys.product_by_sku_key(sku.value)
            loader = lambda: self._repository.find_by_sku(sku)
            not_found = ProductNotFoundError.with_sku(sku.value)
        elif input_data.id is not None:
            key = self._cache_keys.product_by_id_key(input_data.id)
            loader = lambda: self._repository.find_by_id(input_data.id)
            not_found = ProductNotFoundError.with_id(input_data.id)
        else:
            key = self._cache_keys.product_by_shopify_id_key(input_data.shopify_id)
            loader = lambda: self._repository.find_by_shopify_id(input_data.shopify_id)
            not_found = ProductNotFoundError.with_shopify_id(input_data.shopify_id)

        async def load() -> Optional[dict]:
            product = await loader()
            return product.to_dict() if product is not None else None

        data = await self._cache.remember_with_tags(
            [self._cache_keys.products_tag()],
            key,
            PRODUCT_CACHE_TTL,
            load,
        )

        if data is None:
            logger.info("Product not found", cache_key=key)
            raise not_found

        return Product.from_dict(data)
