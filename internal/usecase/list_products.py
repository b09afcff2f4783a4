"""
List Products Use Case.

Paginated product listing served from the cache when possible.
"""
from dataclasses import dataclass
from typing import Optional

from internal.domain.errors import DomainValidationError
from internal.usecase.cache_keys import CacheKeyGenerator
from internal.usecase.ports import CacheService, ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)

PRODUCTS_LIST_CACHE_TTL = 300
MAX_PER_PAGE = 100


@dataclass
class ListProductsInput:
    """Input for ListProductsUseCase."""

    page: int = 1
    per_page: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise DomainValidationError("Page must be at least 1")
        if not 1 <= self.per_page <= MAX_PER_PAGE:
            raise DomainValidationError(
                f"Per page must be between 1 and {MAX_PER_PAGE}"
            )


class ListProductsUseCase:
    """Use case for listing products, newest first."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: CacheService,
        cache_keys: Optional[CacheKeyGenerator] = None,
    ):
        self._repository = repository
        self._cache = cache
        self._cache_keys = cache_keys or CacheKeyGenerator()

    async def execute(self, input_data: ListProductsInput) -> dict:
        """
        Execute the list use case.

        Returns:
            Page mapping with ``data``, ``total``, ``page``, ``per_page``
            and ``last_page``.
        """
        key = self._cache_keys.products_list_key(input_data.page, input_data.per_page)

        async def load() -> dict:
            page = await self._repository.find_all(
                page=input_data.page,
                per_page=input_data.per_page,
            )
            logger.debug(
                "Loaded products page",
                page=input_data.page,
                per_page=input_data.per_page,
                total=page.total,
            )
            return page.to_dict()

        return await self._cache.remember_with_tags(
            [self._cache_keys.products_tag()],
            key,
            PRODUCTS_LIST_CACHE_TTL,
            load,
        )
