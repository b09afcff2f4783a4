"""
Bulk Import Products Use Case.

Runs a batch of Shopify IDs through the sync use case. Each item is
isolated: a failure is recorded in the result and the batch continues.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Iterable

from internal.usecase.ports import ProductRepository
from internal.usecase.sync_product import SyncProductInput, SyncProductUseCase
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class BulkImportInput:
    """Input DTO for a bulk import."""

    def __init__(
        self,
        shopify_ids: Iterable[str],
        skip_duplicates: bool = True,
    ) -> None:
        """
        Initialize bulk import input.

        Args:
            shopify_ids: Remote product IDs to import.
            skip_duplicates: Skip IDs that already exist locally. When False
                existing products are re-fetched and overwritten.
        """
        self.shopify_ids = [str(i) for i in shopify_ids]
        self.skip_duplicates = skip_duplicates

    @classmethod
    def from_dict(cls, data: dict) -> "BulkImportInput":
        """Create BulkImportInput from dictionary."""
        return cls(
            shopify_ids=data.get("shopify_ids", []),
            skip_duplicates=bool(data.get("skip_duplicates", True)),
        )

    def count(self) -> int:
        return len(self.shopify_ids)


@dataclass
class BulkImportResult:
    """Aggregate outcome of a bulk import."""
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    errors: list[dict] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.success_count + self.failed_count + self.skipped_count

    @property
    def has_errors(self) -> bool:
        return self.failed_count > 0

    @property
    def success_rate(self) -> float:
        """Share of successful items in percent, 0.0 for an empty batch."""
        total = self.total_processed
        if total == 0:
            return 0.0
        return self.success_count / total * 100

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "skippedCount": self.skipped_count,
            "totalProcessed": self.total_processed,
            "successRate": round(self.success_rate, 2),
            "errors": list(self.errors),
        }


class BulkImportUseCase:
    """
    Use case for importing many products from Shopify.

    Items run sequentially by default. With ``max_concurrency`` above 1 they
    run through a bounded pool; counts stay exact but the order of the
    error records is then unspecified.
    """

    def __init__(
        self,
        sync_use_case: SyncProductUseCase,
        repository: ProductRepository,
        max_concurrency: int = 1,
    ) -> None:
        """
        Initialize the use case.

        Args:
            sync_use_case: Single-product sync use case.
            repository: Product repository for duplicate checks.
            max_concurrency: Maximum number of items in flight.
        """
        self._sync_use_case = sync_use_case
        self._repository = repository
        self._max_concurrency = max(1, max_concurrency)

    async def execute(self, input_dto: BulkImportInput) -> BulkImportResult:
        """
        Execute the bulk import.

        Args:
            input_dto: IDs to import and duplicate handling.

        Returns:
            BulkImportResult with per-outcome counts and error records.
        """
        logger.info(
            "Starting bulk import",
            count=input_dto.count(),
            skip_duplicates=input_dto.skip_duplicates,
        )

        result = BulkImportResult()

        if self._max_concurrency == 1:
            for shopify_id in input_dto.shopify_ids:
                await self._import_one(shopify_id, input_dto.skip_duplicates, result)
        else:
            semaphore = asyncio.Semaphore(self._max_concurrency)

            async def bounded(shopify_id: str) -> None:
                async with semaphore:
                    await self._import_one(shopify_id, input_dto.skip_duplicates, result)

            await asyncio.gather(*(bounded(i) for i in input_dto.shopify_ids))

        logger.info("Bulk import completed", **result.to_dict())
        return result

    async def _import_one(
        self,
        shopify_id: str,
        skip_duplicates: bool,
        result: BulkImportResult,
    ) -> None:
        """
        Import a single ID and record its outcome in ``result``.

        Never raises for ordinary errors.
        """
        try:
            if skip_duplicates and await self._repository.exists_by_shopify_id(shopify_id):
                result.skipped_count += 1
                logger.debug("Skipping duplicate product", shopify_id=shopify_id)
                return

            await self._sync_use_case.execute(
                SyncProductInput(
                    shopify_id=shopify_id,
                    force_update=not skip_duplicates,
                )
            )
            result.success_count += 1
        except Exception as e:
            result.failed_count += 1
            result.errors.append({"shopifyId": shopify_id, "error": str(e)})
            logger.error(
                "Failed to import product",
                shopify_id=shopify_id,
                error=str(e),
            )
