"""
Unit tests for BulkImportUseCase.
"""
from dataclasses import replace

import pytest
from unittest.mock import AsyncMock, MagicMock

from internal.domain.errors import RemoteApiError, SyncFailedError
from internal.usecase.bulk_import import (
    BulkImportInput,
    BulkImportResult,
    BulkImportUseCase,
)
from internal.usecase.sync_product import SyncProductUseCase


def build_use_case(existing_ids=(), failing_ids=(), max_concurrency=1):
    repository = MagicMock()

    async def exists_by_shopify_id(shopify_id):
        return shopify_id in existing_ids

    repository.exists_by_shopify_id = AsyncMock(side_effect=exists_by_shopify_id)

    sync_use_case = MagicMock()

    async def execute(input_dto):
        if input_dto.shopify_id in failing_ids:
            raise SyncFailedError(
                f"Failed to sync product from Shopify: {input_dto.shopify_id}",
                shopify_id=input_dto.shopify_id,
            )
        return MagicMock()

    sync_use_case.execute = AsyncMock(side_effect=execute)

    use_case = BulkImportUseCase(
        sync_use_case=sync_use_case,
        repository=repository,
        max_concurrency=max_concurrency,
    )
    return use_case, sync_use_case, repository


class TestBulkImportResult:
    """Tests for BulkImportResult."""

    def test_empty_result(self):
        result = BulkImportResult()

        assert result.total_processed == 0
        assert result.success_rate == 0.0
        assert not result.has_errors

    def test_to_dict(self):
        result = BulkImportResult(
            success_count=2,
            failed_count=1,
            skipped_count=0,
            errors=[{"shopifyId": "3", "error": "boom"}],
        )

        assert result.to_dict() == {
            "successCount": 2,
            "failedCount": 1,
            "skippedCount": 0,
            "totalProcessed": 3,
            "successRate": 66.67,
            "errors": [{"shopifyId": "3", "error": "boom"}],
        }


class TestBulkImportUseCase:
    """Tests for BulkImportUseCase."""

    @pytest.mark.asyncio
    async def test_all_products_imported(self):
        use_case, sync_use_case, _ = build_use_case()

        result = await use_case.execute(BulkImportInput(["1", "2", "3"]))

        assert result.success_count == 3
        assert result.failed_count == 0
        assert result.skipped_count == 0
        assert result.success_rate == 100.0
        assert sync_use_case.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_duplicates_are_skipped(self):
        use_case, sync_use_case, _ = build_use_case(existing_ids={"2"})

        result = await use_case.execute(BulkImportInput(["1", "2", "3"]))

        assert result.success_count == 2
        assert result.skipped_count == 1
        synced_ids = [c.args[0].shopify_id for c in sync_use_case.execute.call_args_list]
        assert synced_ids == ["1", "3"]

    @pytest.mark.asyncio
    async def test_skip_duplicates_passes_no_force(self):
        """Test that skip_duplicates=True syncs without forcing updates."""
        use_case, sync_use_case, _ = build_use_case()

        await use_case.execute(BulkImportInput(["1"], skip_duplicates=True))

        assert sync_use_case.execute.call_args.args[0].force_update is False

    @pytest.mark.asyncio
    async def test_without_skip_duplicates_existing_are_refetched(self):
        use_case, sync_use_case, repository = build_use_case(existing_ids={"1"})

        result = await use_case.execute(BulkImportInput(["1"], skip_duplicates=False))

        assert result.success_count == 1
        assert result.skipped_count == 0
        repository.exists_by_shopify_id.assert_not_awaited()
        assert sync_use_case.execute.call_args.args[0].force_update is True

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        """Test that one failing item does not stop the batch."""
        use_case, sync_use_case, _ = build_use_case(failing_ids={"2"})

        result = await use_case.execute(BulkImportInput(["1", "2", "3"]))

        assert result.success_count == 2
        assert result.failed_count == 1
        assert result.has_errors
        assert result.errors == [
            {"shopifyId": "2", "error": "Failed to sync product from Shopify: 2"}
        ]
        assert round(result.success_rate, 2) == 66.67
        assert sync_use_case.execute.await_count == 3

    @pytest.mark.asyncio
    async def test_repository_error_counts_as_failure(self):
        use_case, _, repository = build_use_case()
        repository.exists_by_shopify_id = AsyncMock(side_effect=ConnectionError("db down"))

        result = await use_case.execute(BulkImportInput(["1"]))

        assert result.failed_count == 1
        assert result.errors[0]["error"] == "db down"

    @pytest.mark.asyncio
    async def test_concurrent_import_keeps_exact_counts(self):
        use_case, sync_use_case, _ = build_use_case(
            existing_ids={"4"},
            failing_ids={"2", "5"},
            max_concurrency=3,
        )

        ids = [str(i) for i in range(1, 9)]
        result = await use_case.execute(BulkImportInput(ids))

        assert result.success_count == 5
        assert result.failed_count == 2
        assert result.skipped_count == 1
        assert result.total_processed == 8
        assert {e["shopifyId"] for e in result.errors} == {"2", "5"}

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        use_case, sync_use_case, _ = build_use_case()

        result = await use_case.execute(BulkImportInput([]))

        assert result.total_processed == 0
        sync_use_case.execute.assert_not_awaited()

    def test_input_from_dict(self):
        input_dto = BulkImportInput.from_dict({"shopify_ids": [1, 2]})

        assert input_dto.shopify_ids == ["1", "2"]
        assert input_dto.skip_duplicates is True
        assert input_dto.count() == 2


def remote_product(shopify_id):
    return {
        "id": int(shopify_id),
        "title": f"Product {shopify_id}",
        "status": "active",
        "variants": [
            {
                "id": 1000 + int(shopify_id),
                "sku": f"SKU-{shopify_id}",
                "price": "10.00",
                "inventory_quantity": 1,
            }
        ],
    }


class TestBulkImportWithSync:
    """Bulk import running the real sync use case against a mocked remote client."""

    @pytest.mark.asyncio
    async def test_remote_fetched_once_per_new_id(self, product):
        stored = {"2": replace(product, shopify_id="2")}
        repository = MagicMock()
        repository.exists_by_shopify_id = AsyncMock(side_effect=lambda i: i in stored)
        repository.find_by_shopify_id = AsyncMock(side_effect=lambda i: stored.get(i))

        async def save(p):
            stored[p.shopify_id] = p.with_id(len(stored) + 1)
            return stored[p.shopify_id]

        repository.save = AsyncMock(side_effect=save)

        async def get_product(shopify_id):
            if shopify_id == "3":
                raise RemoteApiError("Shopify API error", 500)
            return remote_product(shopify_id)

        remote_client = MagicMock()
        remote_client.get_product = AsyncMock(side_effect=get_product)
        dispatcher = MagicMock()
        dispatcher.dispatch = AsyncMock()
        cache = MagicMock()
        cache.flush_tags = AsyncMock(return_value=0)

        sync_use_case = SyncProductUseCase(remote_client, repository, dispatcher, cache)
        use_case = BulkImportUseCase(sync_use_case=sync_use_case, repository=repository)

        result = await use_case.execute(BulkImportInput(["1", "2", "3", "4"]))

        assert remote_client.get_product.await_count == 3
        assert [c.args[0] for c in remote_client.get_product.await_args_list] == ["1", "3", "4"]
        assert result.skipped_count == 1
        assert result.failed_count == 1
        assert result.success_count == 2
        assert result.errors[0]["shopifyId"] == "3"
        assert stored["4"].sku.value == "SKU-4"
