"""
Unit tests for inventory, read and delete use cases.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from internal.domain.errors import (
    DomainValidationError,
    InvalidInventoryError,
    InvalidSkuError,
    ProductNotFoundError,
)
from internal.domain.events import InventoryUpdated
from internal.domain.value_objects import Sku
from internal.usecase.delete_product import DeleteProductUseCase
from internal.usecase.get_product import GetProductInput, GetProductUseCase
from internal.usecase.list_products import ListProductsInput, ListProductsUseCase
from internal.usecase.ports import ProductPage
from internal.usecase.update_inventory import (
    UpdateInventoryInput,
    UpdateInventoryUseCase,
)


def cache_mock(cached=None):
    """Cache whose remember_with_tags returns ``cached`` or runs the loader."""
    cache = MagicMock()

    async def remember_with_tags(tags, key, ttl, callback):
        if cached is not None:
            return cached
        return await callback()

    cache.remember_with_tags = AsyncMock(side_effect=remember_with_tags)
    cache.flush_tags = AsyncMock(return_value=0)
    return cache


class TagCache:
    """Dict-backed cache with tag flushing."""

    def __init__(self):
        self.values = {}
        self.tags = {}

    async def remember_with_tags(self, tags, key, ttl, callback):
        if key in self.values:
            return self.values[key]
        value = await callback()
        if value is not None:
            self.values[key] = value
            for tag in tags:
                self.tags.setdefault(tag, set()).add(key)
        return value

    async def flush_tags(self, tags):
        deleted = 0
        for tag in tags:
            for key in self.tags.pop(tag, set()):
                deleted += int(self.values.pop(key, None) is not None)
        return deleted


class InMemoryRepository:
    def __init__(self, product):
        self.products = {product.sku.value: product}

    async def find_by_sku(self, sku):
        return self.products.get(sku.value)

    async def save(self, product):
        self.products[product.sku.value] = product
        return product


class TestUpdateInventoryUseCase:
    """Tests for UpdateInventoryUseCase."""

    @pytest.mark.asyncio
    async def test_updates_quantity_and_dispatches_event(self, product):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock(return_value=product)
        repository.save = AsyncMock(side_effect=lambda p: p)
        dispatcher = MagicMock()
        dispatcher.dispatch = AsyncMock()

        cache = cache_mock()

        use_case = UpdateInventoryUseCase(repository, dispatcher, cache)
        await use_case.execute(
            UpdateInventoryInput(sku="shopify-001", quantity=40, reason="Recount")
        )

        repository.find_by_sku.assert_awaited_once_with(Sku("SHOPIFY-001"))
        saved = repository.save.call_args.args[0]
        assert saved.inventory_quantity == 40
        assert saved.id == product.id

        event = dispatcher.dispatch.call_args.args[0]
        assert isinstance(event, InventoryUpdated)
        assert event.previous_quantity == 100
        assert event.new_quantity == 40
        assert event.reason == "Recount"
        cache.flush_tags.assert_awaited_once_with(["products"])

    @pytest.mark.asyncio
    async def test_unknown_sku_raises_and_saves_nothing(self):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock(return_value=None)
        repository.save = AsyncMock()
        dispatcher = MagicMock()
        dispatcher.dispatch = AsyncMock()

        cache = cache_mock()

        use_case = UpdateInventoryUseCase(repository, dispatcher, cache)

        with pytest.raises(ProductNotFoundError) as exc_info:
            await use_case.execute(UpdateInventoryInput(sku="MISSING", quantity=1))

        assert exc_info.value.identifier == "MISSING"
        repository.save.assert_not_awaited()
        dispatcher.dispatch.assert_not_awaited()
        cache.flush_tags.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_sku_raises_before_lookup(self):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock()

        use_case = UpdateInventoryUseCase(repository, MagicMock(), cache_mock())

        with pytest.raises(InvalidSkuError):
            await use_case.execute(UpdateInventoryInput(sku="bad sku!", quantity=1))

        repository.find_by_sku.assert_not_awaited()

    def test_negative_quantity_rejected(self):
        with pytest.raises(InvalidInventoryError):
            UpdateInventoryInput(sku="SKU-1", quantity=-1)

    @pytest.mark.asyncio
    async def test_reads_after_update_see_new_quantity(self, product):
        repository = InMemoryRepository(product)
        cache = TagCache()
        dispatcher = MagicMock()
        dispatcher.dispatch = AsyncMock()
        get_product = GetProductUseCase(repository, cache)

        before = await get_product.execute(GetProductInput(sku="SHOPIFY-001"))
        await UpdateInventoryUseCase(repository, dispatcher, cache).execute(
            UpdateInventoryInput(sku="SHOPIFY-001", quantity=7)
        )
        after = await get_product.execute(GetProductInput(sku="SHOPIFY-001"))

        assert before.inventory_quantity == 100
        assert after.inventory_quantity == 7


class TestGetProductUseCase:
    """Tests for GetProductUseCase."""

    def test_input_requires_identifier(self):
        with pytest.raises(DomainValidationError):
            GetProductInput()

    @pytest.mark.asyncio
    async def test_get_by_sku_loads_through_cache(self, product):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock(return_value=product)
        cache = cache_mock()

        use_case = GetProductUseCase(repository, cache)
        result = await use_case.execute(GetProductInput(sku="shopify-001"))

        assert result == product
        args = cache.remember_with_tags.call_args.args
        assert args[0] == ["products"]
        assert args[1] == "product.sku.SHOPIFY-001"
        assert args[2] == 3600

    @pytest.mark.asyncio
    async def test_cache_hit_skips_repository(self, product):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock()
        cache = cache_mock(cached=product.to_dict())

        use_case = GetProductUseCase(repository, cache)
        result = await use_case.execute(GetProductInput(sku="SHOPIFY-001"))

        assert result.sku.value == "SHOPIFY-001"
        repository.find_by_sku.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sku_takes_precedence(self, product):
        repository = MagicMock()
        repository.find_by_sku = AsyncMock(return_value=product)
        repository.find_by_id = AsyncMock()
        cache = cache_mock()

        use_case = GetProductUseCase(repository, cache)
        await use_case.execute(GetProductInput(sku="SHOPIFY-001", id=99))

        repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found_by_shopify_id(self):
        repository = MagicMock()
        repository.find_by_shopify_id = AsyncMock(return_value=None)
        cache = cache_mock()

        use_case = GetProductUseCase(repository, cache)

        with pytest.raises(ProductNotFoundError) as exc_info:
            await use_case.execute(GetProductInput(shopify_id="777"))

        assert "Shopify ID '777'" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_not_found_by_id(self):
        repository = MagicMock()
        repository.find_by_id = AsyncMock(return_value=None)

        use_case = GetProductUseCase(repository, cache_mock())

        with pytest.raises(ProductNotFoundError):
            await use_case.execute(GetProductInput(id=5))


class TestListProductsUseCase:
    """Tests for ListProductsUseCase."""

    @pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (1, 101)])
    def test_invalid_pagination(self, page, per_page):
        with pytest.raises(DomainValidationError):
            ListProductsInput(page=page, per_page=per_page)

    @pytest.mark.asyncio
    async def test_list_returns_page_mapping(self, product):
        repository = MagicMock()
        repository.find_all = AsyncMock(
            return_value=ProductPage(data=[product], total=21, page=2, per_page=10)
        )
        cache = cache_mock()

        use_case = ListProductsUseCase(repository, cache)
        result = await use_case.execute(ListProductsInput(page=2, per_page=10))

        repository.find_all.assert_awaited_once_with(page=2, per_page=10)
        assert result["total"] == 21
        assert result["last_page"] == 3
        assert result["data"][0]["sku"] == "SHOPIFY-001"
        assert cache.remember_with_tags.call_args.args[1] == "products_json_2_10"
        assert cache.remember_with_tags.call_args.args[2] == 300


class TestDeleteProductUseCase:
    """Tests for DeleteProductUseCase."""

    @pytest.mark.asyncio
    async def test_delete_flushes_cache(self):
        repository = MagicMock()
        repository.exists_by_sku = AsyncMock(return_value=True)
        repository.delete = AsyncMock()
        cache = cache_mock()

        use_case = DeleteProductUseCase(repository, cache)
        await use_case.execute("sku-1")

        repository.delete.assert_awaited_once_with(Sku("SKU-1"))
        cache.flush_tags.assert_awaited_once_with(["products"])

    @pytest.mark.asyncio
    async def test_delete_unknown_raises(self):
        repository = MagicMock()
        repository.exists_by_sku = AsyncMock(return_value=False)
        repository.delete = AsyncMock()
        cache = cache_mock()

        use_case = DeleteProductUseCase(repository, cache)

        with pytest.raises(ProductNotFoundError):
            await use_case.execute("SKU-1")

        repository.delete.assert_not_awaited()
        cache.flush_tags.assert_not_awaited()
