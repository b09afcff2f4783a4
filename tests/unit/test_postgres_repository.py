"""
Unit tests for PostgresProductRepository with a mocked asyncpg pool.
"""
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import asyncpg
import pytest
from unittest.mock import AsyncMock, MagicMock

from internal.domain.errors import DuplicateProductError
from internal.domain.value_objects import Currency, ProductStatus, Sku
from internal.infrastructure.postgres.repository import PostgresProductRepository


NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def product_row(**overrides):
    row = {
        "id": 1,
        "sku": "SHOPIFY-001",
        "title": "Test Product",
        "description": "<p>Description</p>",
        "price": 2999,
        "currency": "USD",
        "status": "active",
        "inventory_quantity": 100,
        "shopify_id": "123456",
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def variant_row(**overrides):
    row = {
        "id": 10,
        "product_id": 1,
        "sku": "SHOPIFY-001",
        "price": 2999,
        "currency": "USD",
        "inventory_quantity": 100,
        "shopify_variant_id": "111",
        "weight": Decimal("0.5"),
        "weight_unit": "kg",
    }
    row.update(overrides)
    return row


def async_cm(value):
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=value)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=0)
    conn.execute = AsyncMock()
    conn.transaction = MagicMock(return_value=async_cm(None))
    return conn


@pytest.fixture
def repository(conn):
    pool = MagicMock()
    pool.acquire = MagicMock(return_value=async_cm(conn))
    return PostgresProductRepository(pool)


class TestPostgresProductRepository:
    """Tests for PostgresProductRepository."""

    @pytest.mark.asyncio
    async def test_find_by_sku_maps_rows(self, repository, conn):
        conn.fetchrow.return_value = product_row()
        conn.fetch.return_value = [variant_row()]

        product = await repository.find_by_sku(Sku("SHOPIFY-001"))

        assert product.id == 1
        assert product.sku.value == "SHOPIFY-001"
        assert product.price.amount == 2999
        assert product.price.currency == Currency.USD
        assert product.status == ProductStatus.ACTIVE
        assert product.shopify_id == "123456"
        assert len(product.variants) == 1
        assert product.variants[0].weight == 0.5
        assert product.variants[0].shopify_variant_id == "111"
        assert conn.fetchrow.call_args.args[1] == "SHOPIFY-001"

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, repository, conn):
        assert await repository.find_by_shopify_id("999") is None
        conn.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reads_skip_deleted_rows(self, repository, conn):
        await repository.find_by_id(1)

        assert "deleted_at IS NULL" in conn.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_find_all_groups_variants(self, repository, conn):
        conn.fetch.side_effect = [
            [product_row(id=2, sku="B"), product_row(id=1, sku="A")],
            [variant_row(id=20, product_id=2, sku="B-1"), variant_row(id=10, product_id=1, sku="A-1")],
        ]
        conn.fetchval.return_value = 12

        page = await repository.find_all(page=2, per_page=2)

        assert page.total == 12
        assert page.page == 2
        assert [p.sku.value for p in page.data] == ["B", "A"]
        assert page.data[0].variants[0].sku.value == "B-1"
        limit, offset = conn.fetch.call_args_list[0].args[1:]
        assert (limit, offset) == (2, 2)

    @pytest.mark.asyncio
    async def test_save_uses_shopify_id_conflict_target(self, repository, conn, product):
        conn.fetchrow.side_effect = [product_row(), variant_row()]

        saved = await repository.save(product.with_id(None))

        query = conn.fetchrow.call_args_list[0].args[0]
        assert "ON CONFLICT (shopify_id)" in query
        assert "deleted_at = NULL" in query
        assert saved.id == 1
        assert saved.variants[0].id == 10
        conn.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_save_without_shopify_id_conflicts_on_sku(self, repository, conn, product):
        conn.fetchrow.side_effect = [product_row(shopify_id=None)]
        local = replace(product, id=None, shopify_id=None, variants=())

        await repository.save(local)

        assert "ON CONFLICT (sku)" in conn.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_save_unique_violation(self, repository, conn, product):
        conn.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(DuplicateProductError):
            await repository.save(product)

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, repository, conn):
        await repository.delete(Sku("SHOPIFY-001"))

        query, sku = conn.execute.call_args.args
        assert "SET deleted_at = now()" in query
        assert sku == "SHOPIFY-001"

    @pytest.mark.asyncio
    async def test_exists_and_count(self, repository, conn):
        conn.fetchval.side_effect = [True, 5]

        assert await repository.exists_by_sku(Sku("SHOPIFY-001")) is True
        assert await repository.count() == 5
