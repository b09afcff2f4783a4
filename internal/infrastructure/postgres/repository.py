"""
PostgreSQL Product Repository.

Implements the product repository port with asyncpg. Products are upserted
by Shopify ID (or SKU for products that never came from Shopify) and
variants by (product_id, sku), all inside one transaction.
"""
from typing import Optional

import asyncpg
from asyncpg import Pool

from internal.domain.errors import DuplicateProductError
from internal.domain.product import Product, ProductVariant
from internal.domain.value_objects import Currency, Price, ProductStatus, Sku
from internal.usecase.ports import ProductPage
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


PRODUCT_COLUMNS = """
    id, sku, title, description, price, currency, status,
    inventory_quantity, shopify_id, created_at, updated_at
"""

VARIANT_COLUMNS = """
    id, product_id, sku, price, currency, inventory_quantity,
    shopify_variant_id, weight, weight_unit
"""


class PostgresProductRepository:
    """
    PostgreSQL implementation of the Product Repository.

    Deletes are soft: rows keep their data with ``deleted_at`` set and are
    hidden from every read. Re-syncing a deleted product restores it.
    """

    def __init__(self, pool: Pool) -> None:
        """
        Initialize the repository.

        Args:
            pool: asyncpg connection pool.
        """
        self._pool = pool

    async def save(self, product: Product) -> Product:
        """
        Insert or update a product and its variants.

        The conflict target is ``shopify_id`` when the product has one,
        otherwise ``sku``. Concurrent saves of the same product are
        last-write-wins.

        Args:
            product: Product to persist.

        Returns:
            The product as stored, with database IDs assigned.

        Raises:
            DuplicateProductError: If the SKU already belongs to a product
                with a different Shopify ID.
        """
        conflict_target = "shopify_id" if product.shopify_id else "sku"

        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"""
                        INSERT INTO products (
                            sku, title, description, price, currency, status,
                            inventory_quantity, shopify_id, created_at, updated_at
                        ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                        ON CONFLICT ({conflict_target}) DO UPDATE SET
                            sku = EXCLUDED.sku,
                            title = EXCLUDED.title,
                            description = EXCLUDED.description,
                            price = EXCLUDED.price,
                            currency = EXCLUDED.currency,
                            status = EXCLUDED.status,
                            inventory_quantity = EXCLUDED.inventory_quantity,
                            shopify_id = EXCLUDED.shopify_id,
                            updated_at = EXCLUDED.updated_at,
                            deleted_at = NULL
                        RETURNING {PRODUCT_COLUMNS}
                        """,
                        product.sku.value,
                        product.title,
                        product.description,
                        product.price.amount,
                        product.price.currency.value,
                        product.status.value,
                        product.inventory_quantity,
                        product.shopify_id,
                        product.created_at,
                        product.updated_at,
                    )

                    variant_rows = []
                    for variant in product.variants:
                        variant_rows.append(
                            await conn.fetchrow(
                                f"""
                                INSERT INTO product_variants (
                                    product_id, sku, price, currency,
                                    inventory_quantity, shopify_variant_id,
                                    weight, weight_unit, created_at, updated_at
                                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, now(), now())
                                ON CONFLICT (product_id, sku) DO UPDATE SET
                                    price = EXCLUDED.price,
                                    currency = EXCLUDED.currency,
                                    inventory_quantity = EXCLUDED.inventory_quantity,
                                    shopify_variant_id = EXCLUDED.shopify_variant_id,
                                    weight = EXCLUDED.weight,
                                    weight_unit = EXCLUDED.weight_unit,
                                    updated_at = now()
                                RETURNING {VARIANT_COLUMNS}
                                """,
                                row["id"],
                                variant.sku.value,
                                variant.price.amount,
                                variant.price.currency.value,
                                variant.inventory_quantity,
                                variant.shopify_variant_id,
                                variant.weight,
                                variant.weight_unit,
                            )
                        )
        except asyncpg.UniqueViolationError as e:
            logger.warning(
                "Product save conflicts with another product",
                sku=product.sku.value,
                shopify_id=product.shopify_id,
                error=str(e),
            )
            raise DuplicateProductError.with_sku(product.sku.value) from e

        return self._row_to_entity(row, variant_rows)

    async def find_by_sku(self, sku: Sku) -> Optional[Product]:
        return await self._find_one("sku = $1", sku.value)

    async def find_by_shopify_id(self, shopify_id: str) -> Optional[Product]:
        return await self._find_one("shopify_id = $1", str(shopify_id))

    async def find_by_id(self, product_id: int) -> Optional[Product]:
        return await self._find_one("id = $1", product_id)

    async def find_all(self, page: int = 1, per_page: int = 10) -> ProductPage:
        """
        Get one page of products, newest first.

        Args:
            page: 1-based page number.
            per_page: Page size.

        Returns:
            ProductPage with the products and the total count.
        """
        offset = (page - 1) * per_page

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE deleted_at IS NULL
                ORDER BY created_at DESC, id DESC
                LIMIT $1 OFFSET $2
                """,
                per_page,
                offset,
            )
            total = await conn.fetchval(
                "SELECT COUNT(*) FROM products WHERE deleted_at IS NULL"
            )
            variants = await self._fetch_variants(conn, [row["id"] for row in rows])

        products = [self._row_to_entity(row, variants.get(row["id"], [])) for row in rows]
        return ProductPage(data=products, total=total or 0, page=page, per_page=per_page)

    async def delete(self, sku: Sku) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE products
                SET deleted_at = now()
                WHERE sku = $1 AND deleted_at IS NULL
                """,
                sku.value,
            )

    async def delete_by_id(self, product_id: int) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE products
                SET deleted_at = now()
                WHERE id = $1 AND deleted_at IS NULL
                """,
                product_id,
            )

    async def exists_by_sku(self, sku: Sku) -> bool:
        return await self._exists("sku = $1", sku.value)

    async def exists_by_shopify_id(self, shopify_id: str) -> bool:
        return await self._exists("shopify_id = $1", str(shopify_id))

    async def count(self) -> int:
        async with self._pool.acquire() as conn:
            total = await conn.fetchval(
                "SELECT COUNT(*) FROM products WHERE deleted_at IS NULL"
            )
            return total or 0

    async def _find_one(self, condition: str, value: object) -> Optional[Product]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE {condition} AND deleted_at IS NULL
                """,
                value,
            )

            if not row:
                return None

            variants = await self._fetch_variants(conn, [row["id"]])
            return self._row_to_entity(row, variants.get(row["id"], []))

    async def _exists(self, condition: str, value: object) -> bool:
        async with self._pool.acquire() as conn:
            return bool(
                await conn.fetchval(
                    f"""
                    SELECT EXISTS(
                        SELECT 1 FROM products
                        WHERE {condition} AND deleted_at IS NULL
                    )
                    """,
                    value,
                )
            )

    async def _fetch_variants(
        self,
        conn: asyncpg.Connection,
        product_ids: list[int],
    ) -> dict[int, list[asyncpg.Record]]:
        """
        Load variants for many products in one query.

        Returns:
            Mapping of product ID to its variant rows, ordered by ID.
        """
        if not product_ids:
            return {}

        rows = await conn.fetch(
            f"""
            SELECT {VARIANT_COLUMNS}
            FROM product_variants
            WHERE product_id = ANY($1::bigint[])
            ORDER BY id
            """,
            product_ids,
        )

        grouped: dict[int, list[asyncpg.Record]] = {}
        for row in rows:
            grouped.setdefault(row["product_id"], []).append(row)
        return grouped

    def _row_to_entity(
        self,
        row: asyncpg.Record,
        variant_rows: list[asyncpg.Record],
    ) -> Product:
        """
        Convert database rows to a Product entity.

        Args:
            row: Product row.
            variant_rows: Rows of the product's variants.

        Returns:
            Product entity.
        """
        variants = tuple(self._row_to_variant(v) for v in variant_rows)

        return Product(
            id=row["id"],
            sku=Sku(row["sku"]),
            title=row["title"],
            description=row["description"],
            price=Price(row["price"], Currency.from_string(row["currency"])),
            status=ProductStatus.from_string(row["status"]),
            inventory_quantity=row["inventory_quantity"],
            shopify_id=row["shopify_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            variants=variants,
        )

    def _row_to_variant(self, row: asyncpg.Record) -> ProductVariant:
        weight = row["weight"]
        return ProductVariant(
            id=row["id"],
            sku=Sku(row["sku"]),
            price=Price(row["price"], Currency.from_string(row["currency"])),
            inventory_quantity=row["inventory_quantity"],
            shopify_variant_id=row["shopify_variant_id"],
            weight=float(weight) if weight is not None else None,
            weight_unit=row["weight_unit"],
        )


async def create_pool(dsn: str, min_size: int = 2, max_size: int = 10) -> Pool:
    """
    Create an asyncpg connection pool.

    Args:
        dsn: Database connection string.
        min_size: Minimum pool size.
        max_size: Maximum pool size.

    Returns:
        asyncpg connection pool.
    """
    return await asyncpg.create_pool(
        dsn=dsn,
        min_size=min_size,
        max_size=max_size,
    )
