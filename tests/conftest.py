"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timezone

import pytest

from internal.domain.product import Product, ProductVariant
from internal.domain.value_objects import Currency, Price, ProductStatus, Sku


@pytest.fixture
def shopify_product_data():
    """Sample Shopify Admin API product payload."""
    return {
        "id": 123456,
        "title": "Test Product",
        "body_html": "<p>Description</p>",
        "status": "active",
        "variants": [
            {
                "id": 111,
                "sku": "SHOPIFY-001",
                "price": "29.99",
                "inventory_quantity": 100,
                "weight": 0.5,
                "weight_unit": "kg",
            }
        ],
    }


@pytest.fixture
def product():
    """A persisted product with one variant."""
    now = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    return Product(
        sku=Sku("SHOPIFY-001"),
        title="Test Product",
        price=Price(2999, Currency.USD),
        status=ProductStatus.ACTIVE,
        inventory_quantity=100,
        created_at=now,
        updated_at=now,
        id=1,
        description="<p>Description</p>",
        shopify_id="123456",
        variants=(
            ProductVariant(
                sku=Sku("SHOPIFY-001"),
                price=Price(2999, Currency.USD),
                inventory_quantity=100,
                id=10,
                shopify_variant_id="111",
            ),
        ),
    )
