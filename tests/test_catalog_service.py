"""
Tests for `services/catalog_service.py`.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from services.catalog_service import create_brand, list_brand_sales, list_brands, restock_brand


def test_create_brand_persists_row(fake_db) -> None:
    brand = create_brand(name="  Camel Blue ", price=Decimal("12.50"), stock=40)

    assert brand.name == "Camel Blue"
    assert brand.last_restocked is not None
    row = fake_db.brand_row(brand.brand_id)
    assert row["name"] == "Camel Blue"
    assert row["stock"] == 40
    assert Decimal(row["price"]) == Decimal("12.50")


@pytest.mark.parametrize(
    "name, price, stock",
    [("", Decimal("1.00"), 1), ("Brand", Decimal("-1"), 1), ("Brand", Decimal("1.00"), -1)],
)
def test_create_brand_rejects_invalid_values(fake_db, name, price, stock) -> None:
    with pytest.raises(ValueError):
        create_brand(name=name, price=price, stock=stock)

    assert fake_db.tables["brands"] == []


def test_list_brands_sorted_by_name(fake_db) -> None:
    fake_db.add_brand("Winston")
    fake_db.add_brand("Camel")
    fake_db.add_brand("Marlboro")

    assert [brand.name for brand in list_brands()] == ["Camel", "Marlboro", "Winston"]


def test_restock_sets_stock(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel", stock=3)

    brand = restock_brand(brand_id, 25)

    assert brand.stock == 25
    assert fake_db.brand_row(brand_id)["stock"] == 25


def test_restock_unknown_brand(fake_db) -> None:
    assert restock_brand(uuid4(), 5) is None


def test_restock_rejects_negative_stock(fake_db) -> None:
    brand_id = fake_db.add_brand("Camel", stock=3)

    with pytest.raises(ValueError):
        restock_brand(brand_id, -1)

    assert fake_db.brand_row(brand_id)["stock"] == 3


def test_list_brand_sales(fake_db) -> None:
    brand_a = fake_db.add_brand("Brand A")
    brand_b = fake_db.add_brand("Brand B")
    fake_db.add_sale(brand_a, 1, "10.00", "10.00", datetime(2025, 6, 2, tzinfo=timezone.utc))
    fake_db.add_sale(brand_b, 1, "10.00", "10.00", datetime(2025, 6, 3, tzinfo=timezone.utc))
    fake_db.add_sale(brand_a, 2, "20.00", "20.00", datetime(2025, 6, 1, tzinfo=timezone.utc))

    sales = list_brand_sales(brand_a)

    assert [sale.quantity for sale in sales] == [2, 1]
    assert all(sale.brand_name == "Brand A" for sale in sales)


def test_list_brand_sales_unknown_brand(fake_db) -> None:
    assert list_brand_sales(uuid4()) is None
