"""
Tests for `domain/brand.py`.

Covers rules:
- name non-empty, price >= 0, stock integer >= 0.
- can_fulfill compares requested quantity with stock on hand.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

import pytest

from domain.brand import Brand

BRAND_ID = UUID("00000000-0000-0000-0000-000000000030")


def test_brand_requires_valid_fields() -> None:
    with pytest.raises(ValueError):
        Brand(brand_id=BRAND_ID, name="  ", price=Decimal("1"), stock=1)

    with pytest.raises(ValueError):
        Brand(brand_id=BRAND_ID, name="Camel", price=Decimal("-0.01"), stock=1)

    with pytest.raises(ValueError):
        Brand(brand_id=BRAND_ID, name="Camel", price=Decimal("1"), stock=-1)

    with pytest.raises(ValueError):
        Brand(brand_id=BRAND_ID, name="Camel", price=Decimal("1"), stock=1.5)  # type: ignore[arg-type]


def test_brand_last_restocked_must_be_utc() -> None:
    with pytest.raises(ValueError):
        Brand(
            brand_id=BRAND_ID,
            name="Camel",
            price=Decimal("1"),
            stock=1,
            last_restocked=datetime(2025, 1, 1),
        )


def test_can_fulfill() -> None:
    brand = Brand(brand_id=BRAND_ID, name="Camel", price=Decimal("0"), stock=3)

    assert brand.can_fulfill(3)
    assert brand.can_fulfill(1)
    assert not brand.can_fulfill(4)
