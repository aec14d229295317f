"""
Brand repository (persistence).

This module provides *only* persistence operations for the Brand catalog.
It does not decrement stock for sales; that happens inside the
`record_sale_atomic` database function so the sale insert and the stock
update share one transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.brand import Brand
from domain.time import utc_now
from repositories import client as db
from repositories.rows import parse_decimal, parse_optional_datetime, to_iso_utc

# Supabase table name for the catalog.
# Keep this aligned with sql/schema.sql.
_BRANDS_TABLE: str = "brands"


def row_to_brand(row: Mapping[str, Any]) -> Brand:
    """Convert a Supabase row into a Brand."""

    return Brand(
        brand_id=UUID(str(row["brand_id"])),
        name=str(row["name"]),
        price=parse_decimal(row["price"]),
        stock=int(row["stock"]),
        last_restocked=parse_optional_datetime(row.get("last_restocked_utc")),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
    )


def create_brand(name: str, price: Decimal, stock: int) -> Brand:
    """
    Insert a new Brand.

    last_restocked is set to the creation time.

    Raises:
        ValueError: If the values violate Brand invariants
        RuntimeError: If Supabase reports an error
    """

    now = utc_now()
    brand = Brand(
        brand_id=uuid4(),
        name=name.strip(),
        price=price,
        stock=stock,
        last_restocked=now,
        created_at=now,
    )

    payload: dict[str, Any] = {
        "brand_id": str(brand.brand_id),
        "name": brand.name,
        "price": str(brand.price),
        "stock": brand.stock,
        "last_restocked_utc": to_iso_utc(now, name="last_restocked"),
        "created_at_utc": to_iso_utc(now, name="created_at"),
    }

    response = db.get_supabase().table(_BRANDS_TABLE).insert(payload).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to create brand: {error}")

    return brand


def list_brands() -> List[Brand]:
    """Return every Brand ordered by name."""

    response = db.get_supabase().table(_BRANDS_TABLE).select("*").order("name").execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list brands: {error}")

    rows = getattr(response, "data", None) or []
    return [row_to_brand(row) for row in rows]


def get_brand_by_id(brand_id: UUID) -> Optional[Brand]:
    """
    Retrieve a single Brand.

    Returns:
        Brand or None if not found
    """

    response = (
        db.get_supabase()
        .table(_BRANDS_TABLE)
        .select("*")
        .eq("brand_id", str(brand_id))
        .limit(1)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to get brand: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None

    return row_to_brand(rows[0])


def set_brand_stock(brand_id: UUID, stock: int, restocked_at: datetime) -> Optional[Brand]:
    """
    Set a Brand's stock directly (restock) and stamp last_restocked.

    This write is not coordinated with concurrent sales beyond the
    single-row atomicity of the UPDATE itself.

    Returns:
        The updated Brand, or None if no Brand has this id
    """

    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise ValueError("stock must be an integer >= 0")

    payload: dict[str, Any] = {
        "stock": stock,
        "last_restocked_utc": to_iso_utc(restocked_at, name="restocked_at"),
    }

    response = (
        db.get_supabase()
        .table(_BRANDS_TABLE)
        .update(payload)
        .eq("brand_id", str(brand_id))
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to update brand stock: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None

    return row_to_brand(rows[0])


__all__ = [
    "row_to_brand",
    "create_brand",
    "list_brands",
    "get_brand_by_id",
    "set_brand_stock",
]
