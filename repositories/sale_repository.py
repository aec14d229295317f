"""
Sale repository (persistence).

This module provides *only* read operations for the SaleRecord domain entity.
Sales are written exclusively by the `record_sale_atomic` database function
(see services/sale_service.py), which inserts the sale and decrements brand
stock in one transaction.

Reads embed the referenced brand row so callers get the brand name without a
second round trip. A sale whose brand has been removed comes back with
`brand=None`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple
from uuid import UUID

from domain.sale import SaleRecord, SaleType
from repositories import client as db
from repositories.brand_repository import row_to_brand
from repositories.rows import (
    parse_decimal,
    parse_optional_datetime,
    parse_utc_datetime,
    to_iso_utc,
)

# Supabase table name for sale records.
# Keep this aligned with sql/schema.sql.
_SALES_TABLE: str = "sales"

# Embed the referenced brand (LEFT JOIN) under the key "brand".
_SALE_COLUMNS: str = "*, brand:brands(*)"


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row (with optional embedded brand) into a SaleRecord."""

    brand_row = row.get("brand")
    return SaleRecord(
        sale_id=UUID(str(row["sale_id"])),
        brand_id=UUID(str(row["brand_id"])),
        quantity=int(row["quantity"]),
        total_amount=parse_decimal(row["total_amount"]),
        amount_received=parse_decimal(row["amount_received"]),
        sale_type=SaleType(str(row["sale_type"])),
        sold_at=parse_utc_datetime(row["sold_at_utc"]),
        created_at=parse_optional_datetime(row.get("created_at_utc")),
        brand=row_to_brand(brand_row) if brand_row else None,
    )


def list_sales_page(page: int, page_size: int) -> Tuple[List[SaleRecord], int]:
    """
    Fetch one page of sales, newest first.

    Args:
        page: 1-based page number
        page_size: Number of sales per page

    Returns:
        (sales on this page, total number of sales)
    """

    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    offset = (page - 1) * page_size

    response = (
        db.get_supabase()
        .table(_SALES_TABLE)
        .select(_SALE_COLUMNS, count="exact")
        .order("sold_at_utc", desc=True)
        .range(offset, offset + page_size - 1)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list sales: {error}")

    rows = getattr(response, "data", None) or []
    total = getattr(response, "count", None) or 0
    return [_row_to_sale(row) for row in rows], int(total)


def list_sales_between(
    start: datetime,
    end: datetime,
    sale_type: Optional[SaleType] = None,
    brand_id: Optional[UUID] = None,
) -> List[SaleRecord]:
    """
    Fetch sales with sold_at in the inclusive range [start, end].

    Args:
        start: UTC lower bound
        end: UTC upper bound
        sale_type: Only sales of this type (optional)
        brand_id: Only sales of this brand (optional)

    Returns:
        List[SaleRecord] ordered by sold_at ascending (possibly empty)
    """

    query = (
        db.get_supabase()
        .table(_SALES_TABLE)
        .select(_SALE_COLUMNS)
        .gte("sold_at_utc", to_iso_utc(start, name="start"))
        .lte("sold_at_utc", to_iso_utc(end, name="end"))
    )

    if sale_type is not None:
        query = query.eq("sale_type", sale_type.value)

    if brand_id is not None:
        query = query.eq("brand_id", str(brand_id))

    response = query.order("sold_at_utc").execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to query sales: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_sale(row) for row in rows]


def list_sales_by_brand(brand_id: UUID) -> List[SaleRecord]:
    """Retrieve all sale records for a given brand."""

    response = (
        db.get_supabase()
        .table(_SALES_TABLE)
        .select(_SALE_COLUMNS)
        .eq("brand_id", str(brand_id))
        .order("sold_at_utc")
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list sales: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_sale(row) for row in rows]


__all__ = [
    "list_sales_page",
    "list_sales_between",
    "list_sales_by_brand",
]
