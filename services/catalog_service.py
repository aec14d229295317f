"""
Catalog service for managing brands.

Thin layer over brand_repository: input normalization for new brands and
restocks, plus logging. Restocking sets stock directly and is not coordinated
with concurrent sales.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from domain.brand import Brand
from domain.sale import SaleRecord
from domain.time import utc_now
from repositories import brand_repository, sale_repository

logger = logging.getLogger(__name__)


def create_brand(name: str, price: Decimal, stock: int) -> Brand:
    """
    Add a brand to the catalog.

    Raises:
        ValueError: If name is blank, price < 0 or stock < 0
        RuntimeError: If Supabase reports an error
    """
    brand = brand_repository.create_brand(name=name, price=price, stock=stock)
    logger.info(
        "Brand created",
        extra={"brand_id": str(brand.brand_id), "brand_name": brand.name, "stock": brand.stock},
    )
    return brand


def list_brands() -> List[Brand]:
    return brand_repository.list_brands()


def restock_brand(brand_id: UUID, stock: int) -> Optional[Brand]:
    """
    Set a brand's stock and refresh last_restocked.

    Returns:
        The updated Brand, or None if the brand does not exist
    """
    brand = brand_repository.set_brand_stock(brand_id, stock, utc_now())
    if brand is None:
        logger.warning("Restock for unknown brand", extra={"brand_id": str(brand_id)})
    else:
        logger.info("Brand restocked", extra={"brand_id": str(brand_id), "stock": stock})
    return brand


def list_brand_sales(brand_id: UUID) -> Optional[List[SaleRecord]]:
    """
    Sales history of one brand, oldest first.

    Returns:
        List of sales, or None if the brand does not exist
    """
    if brand_repository.get_brand_by_id(brand_id) is None:
        return None
    return sale_repository.list_sales_by_brand(brand_id)


__all__ = [
    "create_brand",
    "list_brands",
    "restock_brand",
    "list_brand_sales",
]
