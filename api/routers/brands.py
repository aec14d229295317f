"""
Brand API Endpoints.

Endpoints for managing the product catalog.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException

from api.models import (
    BrandCreateRequest,
    BrandResponse,
    BrandRestockRequest,
    SaleItemResponse,
)
from services.catalog_service import create_brand, list_brand_sales, list_brands, restock_brand

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/brands",
    response_model=BrandResponse,
    status_code=201,
    summary="Add Brand",
    description="Add a brand to the catalog with its unit price and opening stock."
)
def add_brand(request: BrandCreateRequest):
    try:
        brand = create_brand(name=request.name, price=request.price, stock=request.stock)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        logger.exception("Failed to add brand")
        raise HTTPException(status_code=500, detail=f"Failed to add brand: {str(e)}")

    return BrandResponse.from_domain(brand)


@router.get(
    "/brands",
    response_model=List[BrandResponse],
    summary="List Brands",
    description="List every brand in the catalog, ordered by name."
)
def get_brands():
    try:
        brands = list_brands()
    except RuntimeError as e:
        logger.exception("Failed to fetch brands")
        raise HTTPException(status_code=500, detail=f"Failed to fetch brands: {str(e)}")

    return [BrandResponse.from_domain(brand) for brand in brands]


@router.put(
    "/brands/{brand_id}",
    response_model=BrandResponse,
    summary="Restock Brand",
    description="Set a brand's stock and refresh its last-restocked time."
)
def update_brand_stock(brand_id: UUID, request: BrandRestockRequest):
    """
    Restock a brand.

    Stock is **set**, not incremented. This write is not coordinated with
    sales in flight for the same brand.
    """
    try:
        brand = restock_brand(brand_id, request.stock)
    except RuntimeError as e:
        logger.exception("Failed to update brand")
        raise HTTPException(status_code=500, detail=f"Failed to update brand: {str(e)}")

    if brand is None:
        raise HTTPException(status_code=404, detail=f"Brand not found: {brand_id}")

    return BrandResponse.from_domain(brand)


@router.get(
    "/brands/{brand_id}/sales",
    response_model=List[SaleItemResponse],
    summary="Brand Sales History",
    description="List every sale of one brand, oldest first."
)
def get_brand_sales(brand_id: UUID):
    try:
        sales = list_brand_sales(brand_id)
    except RuntimeError as e:
        logger.exception("Failed to fetch brand sales")
        raise HTTPException(status_code=500, detail=f"Failed to fetch sales: {str(e)}")

    if sales is None:
        raise HTTPException(status_code=404, detail=f"Brand not found: {brand_id}")

    return [SaleItemResponse.from_domain(sale) for sale in sales]
