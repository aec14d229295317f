"""
Sales API Endpoints.

Endpoints for recording single and bulk sales and for listing sales history.
"""

import logging
from typing import Dict

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from api.models import (
    BulkSaleRequest,
    BulkSaleResponse,
    InventoryUpdateResponse,
    SaleCreateRequest,
    SaleFailureResponse,
    SaleItemResponse,
    SaleListResponse,
    SaleResponse,
)
from domain.sale import SaleErrorCode
from services.sale_service import SaleRequest, list_sales, record_bulk_sale, record_sale

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR: Dict[SaleErrorCode, int] = {
    SaleErrorCode.MISSING_FIELDS: 400,
    SaleErrorCode.INSUFFICIENT_PAYMENT: 400,
    SaleErrorCode.BRAND_NOT_FOUND: 404,
    SaleErrorCode.INSUFFICIENT_STOCK: 400,
    SaleErrorCode.VALIDATION_FAILED: 400,
    SaleErrorCode.TRANSACTION_ABORTED: 500,
}


def _to_service_request(item: SaleCreateRequest) -> SaleRequest:
    return SaleRequest(
        brand_id=item.brand_id,
        quantity=item.quantity,
        total_amount=item.total_amount,
        amount_received=item.amount_received,
    )


def _failure_response(status_code: int, body: SaleFailureResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=201,
    responses={
        400: {"model": SaleFailureResponse},
        404: {"model": SaleFailureResponse},
        500: {"model": SaleFailureResponse},
    },
    summary="Record Sale",
    description="Record one sale and decrement brand stock in a single transaction."
)
def create_sale(request: SaleCreateRequest):
    """
    Record a single sale.

    **Checks (in order):**
    1. All fields present → `MISSING_FIELDS`
    2. `amount_received >= total_amount` (0.01 tolerance) → `INSUFFICIENT_PAYMENT`
    3. Brand exists → `BRAND_NOT_FOUND` (404)
    4. Enough stock → `INSUFFICIENT_STOCK`
    5. `quantity` integer >= 1, `total_amount >= 0.01` → `VALIDATION_FAILED`

    The sale row and the stock decrement are committed together or not at all.
    """
    result = record_sale(_to_service_request(request))

    if not result.success:
        return _failure_response(
            _STATUS_BY_ERROR[result.error_code],
            SaleFailureResponse(
                error_code=result.error_code.value,
                message=result.error_message or "Failed to record sale",
                details=result.details,
            ),
        )

    return SaleResponse(
        success=True,
        message="Sale recorded successfully",
        sale=SaleItemResponse.from_domain(result.sale),
        inventory_update=InventoryUpdateResponse(
            brand_id=result.sale.brand_id,
            previous_stock=result.previous_stock,
            new_stock=result.new_stock,
        ),
    )


@router.post(
    "/sales/bulk",
    response_model=BulkSaleResponse,
    status_code=201,
    responses={400: {"model": SaleFailureResponse}, 500: {"model": SaleFailureResponse}},
    summary="Record Bulk Sale",
    description="Record a checkout basket item by item, stopping at the first failure."
)
def create_bulk_sale(request: BulkSaleRequest):
    """
    Record a multi-item checkout.

    Amounts are rounded to 2 decimal places. Each item is committed on its
    own, so when item N fails, items 0..N-1 **stay recorded** and are listed
    in the failure response alongside `sale_index = N`.
    """
    result = record_bulk_sale([_to_service_request(item) for item in request.sales])

    if not result.success:
        status_code = 500 if result.error_code is SaleErrorCode.TRANSACTION_ABORTED else 400
        return _failure_response(
            status_code,
            SaleFailureResponse(
                error_code=result.error_code.value,
                message=f"Failed to process sale at index {result.failed_index}: {result.error_message}",
                details=result.details,
                sale_index=result.failed_index,
                sales=[SaleItemResponse.from_domain(sale) for sale in result.sales],
            ),
        )

    return BulkSaleResponse(
        success=True,
        message=f"{len(result.sales)} sales recorded successfully",
        sales=[SaleItemResponse.from_domain(sale) for sale in result.sales],
    )


@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List Sales",
    description="Page through recorded sales, newest first."
)
def get_sales(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(20, ge=1, le=500, description="Sales per page"),
):
    try:
        sale_page = list_sales(page=page, page_size=limit)
    except RuntimeError as e:
        logger.exception("Failed to fetch sales")
        raise HTTPException(status_code=500, detail=f"Failed to fetch sales: {str(e)}")

    return SaleListResponse(
        sales=[SaleItemResponse.from_domain(sale) for sale in sale_page.sales],
        total_count=sale_page.total_count,
        total_pages=sale_page.total_pages,
        current_page=sale_page.current_page,
    )
