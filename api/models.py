"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.brand import Brand
from domain.report import BrandStats, DailyStats, ReportSummary
from domain.sale import SaleRecord


# ============================================================================
# Brand Models
# ============================================================================

class BrandCreateRequest(BaseModel):
    """Request to add a brand to the catalog."""
    name: str = Field(..., min_length=1, description="Brand name")
    price: Decimal = Field(..., ge=0, description="Unit price")
    stock: int = Field(..., ge=0, description="Units on hand")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Marlboro Gold",
                "price": "12.50",
                "stock": 40
            }
        }


class BrandRestockRequest(BaseModel):
    """Request to set a brand's stock."""
    stock: int = Field(..., ge=0, description="New units on hand")


class BrandResponse(BaseModel):
    """Single catalog entry."""
    brand_id: UUID
    name: str
    price: Decimal
    stock: int
    last_restocked: Optional[datetime] = None

    @classmethod
    def from_domain(cls, brand: Brand) -> "BrandResponse":
        return cls(
            brand_id=brand.brand_id,
            name=brand.name,
            price=brand.price,
            stock=brand.stock,
            last_restocked=brand.last_restocked,
        )


# ============================================================================
# Sale Models
# ============================================================================

class SaleCreateRequest(BaseModel):
    """
    Request to record one sale.

    Fields are loose; the sale service reports missing or
    mistyped values as MISSING_FIELDS and out-of-range values as
    VALIDATION_FAILED, in a fixed order.
    """
    brand_id: Any = Field(None, description="Brand ID (UUID)")
    quantity: Any = Field(None, description="Units sold (integer >= 1)")
    total_amount: Any = Field(None, description="Amount charged (>= 0.01)")
    amount_received: Any = Field(None, description="Amount paid (>= total_amount)")

    class Config:
        json_schema_extra = {
            "example": {
                "brand_id": "123e4567-e89b-12d3-a456-426614174000",
                "quantity": 2,
                "total_amount": 25.00,
                "amount_received": 30.00
            }
        }


class BulkSaleRequest(BaseModel):
    """Request to record a checkout basket."""
    sales: List[SaleCreateRequest] = Field(..., description="Line items in checkout order")


class SaleItemResponse(BaseModel):
    """Single recorded sale."""
    sale_id: UUID
    brand_id: UUID
    brand_name: Optional[str]
    quantity: int
    total_amount: Decimal
    amount_received: Decimal
    change_given: Decimal
    sale_type: str
    sold_at: datetime

    @classmethod
    def from_domain(cls, sale: SaleRecord) -> "SaleItemResponse":
        return cls(
            sale_id=sale.sale_id,
            brand_id=sale.brand_id,
            brand_name=sale.brand_name,
            quantity=sale.quantity,
            total_amount=sale.total_amount,
            amount_received=sale.amount_received,
            change_given=sale.change_given,
            sale_type=sale.sale_type.value,
            sold_at=sale.sold_at,
        )


class InventoryUpdateResponse(BaseModel):
    """Stock movement caused by a sale."""
    brand_id: UUID
    previous_stock: int
    new_stock: int


class SaleResponse(BaseModel):
    """Response after recording one sale."""
    success: bool
    message: str
    sale: SaleItemResponse
    inventory_update: InventoryUpdateResponse

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Sale recorded successfully",
                "sale": {
                    "sale_id": "123e4567-e89b-12d3-a456-426614174003",
                    "brand_id": "123e4567-e89b-12d3-a456-426614174000",
                    "brand_name": "Marlboro Gold",
                    "quantity": 2,
                    "total_amount": "25.00",
                    "amount_received": "30.00",
                    "change_given": "5.00",
                    "sale_type": "multi",
                    "sold_at": "2025-01-01T12:00:00Z"
                },
                "inventory_update": {
                    "brand_id": "123e4567-e89b-12d3-a456-426614174000",
                    "previous_stock": 40,
                    "new_stock": 38
                }
            }
        }


class BulkSaleResponse(BaseModel):
    """Response after recording a checkout basket."""
    success: bool
    message: str
    sales: List[SaleItemResponse]


class SaleFailureResponse(BaseModel):
    """
    Failed sale or bulk sale.

    `sales` lists bulk items committed before the failing `sale_index`.
    """
    success: bool = False
    error_code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    sale_index: Optional[int] = None
    sales: List[SaleItemResponse] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error_code": "INSUFFICIENT_STOCK",
                "message": "Insufficient stock for Marlboro Gold (Available: 1, Requested: 2)",
                "details": {"available_stock": 1, "requested_quantity": 2},
                "sale_index": 2,
                "sales": []
            }
        }


class SaleListResponse(BaseModel):
    """Paged sale listing."""
    sales: List[SaleItemResponse]
    total_count: int
    total_pages: int
    current_page: int


# ============================================================================
# Report Models
# ============================================================================

class ReportSummaryResponse(BaseModel):
    total_sales: int
    total_amount: Decimal
    amount_received: Decimal
    total_quantity: int
    balance: Decimal
    single_product_sales: int
    multi_product_sales: int
    average_sale_value: Decimal
    average_quantity: Decimal

    @classmethod
    def from_domain(cls, summary: ReportSummary) -> "ReportSummaryResponse":
        return cls(
            total_sales=summary.total_sales,
            total_amount=summary.total_amount,
            amount_received=summary.amount_received,
            total_quantity=summary.total_quantity,
            balance=summary.balance,
            single_product_sales=summary.single_product_sales,
            multi_product_sales=summary.multi_product_sales,
            average_sale_value=round(summary.average_sale_value, 2),
            average_quantity=round(summary.average_quantity, 2),
        )


class BrandStatsResponse(BaseModel):
    quantity: int
    total_amount: Decimal
    amount_received: Decimal

    @classmethod
    def from_domain(cls, stats: BrandStats) -> "BrandStatsResponse":
        return cls(
            quantity=stats.quantity,
            total_amount=stats.total_amount,
            amount_received=stats.amount_received,
        )


class DailyStatsResponse(BaseModel):
    quantity: int
    total_amount: Decimal
    amount_received: Decimal
    count: int

    @classmethod
    def from_domain(cls, stats: DailyStats) -> "DailyStatsResponse":
        return cls(
            quantity=stats.quantity,
            total_amount=stats.total_amount,
            amount_received=stats.amount_received,
            count=stats.count,
        )


class ReportResponse(BaseModel):
    """Sales report for one window."""
    start_date: datetime
    end_date: datetime
    summary: ReportSummaryResponse
    brand_stats: Dict[str, BrandStatsResponse]
    daily_stats: Dict[str, DailyStatsResponse]
    sales: List[SaleItemResponse]


# ============================================================================
# Error Models
# ============================================================================

class ReportFailureResponse(BaseModel):
    """Rejected report or export request (error_code INVALID_PERIOD or INVALID_FILTER)."""
    success: bool = False
    error_code: str
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error_code": "INVALID_PERIOD",
                "message": "Invalid period: 'fortnight'"
            }
        }
