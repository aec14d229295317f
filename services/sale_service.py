"""
Sale service for recording sales against the brand catalog.

Handles:
- Single sales: validation, then one atomic insert-and-decrement
- Bulk sales: an ordered batch of single sales that stops at the first failure
- Paged sale listing

Every write goes through the record_sale_atomic() PostgreSQL function, which
inserts the sale row and decrements brand stock in a single transaction with a
conditional `stock >= quantity` update.

Checks run in this order, each with its own SaleErrorCode:
1. All fields present and of the right type     -> MISSING_FIELDS
2. amount_received >= total_amount - 0.01       -> INSUFFICIENT_PAYMENT
3. Brand exists                                 -> BRAND_NOT_FOUND
4. Brand stock >= quantity                      -> INSUFFICIENT_STOCK
5. quantity integer >= 1, total_amount >= 0.01,
   amounts in whole cents                       -> VALIDATION_FAILED
Anything else that stops the write              -> TRANSACTION_ABORTED
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from domain.brand import Brand
from domain.money import is_payment_sufficient, is_whole_cents, round_money, to_decimal
from domain.sale import SaleErrorCode, SaleRecord, SaleType, validate_sale_fields
from domain.time import utc_now
from repositories import client as db
from repositories.brand_repository import get_brand_by_id
from repositories.sale_repository import list_sales_page

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """
    Untrusted sale input as received from the caller.

    Fields are loosely typed: the service decides whether a value
    is missing, mistyped, or present but out of range.
    """
    brand_id: Any = None
    quantity: Any = None
    total_amount: Any = None
    amount_received: Any = None


@dataclass(frozen=True, slots=True)
class SaleResult:
    """
    Result of recording one sale.

    success: True if the sale was committed
    sale: The created SaleRecord (brand resolved to its post-sale state)
    previous_stock / new_stock: Brand stock before and after the sale
    error_code / error_message / details: Populated when success=False
    """
    success: bool
    sale: Optional[SaleRecord] = None
    previous_stock: Optional[int] = None
    new_stock: Optional[int] = None
    error_code: Optional[SaleErrorCode] = None
    error_message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def change_given(self) -> Optional[Decimal]:
        return self.sale.change_given if self.sale is not None else None


@dataclass(frozen=True, slots=True)
class BulkSaleResult:
    """
    Result of a bulk sale.

    On failure, `sales` still lists every sale committed before the failing
    item; those are NOT rolled back.
    """
    success: bool
    sales: List[SaleRecord]
    failed_index: Optional[int] = None
    error_code: Optional[SaleErrorCode] = None
    error_message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SalePage:
    sales: List[SaleRecord]
    total_count: int
    total_pages: int
    current_page: int


@dataclass(frozen=True, slots=True)
class AtomicSaleResult:
    """Result from record_sale_atomic PostgreSQL function."""
    success: bool
    previous_stock: Optional[int]
    new_stock: Optional[int]
    error_code: Optional[SaleErrorCode]
    error_message: Optional[str]


@dataclass(frozen=True, slots=True)
class _SaleLine:
    """A SaleRequest whose fields passed the presence/type check."""
    brand_id: UUID
    quantity: Any
    total_amount: Decimal
    amount_received: Decimal


def _failure(code: SaleErrorCode, message: str, **details: Any) -> SaleResult:
    return SaleResult(success=False, error_code=code, error_message=message, details=details)


def _coerce_brand_id(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            return None
    return None


def _coerce_quantity(value: Any) -> Any:
    """
    Accept any real number; integral floats/Decimals become int.

    Non-integral numbers are returned unchanged so the schema check can
    reject them with VALIDATION_FAILED. Returns None for non-numbers.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if isinstance(value, Decimal) and not value.is_finite():
            return None
        return int(value) if value == int(value) else value
    return None


def _coerce_amount(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return to_decimal(value)
    except ValueError:
        return None


def _parse_line(request: SaleRequest) -> tuple[Optional[_SaleLine], List[str]]:
    """Check presence and type of every field; return the problem fields."""

    brand_id = _coerce_brand_id(request.brand_id)
    quantity = _coerce_quantity(request.quantity)
    total_amount = _coerce_amount(request.total_amount)
    amount_received = _coerce_amount(request.amount_received)

    problems = [
        name
        for name, value in (
            ("brand_id", brand_id),
            ("quantity", quantity),
            ("total_amount", total_amount),
            ("amount_received", amount_received),
        )
        if value is None
    ]
    if problems:
        return None, problems

    return _SaleLine(
        brand_id=brand_id,
        quantity=quantity,
        total_amount=total_amount,
        amount_received=amount_received,
    ), []


def _sub_cent_error(line: _SaleLine) -> Optional[str]:
    """Amounts are stored as numeric(12,2); anything finer would be rounded silently."""

    for name, value in (("total_amount", line.total_amount), ("amount_received", line.amount_received)):
        if not is_whole_cents(value):
            return f"{name} must have at most 2 decimal places (got {value})"
    return None


def _payload_from_api_error(error: Exception) -> Dict[str, Any]:
    """Best-effort extraction of the JSON body carried by a PostgREST APIError."""

    json_method = getattr(error, "json", None)
    if not callable(json_method):
        return {}
    try:
        payload = json_method()
    except (TypeError, ValueError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _atomic_result_from_payload(payload: Dict[str, Any]) -> AtomicSaleResult:
    if payload.get("success") is True:
        return AtomicSaleResult(
            success=True,
            previous_stock=int(payload["previous_stock"]),
            new_stock=int(payload["new_stock"]),
            error_code=None,
            error_message=None,
        )

    try:
        code = SaleErrorCode(str(payload.get("error")))
    except ValueError:
        code = SaleErrorCode.TRANSACTION_ABORTED

    return AtomicSaleResult(
        success=False,
        previous_stock=None,
        new_stock=None,
        error_code=code,
        error_message=payload.get("message") or "Sale transaction was rolled back",
    )


def _execute_atomic_sale(
    sale_id: UUID,
    line: _SaleLine,
    sale_type: SaleType,
    sold_at: datetime,
) -> AtomicSaleResult:
    """
    Execute atomic sale via PostgreSQL function.

    Calls record_sale_atomic() which:
    - Re-checks the brand exists
    - Decrements stock only if stock >= quantity
    - Inserts the sale record
    All in a single atomic transaction.
    """
    from postgrest.exceptions import APIError

    try:
        response = db.get_supabase().rpc(
            "record_sale_atomic",
            {
                "p_sale_id": str(sale_id),
                "p_brand_id": str(line.brand_id),
                "p_quantity": line.quantity,
                "p_total_amount": str(line.total_amount),
                "p_amount_received": str(line.amount_received),
                "p_sale_type": sale_type.value,
                "p_sold_at": sold_at.isoformat(),
            },
        ).execute()

    except APIError as e:
        # supabase-py can raise APIError even when the function returned JSON,
        # so check whether the body is actually a success payload.
        payload = _payload_from_api_error(e)
        if "success" in payload:
            return _atomic_result_from_payload(payload)

        logger.error(
            "record_sale_atomic failed",
            extra={"brand_id": str(line.brand_id), "error": str(e)},
        )
        return AtomicSaleResult(
            success=False,
            previous_stock=None,
            new_stock=None,
            error_code=SaleErrorCode.TRANSACTION_ABORTED,
            error_message=payload.get("message") or str(e),
        )

    except Exception as e:
        logger.exception("Sale transaction error", extra={"brand_id": str(line.brand_id)})
        return AtomicSaleResult(
            success=False,
            previous_stock=None,
            new_stock=None,
            error_code=SaleErrorCode.TRANSACTION_ABORTED,
            error_message=str(e),
        )

    error = getattr(response, "error", None)
    if error:
        return AtomicSaleResult(
            success=False,
            previous_stock=None,
            new_stock=None,
            error_code=SaleErrorCode.TRANSACTION_ABORTED,
            error_message=str(error),
        )

    payload = getattr(response, "data", None)
    if not isinstance(payload, dict):
        return AtomicSaleResult(
            success=False,
            previous_stock=None,
            new_stock=None,
            error_code=SaleErrorCode.TRANSACTION_ABORTED,
            error_message=f"Unexpected response from record_sale_atomic: {payload!r}",
        )

    return _atomic_result_from_payload(payload)


def _record_line(request: SaleRequest, *, round_amounts: bool) -> SaleResult:
    """Run checks 1-5 for one sale line and commit it atomically."""

    line, problems = _parse_line(request)
    if line is None:
        return _failure(
            SaleErrorCode.MISSING_FIELDS,
            "Missing required fields",
            fields=problems,
            required={
                "brand_id": "string (valid brand ID)",
                "quantity": "number (integer >= 1)",
                "total_amount": "number (>= 0.01)",
                "amount_received": "number (>= total_amount)",
            },
        )

    if round_amounts:
        line = replace(
            line,
            total_amount=round_money(line.total_amount),
            amount_received=round_money(line.amount_received),
        )

    if not is_payment_sufficient(line.total_amount, line.amount_received):
        return _failure(
            SaleErrorCode.INSUFFICIENT_PAYMENT,
            f"Amount received ({line.amount_received}) is less than "
            f"total amount ({line.total_amount})",
            amount_received=str(line.amount_received),
            total_amount=str(line.total_amount),
            difference=str(line.amount_received - line.total_amount),
        )

    try:
        brand = get_brand_by_id(line.brand_id)
    except RuntimeError as e:
        logger.error("Brand lookup failed", extra={"brand_id": str(line.brand_id), "error": str(e)})
        return _failure(SaleErrorCode.TRANSACTION_ABORTED, str(e))

    if brand is None:
        return _failure(
            SaleErrorCode.BRAND_NOT_FOUND,
            f"Brand not found: {line.brand_id}",
            brand_id=str(line.brand_id),
        )

    if not brand.can_fulfill(line.quantity):
        return _failure(
            SaleErrorCode.INSUFFICIENT_STOCK,
            f"Insufficient stock for {brand.name} "
            f"(Available: {brand.stock}, Requested: {line.quantity})",
            brand=brand.name,
            available_stock=brand.stock,
            requested_quantity=line.quantity,
        )

    validation_error = validate_sale_fields(line.quantity, line.total_amount)
    if validation_error is None:
        validation_error = _sub_cent_error(line)
    if validation_error is not None:
        return _failure(SaleErrorCode.VALIDATION_FAILED, validation_error)

    sale_id = uuid4()
    sold_at = utc_now()
    sale_type = SaleType.for_quantity(line.quantity)

    atomic = _execute_atomic_sale(sale_id, line, sale_type, sold_at)
    if not atomic.success:
        return _failure(
            atomic.error_code or SaleErrorCode.TRANSACTION_ABORTED,
            atomic.error_message or "Sale transaction was rolled back",
            brand_id=str(line.brand_id),
        )

    sold_brand: Brand = replace(brand, stock=atomic.new_stock)
    sale = SaleRecord(
        sale_id=sale_id,
        brand_id=line.brand_id,
        quantity=line.quantity,
        total_amount=line.total_amount,
        amount_received=line.amount_received,
        sale_type=sale_type,
        sold_at=sold_at,
        created_at=sold_at,
        brand=sold_brand,
    )

    return SaleResult(
        success=True,
        sale=sale,
        previous_stock=atomic.previous_stock,
        new_stock=atomic.new_stock,
    )


def record_sale(request: SaleRequest) -> SaleResult:
    """
    Record a single sale.

    Either both the sale row and the stock decrement are committed, or
    neither is.

    Args:
        request: SaleRequest with brand_id, quantity, total_amount, amount_received

    Returns:
        SaleResult with the created sale and stock delta, or a typed failure

    Example:
        result = record_sale(SaleRequest(brand_id=brand.brand_id, quantity=2,
                                         total_amount=Decimal("20.00"),
                                         amount_received=Decimal("25.00")))
        if result.success:
            print(f"Change: {result.change_given}, stock now {result.new_stock}")
        else:
            print(f"{result.error_code.value}: {result.error_message}")
    """
    result = _record_line(request, round_amounts=False)

    if result.success:
        logger.info(
            "Sale recorded",
            extra={
                "sale_id": str(result.sale.sale_id),
                "brand_id": str(result.sale.brand_id),
                "quantity": result.sale.quantity,
                "new_stock": result.new_stock,
            },
        )
    else:
        logger.warning(
            "Sale rejected: %s",
            result.error_message,
            extra={"error_code": result.error_code.value},
        )

    return result


def record_bulk_sale(items: Sequence[SaleRequest]) -> BulkSaleResult:
    """
    Record a checkout basket as an ordered sequence of single sales.

    Each item has its amounts rounded to 2 decimal places, is validated
    against the brand's stock as of that moment (so earlier items in the
    batch are visible), and is committed on its own. Processing stops at the
    first failing item; items committed before it stay committed.

    Returns:
        BulkSaleResult with all created sales, or the failing index and reason
    """
    committed: List[SaleRecord] = []

    for index, item in enumerate(items):
        result = _record_line(item, round_amounts=True)

        if not result.success:
            logger.warning(
                "Error processing sale %d: %s",
                index,
                result.error_message,
                extra={"sale_index": index, "error_code": result.error_code.value},
            )
            return BulkSaleResult(
                success=False,
                sales=committed,
                failed_index=index,
                error_code=result.error_code,
                error_message=result.error_message,
                details=result.details,
            )

        committed.append(result.sale)

    logger.info("Bulk sale recorded", extra={"sales_recorded": len(committed)})
    return BulkSaleResult(success=True, sales=committed)


def list_sales(page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> SalePage:
    """
    Return one page of sales (newest first) with brands resolved.

    Raises:
        ValueError: If page or page_size is < 1
        RuntimeError: If Supabase reports an error
    """
    sales, total_count = list_sales_page(page, page_size)
    return SalePage(
        sales=sales,
        total_count=total_count,
        total_pages=math.ceil(total_count / page_size),
        current_page=page,
    )


__all__ = [
    "SaleRequest",
    "SaleResult",
    "BulkSaleResult",
    "SalePage",
    "record_sale",
    "record_bulk_sale",
    "list_sales",
]
