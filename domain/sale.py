"""
Domain: Sale events.

A sale records units of one Brand leaving the catalog in exchange for payment.

Rules captured here:
- quantity is an integer >= 1.
- total_amount >= 0.01.
- sale_type is `multi` when quantity > 1, otherwise `single`. It is a property
  of the line, not of the checkout basket.
- Sales are immutable once recorded.

Stock eligibility is checked by the sale service against the Brand at the
moment of recording; it is not re-validated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from .brand import Brand
from .money import MINIMUM_SALE_AMOUNT
from .time import require_utc_timestamp


class SaleType(str, Enum):
    SINGLE = "single"
    MULTI = "multi"

    @staticmethod
    def for_quantity(quantity: int) -> "SaleType":
        return SaleType.MULTI if quantity > 1 else SaleType.SINGLE

    @property
    def label(self) -> str:
        """Human readable label used in exports."""
        return "Multi-Product" if self is SaleType.MULTI else "Single Product"


class SaleErrorCode(str, Enum):
    """Failure kinds reported by the sale recorders."""

    MISSING_FIELDS = "MISSING_FIELDS"
    INSUFFICIENT_PAYMENT = "INSUFFICIENT_PAYMENT"
    BRAND_NOT_FOUND = "BRAND_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    TRANSACTION_ABORTED = "TRANSACTION_ABORTED"


def validate_sale_fields(quantity: int, total_amount: Decimal) -> Optional[str]:
    """
    Check the schema-level constraints of a sale line.

    Returns an error message, or None if the values are acceptable.
    """

    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return f"{quantity!r} is not an integer value"
    if quantity < 1:
        return f"quantity must be >= 1 (got {quantity})"
    if total_amount < MINIMUM_SALE_AMOUNT:
        return f"total_amount must be >= {MINIMUM_SALE_AMOUNT} (got {total_amount})"
    return None


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of a sale event.

    Captures:
    - What was sold (brand_id, quantity)
    - What was charged and paid (total_amount, amount_received)
    - When it was sold (sold_at)

    `brand` is populated when the repository resolves the brand reference.
    It is None for a sale whose brand no longer exists.
    """

    sale_id: UUID
    brand_id: UUID
    quantity: int
    total_amount: Decimal
    amount_received: Decimal
    sale_type: SaleType
    sold_at: datetime
    created_at: Optional[datetime] = None
    brand: Optional[Brand] = None

    def __post_init__(self) -> None:
        error = validate_sale_fields(self.quantity, self.total_amount)
        if error is not None:
            raise ValueError(error)
        require_utc_timestamp("sold_at", self.sold_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def change_given(self) -> Decimal:
        return self.amount_received - self.total_amount

    @property
    def brand_name(self) -> Optional[str]:
        return self.brand.name if self.brand is not None else None
