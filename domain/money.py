"""
Domain: Money helpers (pure).

All amounts are Decimal. Floats coming off the wire are converted through
their string form so 0.1 stays 0.1.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")

# amount_received may fall short of total_amount by at most this much
PAYMENT_TOLERANCE = Decimal("0.01")

MINIMUM_SALE_AMOUNT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Raises:
        ValueError: If the value is not numeric (bools are rejected too).
    """

    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a numeric amount: {value!r}") from None
    else:
        raise ValueError(f"Not a numeric amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def round_money(value: Any) -> Decimal:
    """Round to whole cents, half away from zero."""

    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def is_payment_sufficient(total_amount: Decimal, amount_received: Decimal) -> bool:
    return amount_received - total_amount >= -PAYMENT_TOLERANCE


def is_whole_cents(value: Decimal) -> bool:
    """True if the amount has no fraction of a cent (10.00 and 10.000 do, 10.004 does not)."""

    return value % CENT == 0
