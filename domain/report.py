"""
Domain: Sales report periods and aggregation.

Pure functions only: resolve a reporting window and fold a sequence of
SaleRecords into summary, per-brand and per-day statistics.

Window rules:
- day:    [now - 24h, now]
- week:   [now - 7 days, now]
- month:  [now - 1 calendar month, now]
- year:   [now - 1 calendar year, now]
- custom: caller supplied [start, end]

Aggregation rules:
- balance = amount_received - total_amount
- averages are 0 when there are no sales
- sales without a resolvable brand are grouped under "Unknown"
- daily stats are keyed by UTC calendar day (YYYY-MM-DD)
- the grouping dicts carry no ordering guarantee; sort when rendering
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence

from .money import ZERO
from .sale import SaleRecord, SaleType
from .time import day_key, ensure_utc, subtract_months

UNKNOWN_BRAND = "Unknown"


class ReportErrorCode(str, Enum):
    """Failure kinds reported by the report and export layers."""

    INVALID_PERIOD = "INVALID_PERIOD"
    INVALID_FILTER = "INVALID_FILTER"


class ReportInputError(ValueError):
    """Base for report inputs that cannot be used; `code` names the kind."""

    code: ReportErrorCode


class InvalidPeriodError(ReportInputError):
    """Raised when a report period token or custom range cannot be resolved."""

    code = ReportErrorCode.INVALID_PERIOD


class InvalidFilterError(ReportInputError):
    """Raised when a sale_type or brand_id filter is malformed."""

    code = ReportErrorCode.INVALID_FILTER


class ReportPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"

    @staticmethod
    def parse(value: Optional[str]) -> "ReportPeriod":
        if not value:
            raise InvalidPeriodError("Invalid period: period is required (day, week, month, year or custom)")
        try:
            return ReportPeriod(value)
        except ValueError:
            raise InvalidPeriodError(f"Invalid period: {value!r}") from None


@dataclass(frozen=True, slots=True)
class ReportWindow:
    """Inclusive [start, end] range of sale timestamps (UTC)."""

    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= ensure_utc(value) <= self.end


def resolve_window(
    period: ReportPeriod,
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> ReportWindow:
    """
    Resolve a ReportPeriod into a concrete window ending at `now`.

    Raises:
        InvalidPeriodError: If `custom` is requested without both bounds.
    """

    now = ensure_utc(now)

    if period is ReportPeriod.DAY:
        return ReportWindow(start=now - timedelta(days=1), end=now)
    if period is ReportPeriod.WEEK:
        return ReportWindow(start=now - timedelta(days=7), end=now)
    if period is ReportPeriod.MONTH:
        return ReportWindow(start=subtract_months(now, 1), end=now)
    if period is ReportPeriod.YEAR:
        return ReportWindow(start=subtract_months(now, 12), end=now)

    if start is None or end is None:
        raise InvalidPeriodError("custom period requires both start_date and end_date")
    return ReportWindow(start=ensure_utc(start), end=ensure_utc(end))


@dataclass(slots=True)
class BrandStats:
    quantity: int = 0
    total_amount: Decimal = ZERO
    amount_received: Decimal = ZERO


@dataclass(slots=True)
class DailyStats:
    quantity: int = 0
    total_amount: Decimal = ZERO
    amount_received: Decimal = ZERO
    count: int = 0


@dataclass(frozen=True, slots=True)
class ReportSummary:
    total_sales: int
    total_amount: Decimal
    amount_received: Decimal
    total_quantity: int
    balance: Decimal
    single_product_sales: int
    multi_product_sales: int
    average_sale_value: Decimal
    average_quantity: Decimal


def summarize(sales: Sequence[SaleRecord]) -> ReportSummary:
    total_amount = sum((s.total_amount for s in sales), ZERO)
    amount_received = sum((s.amount_received for s in sales), ZERO)
    total_quantity = sum(s.quantity for s in sales)
    count = len(sales)

    if count:
        average_sale_value = total_amount / count
        average_quantity = Decimal(total_quantity) / count
    else:
        average_sale_value = ZERO
        average_quantity = ZERO

    return ReportSummary(
        total_sales=count,
        total_amount=total_amount,
        amount_received=amount_received,
        total_quantity=total_quantity,
        balance=amount_received - total_amount,
        single_product_sales=sum(1 for s in sales if s.sale_type is SaleType.SINGLE),
        multi_product_sales=sum(1 for s in sales if s.sale_type is SaleType.MULTI),
        average_sale_value=average_sale_value,
        average_quantity=average_quantity,
    )


def group_by_brand(sales: Iterable[SaleRecord]) -> Dict[str, BrandStats]:
    stats: Dict[str, BrandStats] = {}
    for sale in sales:
        entry = stats.setdefault(sale.brand_name or UNKNOWN_BRAND, BrandStats())
        entry.quantity += sale.quantity
        entry.total_amount += sale.total_amount
        entry.amount_received += sale.amount_received
    return stats


def group_by_day(sales: Iterable[SaleRecord]) -> Dict[str, DailyStats]:
    stats: Dict[str, DailyStats] = {}
    for sale in sales:
        entry = stats.setdefault(day_key(sale.sold_at), DailyStats())
        entry.quantity += sale.quantity
        entry.total_amount += sale.total_amount
        entry.amount_received += sale.amount_received
        entry.count += 1
    return stats
