"""
Report service for sales analytics.

Resolves a reporting window, fetches the matching sales and folds them into
summary, per-brand and per-day statistics (see domain/report.py).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Union
from uuid import UUID

from domain.report import (
    BrandStats,
    DailyStats,
    InvalidFilterError,
    InvalidPeriodError,
    ReportPeriod,
    ReportSummary,
    ReportWindow,
    group_by_brand,
    group_by_day,
    resolve_window,
    summarize,
)
from domain.sale import SaleRecord, SaleType
from domain.time import end_of_day, ensure_utc, start_of_day, utc_now
from repositories.sale_repository import list_sales_between

logger = logging.getLogger(__name__)

# Filter value meaning "no filter"
ALL = "all"

DateBound = Union[str, date, datetime, None]


@dataclass(frozen=True, slots=True)
class SalesReport:
    """
    Aggregated view of the sales in one window.

    brand_stats and daily_stats are plain groupings with no ordering
    guarantee; sort them when rendering.
    """
    window: ReportWindow
    summary: ReportSummary
    brand_stats: Dict[str, BrandStats]
    daily_stats: Dict[str, DailyStats]
    sales: List[SaleRecord]


def _parse_bound(value: DateBound, *, is_end: bool) -> Optional[datetime]:
    """
    Parse a custom range bound.

    A bare date covers the whole day: as a start it means 00:00:00, as an end
    it means 23:59:59.999999 (UTC).
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return end_of_day(value) if is_end else start_of_day(value)

    text = str(value).strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return end_of_day(day) if is_end else start_of_day(day)
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise InvalidPeriodError(f"Invalid date: {value!r}") from None


def resolve_report_window(
    period: Optional[str],
    start_date: DateBound = None,
    end_date: DateBound = None,
    now: Optional[datetime] = None,
) -> ReportWindow:
    """
    Turn a period token (and custom bounds) into a concrete UTC window.

    Raises:
        InvalidPeriodError: Unknown period, or custom without valid bounds
    """
    report_period = ReportPeriod.parse(period)
    return resolve_window(
        report_period,
        now or utc_now(),
        start=_parse_bound(start_date, is_end=False),
        end=_parse_bound(end_date, is_end=True),
    )


def parse_sale_type_filter(value: Union[str, SaleType, None]) -> Optional[SaleType]:
    """
    Raises:
        InvalidFilterError: If the value is neither a sale type nor "all"
    """
    if value is None or value == ALL or value == "":
        return None
    if isinstance(value, SaleType):
        return value
    try:
        return SaleType(value)
    except ValueError:
        raise InvalidFilterError(f"Invalid sale_type: {value!r} (expected single, multi or all)") from None


def parse_brand_filter(value: Union[str, UUID, None]) -> Optional[UUID]:
    """
    Raises:
        InvalidFilterError: If the value is neither a UUID nor "all"
    """
    if value is None or value == ALL or value == "":
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidFilterError(f"Invalid brand_id: {value!r}") from None


def build_report(
    period: Optional[str],
    start_date: DateBound = None,
    end_date: DateBound = None,
    sale_type: Union[str, SaleType, None] = None,
    brand_id: Union[str, UUID, None] = None,
    now: Optional[datetime] = None,
) -> SalesReport:
    """
    Build a sales report.

    Args:
        period: day, week, month, year or custom
        start_date / end_date: Range bounds, required for custom
        sale_type: single, multi, or all/None for both
        brand_id: A brand id, or all/None for every brand
        now: Reference time (defaults to the current UTC time)

    Returns:
        SalesReport with summary, brand_stats, daily_stats and raw sales

    Raises:
        InvalidPeriodError: Unknown period or unusable custom range
        InvalidFilterError: Malformed sale_type or brand_id filter
        RuntimeError: If Supabase reports an error

    Example:
        report = build_report("week", sale_type="multi")
        for day in sorted(report.daily_stats):
            print(day, report.daily_stats[day].total_amount)
    """
    window = resolve_report_window(period, start_date, end_date, now)
    type_filter = parse_sale_type_filter(sale_type)
    brand_filter = parse_brand_filter(brand_id)

    sales = list_sales_between(window.start, window.end, sale_type=type_filter, brand_id=brand_filter)

    logger.info(
        "Report built",
        extra={
            "period": period,
            "window_start": window.start.isoformat(),
            "window_end": window.end.isoformat(),
            "sales_count": len(sales),
        },
    )

    return SalesReport(
        window=window,
        summary=summarize(sales),
        brand_stats=group_by_brand(sales),
        daily_stats=group_by_day(sales),
        sales=sales,
    )


__all__ = [
    "SalesReport",
    "InvalidPeriodError",
    "InvalidFilterError",
    "resolve_report_window",
    "parse_sale_type_filter",
    "parse_brand_filter",
    "build_report",
]
