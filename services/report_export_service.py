"""
Export service for downloadable sales reports.

Renders a list of sales as CSV or as an Excel workbook with fixed columns:

    Date | Brand | Quantity | Sale Type | Unit Price | Total Amount |
    Amount Received | Balance

Security:
- CSV Injection Prevention: text fields are sanitized so spreadsheet apps
  never evaluate them as formulas
- Security Logging: stripped characters are logged
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from io import BytesIO, StringIO
from typing import Any, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from domain.money import round_money
from domain.report import UNKNOWN_BRAND
from domain.sale import SaleRecord
from domain.time import day_key, utc_now
from repositories.sale_repository import list_sales_between
from services.report_service import DateBound, resolve_report_window

logger = logging.getLogger(__name__)

SHEET_TITLE = "Sales Report"

# (header, column width) in output order
REPORT_COLUMNS: List[tuple[str, int]] = [
    ("Date", 15),
    ("Brand", 20),
    ("Quantity", 10),
    ("Sale Type", 15),
    ("Unit Price", 12),
    ("Total Amount", 15),
    ("Amount Received", 18),
    ("Balance", 12),
]

CSV_MEDIA_TYPE = "text/csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"

    @staticmethod
    def parse(value: Optional[str]) -> "ExportFormat":
        """Unknown or missing formats fall back to CSV."""
        if value in ("excel", "xlsx", "spreadsheet"):
            return ExportFormat.EXCEL
        return ExportFormat.CSV


@dataclass(frozen=True, slots=True)
class ExportedReport:
    content: bytes
    filename: str
    media_type: str


def sanitize_csv_field(value: str | None, field_name: str = "unknown") -> str:
    """
    Sanitize field to prevent CSV injection attacks with security logging.

    Strips leading characters that can trigger formula execution in Excel/Sheets:
    =, +, -, @, tab, carriage return

    Example:
        sanitize_csv_field("=HYPERLINK(...)", "brand")
        # Returns "HYPERLINK(...)" and logs a warning
    """
    if value is None or value == "":
        return ""

    text = str(value).strip()
    original_text = text
    dangerous_chars = {'=', '+', '-', '@', '\t', '\r'}

    stripped_chars = []
    while text and text[0] in dangerous_chars:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"CSV injection character(s) stripped from field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "csv_injection_prevention",
            },
        )

    return text


def unit_price(total_amount: Decimal, quantity: int) -> Optional[Decimal]:
    """Per-unit price to the cent, or None when quantity is zero."""
    if not quantity:
        return None
    return round_money(total_amount / quantity)


def sale_balance(sale: SaleRecord) -> Decimal:
    return round_money(sale.amount_received - sale.total_amount)


def report_row(sale: SaleRecord) -> List[Any]:
    """One export row for a sale, money values as cent-rounded Decimals."""
    return [
        day_key(sale.sold_at),
        sanitize_csv_field(sale.brand_name, "brand") or UNKNOWN_BRAND,
        sale.quantity,
        sale.sale_type.label,
        unit_price(sale.total_amount, sale.quantity),
        round_money(sale.total_amount),
        round_money(sale.amount_received),
        sale_balance(sale),
    ]


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def render_csv(sales: Sequence[SaleRecord]) -> bytes:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow([header for header, _ in REPORT_COLUMNS])
    for sale in sales:
        writer.writerow([_csv_cell(value) for value in report_row(sale)])
    return output.getvalue().encode("utf-8")


def render_xlsx(sales: Sequence[SaleRecord]) -> bytes:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = SHEET_TITLE

    bold_font = Font(bold=True)
    for col_idx, (header, width) in enumerate(REPORT_COLUMNS, 1):
        cell = worksheet.cell(row=1, column=col_idx, value=header)
        cell.font = bold_font
        worksheet.column_dimensions[get_column_letter(col_idx)].width = width

    for sale in sales:
        worksheet.append(report_row(sale))

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def format_report(
    sales: Sequence[SaleRecord],
    export_format: ExportFormat,
    period: str,
    today: Optional[date] = None,
) -> ExportedReport:
    """
    Render sales as a downloadable file.

    Filenames:
    - csv:   sales_report_{period}_{YYYY-MM-DD}.csv
    - excel: sales_report_{period}.xlsx
    """
    if export_format is ExportFormat.EXCEL:
        return ExportedReport(
            content=render_xlsx(sales),
            filename=f"sales_report_{period}.xlsx",
            media_type=XLSX_MEDIA_TYPE,
        )

    today = today or utc_now().date()
    return ExportedReport(
        content=render_csv(sales),
        filename=f"sales_report_{period}_{today.isoformat()}.csv",
        media_type=CSV_MEDIA_TYPE,
    )


def export_report(
    period: Optional[str],
    export_format: Optional[str] = None,
    start_date: DateBound = None,
    end_date: DateBound = None,
    now: Optional[datetime] = None,
) -> ExportedReport:
    """
    Export every sale in the period's window.

    Raises:
        InvalidPeriodError: Unknown period or unusable custom range
        RuntimeError: If Supabase reports an error
    """
    now = now or utc_now()
    window = resolve_report_window(period, start_date, end_date, now)
    sales = list_sales_between(window.start, window.end)
    fmt = ExportFormat.parse(export_format)

    logger.info(
        "Report exported",
        extra={"period": period, "format": fmt.value, "sales_count": len(sales)},
    )
    return format_report(sales, fmt, str(period), today=now.date())


__all__ = [
    "ExportFormat",
    "ExportedReport",
    "REPORT_COLUMNS",
    "sanitize_csv_field",
    "unit_price",
    "report_row",
    "format_report",
    "export_report",
]
