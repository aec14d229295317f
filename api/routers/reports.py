"""
Report API Endpoints.

Endpoints for aggregated sales reports and report downloads.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from api.models import (
    BrandStatsResponse,
    DailyStatsResponse,
    ReportFailureResponse,
    ReportResponse,
    ReportSummaryResponse,
    SaleItemResponse,
)
from domain.report import ReportInputError
from services.report_export_service import export_report
from services.report_service import build_report

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure_response(error: ReportInputError) -> JSONResponse:
    body = ReportFailureResponse(error_code=error.code.value, message=str(error))
    return JSONResponse(status_code=400, content=body.model_dump(mode="json"))


@router.get(
    "/sales/advanced-report",
    response_model=ReportResponse,
    responses={400: {"model": ReportFailureResponse}},
    summary="Sales Report",
    description="Aggregate sales over a period with optional sale type and brand filters."
)
def get_sales_report(
    period: Optional[str] = Query(None, description="day, week, month, year or custom"),
    sale_type: Optional[str] = Query(None, description="single, multi or all"),
    brand_id: Optional[str] = Query(None, description="Brand ID or all"),
    start_date: Optional[str] = Query(None, description="Custom range start (ISO date or datetime)"),
    end_date: Optional[str] = Query(None, description="Custom range end (ISO date or datetime)"),
):
    """
    Build a sales report.

    **Example usage:**
    - Last 7 days: `GET /api/v1/sales/advanced-report?period=week`
    - Multi-unit sales this month: `GET /api/v1/sales/advanced-report?period=month&sale_type=multi`
    - Custom range: `GET /api/v1/sales/advanced-report?period=custom&start_date=2025-01-01&end_date=2025-01-31`

    `daily_stats` keys are UTC days; neither map is sorted.
    """
    try:
        report = build_report(
            period,
            start_date=start_date,
            end_date=end_date,
            sale_type=sale_type,
            brand_id=brand_id,
        )
    except ReportInputError as e:
        return _failure_response(e)
    except RuntimeError as e:
        logger.exception("Failed to generate report")
        raise HTTPException(status_code=500, detail=f"Failed to generate report: {str(e)}")

    return ReportResponse(
        start_date=report.window.start,
        end_date=report.window.end,
        summary=ReportSummaryResponse.from_domain(report.summary),
        brand_stats={
            name: BrandStatsResponse.from_domain(stats)
            for name, stats in report.brand_stats.items()
        },
        daily_stats={
            day: DailyStatsResponse.from_domain(stats)
            for day, stats in report.daily_stats.items()
        },
        sales=[SaleItemResponse.from_domain(sale) for sale in report.sales],
    )


@router.get(
    "/sales/advanced-report/download",
    summary="Download Sales Report",
    description="Download every sale in the period as CSV or Excel.",
    response_class=Response,
    responses={400: {"model": ReportFailureResponse}},
)
def download_sales_report(
    period: Optional[str] = Query(None, description="day, week, month, year or custom"),
    format: str = Query("csv", description="csv or excel"),
    start_date: Optional[str] = Query(None, description="Custom range start"),
    end_date: Optional[str] = Query(None, description="Custom range end"),
):
    """
    Download a sales report.

    **Columns:** Date, Brand, Quantity, Sale Type, Unit Price, Total Amount,
    Amount Received, Balance

    **Filenames:**
    - CSV: `sales_report_{period}_{YYYY-MM-DD}.csv`
    - Excel: `sales_report_{period}.xlsx` (sheet "Sales Report")
    """
    try:
        exported = export_report(period, format, start_date=start_date, end_date=end_date)
    except ReportInputError as e:
        return _failure_response(e)
    except RuntimeError as e:
        logger.exception("Failed to export report")
        raise HTTPException(status_code=500, detail=f"Failed to generate report: {str(e)}")

    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={
            "Content-Disposition": f"attachment; filename={exported.filename}"
        }
    )
