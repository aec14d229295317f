#!/usr/bin/env python3
"""
Sales Report Export Script

Writes a sales report for a period to disk as CSV or Excel, using the same
columns as the /sales/advanced-report/download endpoint.

Usage:
    python export_report.py --period week
    python export_report.py --period month --format excel --output-dir reports/
    python export_report.py --period custom --start 2025-01-01 --end 2025-01-31
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.report import InvalidPeriodError, ReportPeriod
from services.report_export_service import ExportFormat, export_report


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Export a sales report from the Supabase database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Last 24 hours as CSV
  python export_report.py --period day

  # Last calendar month as an Excel workbook
  python export_report.py --period month --format excel

  # Explicit range (end date is inclusive)
  python export_report.py --period custom --start 2025-01-01 --end 2025-01-31
        """
    )

    parser.add_argument(
        "--period",
        "-p",
        required=True,
        choices=[p.value for p in ReportPeriod],
        help="Report window"
    )

    parser.add_argument(
        "--format",
        "-f",
        default=ExportFormat.CSV.value,
        choices=[f.value for f in ExportFormat],
        help="Output format (default: csv)"
    )

    parser.add_argument("--start", help="Custom range start (YYYY-MM-DD)")
    parser.add_argument("--end", help="Custom range end (YYYY-MM-DD)")

    parser.add_argument(
        "--output-dir",
        "-o",
        default=".",
        help="Directory to write the report into (default: current directory)"
    )

    args = parser.parse_args()

    try:
        exported = export_report(args.period, args.format, start_date=args.start, end_date=args.end)
    except InvalidPeriodError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except RuntimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / exported.filename
    output_path.write_bytes(exported.content)

    print(f"✓ Wrote {output_path} ({len(exported.content)} bytes, {exported.media_type})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
