"""
Monthly Report Export Script

Writes a segment report to a CSV file, the same content the dashboard's
download endpoint serves.
Usage: python -m app.scripts.export_report --segment topics --month 2024-05 -o topics.csv
"""
import asyncio
import argparse
import sys
from pathlib import Path
from typing import Optional

from app.database import AsyncSessionLocal, engine
from app.errors import APIError
from app.services.report_service import SEGMENTS, ReportService, csv_filename, render_csv


async def export_report(segment: str, month: Optional[str], output_file: Optional[str]) -> str:
    """
    Run the segment report and write it as CSV.

    Args:
        segment: earnings, topics or enrolled
        month: Optional YYYY-MM filter
        output_file: Target path; defaults to the download filename

    Returns:
        str: Path the CSV was written to
    """
    service = ReportService(AsyncSessionLocal)
    try:
        report = await service.get_monthly_report(segment=segment, month=month)
    finally:
        await engine.dispose()

    path = output_file or csv_filename(report["segment"], report["month"])
    Path(path).write_text(render_csv(report["segment"], report["reportData"]), encoding="utf-8")

    print(f"✓ {segment} report ({report['month']}) written to {path}")
    print(f"  Rows: {len(report['reportData'])}")
    print(f"  Payment transactions: {report['totalPaymentTransactions']}")
    print(f"  Topics: {report['totalTopics']}")
    print(f"  Enrolled: {report['totalEnrolled']}")
    print(f"  Subscribed: {report['totalSubscribed']}")
    return path


def main():
    """CLI entry point"""
    parser = argparse.ArgumentParser(description="Export a monthly segment report to CSV")
    parser.add_argument(
        "--segment",
        "-s",
        required=True,
        choices=SEGMENTS,
        help="Report segment"
    )
    parser.add_argument(
        "--month",
        "-m",
        default=None,
        help="Month filter in YYYY-MM format (default: all time)"
    )
    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file path (default: {segment}_report_{month}.csv)"
    )

    args = parser.parse_args()

    try:
        asyncio.run(export_report(args.segment, args.month, args.output))
    except APIError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
