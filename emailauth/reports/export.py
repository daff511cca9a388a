"""
Write scan reports to evidence files.

File names follow ``EmailAuth-<domain>-<yyyyMMdd-HHmm>.<ext>`` using the
report timestamp in local time.  CSV files carry the Control, Status,
Detail and Fix columns; HTML files render the same table through the
``report.html`` template and therefore need a Flask application context.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from flask import render_template

from emailauth.checker.results import ScanReport

logger = logging.getLogger(__name__)

CSV_HEADER = ["Control", "Status", "Detail", "Fix"]

# Leading characters a spreadsheet treats as the start of a formula
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def report_basename(report: ScanReport) -> str:
    stamp = report.timestamp.astimezone().strftime("%Y%m%d-%H%M")
    return f"EmailAuth-{report.domain}-{stamp}"


def _csv_cell(value: str) -> str:
    """Neutralise cells that a spreadsheet would evaluate as a formula."""
    if value.startswith(_FORMULA_PREFIXES):
        return "'" + value
    return value


def write_csv(report: ScanReport, output_dir: str | Path) -> Path:
    """Write the report items as CSV and return the file path."""
    path = Path(output_dir) / f"{report_basename(report)}.csv"
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(CSV_HEADER)
        for item in report.items:
            writer.writerow([_csv_cell(v) for v in (item.control, item.status, item.detail, item.fix)])

    logger.info("CSV report written to %s", path)
    return path


def render_html(report: ScanReport) -> str:
    """Render the HTML report (requires an active Flask app context)."""
    return render_template(
        "report.html",
        report=report,
        generated=report.timestamp.astimezone().strftime("%Y-%m-%d %H:%M %Z"),
    )


def write_html(report: ScanReport, output_dir: str | Path) -> Path:
    """Render the report as HTML and return the file path."""
    path = Path(output_dir) / f"{report_basename(report)}.html"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(report), encoding="utf-8")

    logger.info("HTML report written to %s", path)
    return path
