"""Formatting helpers and CSV report export."""

from rt_admin.reports.export import (
    ReportKind,
    build_dues_report,
    build_full_report,
    build_report,
    export_csv,
    find_section_value,
    parse_report_rows,
    report_filename,
    to_csv,
)
from rt_admin.reports.formatting import (
    MONTH_NAMES,
    format_amount,
    format_currency,
    format_date,
    month_name,
    parse_amount,
    period_label,
)

__all__ = [
    "MONTH_NAMES",
    "ReportKind",
    "build_dues_report",
    "build_full_report",
    "build_report",
    "export_csv",
    "find_section_value",
    "format_amount",
    "format_currency",
    "format_date",
    "month_name",
    "parse_amount",
    "parse_report_rows",
    "period_label",
    "report_filename",
    "to_csv",
]
