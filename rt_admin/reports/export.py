"""
CSV report export.

Reports are small ragged grids: a title block, a totals block, then one
row per transaction. They are written with the csv module (CRLF line
endings, cells containing separators or quotes are quoted) to a file in
the chosen directory.
"""

import csv
import io
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from rt_admin.models.finance import (
    DuesType,
    MonthlyFinancialSummary,
    Transaction,
    TransactionKind,
    ZERO,
)
from rt_admin.reports.formatting import (
    format_amount,
    format_date,
    month_name,
    period_label,
)


Cell = Union[str, int, float, None]
Row = Sequence[Cell]


class ReportKind(str, Enum):
    """The three canned reports."""
    RT = "RT"
    PKK = "PKK"
    FULL = "Keseluruhan"


def report_filename(kind: ReportKind, year: int, month: int) -> str:
    """Laporan_<RT|PKK|Keseluruhan>_<Bulan>_<year>.csv"""
    return f"Laporan_{ReportKind(kind).value}_{month_name(month)}_{year}.csv"


def to_csv(rows: Iterable[Row]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue()


def parse_report_rows(csv_text: str) -> list[list[str]]:
    """Read report text back into rows of strings."""
    return [row for row in csv.reader(io.StringIO(csv_text, newline=""))]


def export_csv(filename: str, rows: Iterable[Row], directory: Union[str, Path]) -> Path:
    """
    Write rows to directory/filename, creating the directory if needed.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    with path.open("w", newline="", encoding="utf-8") as handle:
        handle.write(to_csv(rows))
    return path


# =============================================================================
# CANNED REPORTS
# =============================================================================

def build_dues_report(
    dues_type: DuesType,
    year: int,
    month: int,
    transactions: Iterable[Transaction],
) -> list[list[Cell]]:
    """RT-only or PKK-only income report."""
    dues_type = DuesType(dues_type)
    selected = [t for t in transactions if t.dues_type == dues_type]
    total = sum((t.amount for t in selected), ZERO)

    rows: list[list[Cell]] = [
        [f"Laporan Pemasukan Iuran {dues_type.value}"],
        [f"Periode: {period_label(year, month)}"],
        [],
        ["", "Total Pemasukan Iuran", format_amount(total)],
        [],
        ["Tanggal Bayar", "Keterangan", "Jumlah (IDR)"],
    ]
    for t in selected:
        rows.append([format_date(t.occurred_at), t.description, format_amount(t.amount)])
    return rows


def build_full_report(
    year: int,
    month: int,
    summary: MonthlyFinancialSummary,
    transactions: Iterable[Transaction],
) -> list[list[Cell]]:
    """Summary block followed by every transaction of the month."""
    rows: list[list[Cell]] = [
        ["Laporan Keuangan Keseluruhan"],
        [f"Periode: {period_label(year, month)}"],
        [],
        ["", "Ringkasan Keuangan"],
        ["", "Total Pemasukan", format_amount(summary.total_income)],
        ["", "Total Pengeluaran", format_amount(summary.expense_total)],
        ["", "Saldo Akhir", format_amount(summary.balance)],
        [],
        ["Tanggal", "Keterangan", "Pemasukan (IDR)", "Pengeluaran (IDR)"],
    ]
    for t in transactions:
        income = format_amount(t.amount) if t.kind == TransactionKind.INCOME else ""
        expense = format_amount(t.amount) if t.kind == TransactionKind.EXPENSE else ""
        rows.append([format_date(t.occurred_at), t.description, income, expense])
    return rows


def build_report(
    kind: ReportKind,
    year: int,
    month: int,
    summary: MonthlyFinancialSummary,
    transactions: Iterable[Transaction],
) -> list[list[Cell]]:
    kind = ReportKind(kind)
    if kind == ReportKind.FULL:
        return build_full_report(year, month, summary, transactions)
    return build_dues_report(DuesType(kind.value), year, month, transactions)


def find_section_value(rows: Iterable[Sequence[str]], label: str) -> Optional[str]:
    """Value cell next to a summary label, e.g. "Saldo Akhir"."""
    for row in rows:
        if len(row) >= 3 and row[1] == label:
            return row[2]
    return None
