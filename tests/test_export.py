"""Tests for Indonesian formatting and CSV report export."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from rt_admin.finance import list_transactions, summarize_month
from rt_admin.models import DuesPayment, DuesType, Expense, OtherIncome
from rt_admin.reports import (
    ReportKind,
    build_dues_report,
    build_full_report,
    build_report,
    export_csv,
    find_section_value,
    format_amount,
    format_currency,
    format_date,
    month_name,
    parse_amount,
    parse_report_rows,
    report_filename,
    to_csv,
)

from conftest import HOUSEHOLD_ID


class TestFormatting:
    """Tests for id-ID number and date formatting."""

    @pytest.mark.parametrize("amount, expected", [
        (Decimal("35000"), "35.000"),
        (1234567, "1.234.567"),
        (0, "0"),
        (Decimal("-5000"), "-5.000"),
        (Decimal("1234.5"), "1.234,5"),
        (Decimal("999"), "999"),
    ])
    def test_format_amount(self, amount, expected):
        assert format_amount(amount) == expected

    def test_format_currency(self):
        assert format_currency(Decimal("35000")) == "Rp 35.000"
        assert format_currency(Decimal("-30000")) == "-Rp 30.000"

    @pytest.mark.parametrize("text, expected", [
        ("35.000", Decimal("35000")),
        ("Rp 1.234,5", Decimal("1234.5")),
        ("-5.000", Decimal("-5000")),
        ("0", Decimal("0")),
    ])
    def test_parse_amount(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "Rp"])
    def test_parse_amount_rejects_garbage(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)

    def test_month_names(self):
        assert month_name(1) == "Januari"
        assert month_name(3) == "Maret"
        assert month_name(12) == "Desember"

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_name_out_of_range(self, month):
        with pytest.raises(ValueError):
            month_name(month)

    def test_format_date(self):
        assert format_date(date(2024, 3, 5)) == "5/3/2024"
        assert format_date(datetime(2024, 12, 25, 10, 0)) == "25/12/2024"


class TestCsv:
    """Tests for CSV serialization."""

    def test_quoting_and_line_endings(self):
        """Test that separators and quotes are escaped and lines end in CRLF."""
        text = to_csv([["a,b", 'say "hi"', None, 5], ["plain"]])
        assert text == '"a,b","say ""hi""",,5\r\nplain\r\n'

    def test_empty_rows(self):
        assert to_csv([[], ["x"]]) == "\r\nx\r\n"

    def test_parse_back(self):
        rows = [["Tanggal", "Keterangan"], ["5/3/2024", "Iuran RT - Budi, Jr."]]
        assert parse_report_rows(to_csv(rows)) == rows

    def test_report_filename(self):
        """Test the download file name for each report."""
        assert report_filename(ReportKind.RT, 2024, 3) == "Laporan_RT_Maret_2024.csv"
        assert report_filename(ReportKind.PKK, 2024, 3) == "Laporan_PKK_Maret_2024.csv"
        assert report_filename("Keseluruhan", 2023, 12) == "Laporan_Keseluruhan_Desember_2023.csv"

    def test_export_writes_file(self, tmp_path):
        path = export_csv("Laporan_RT_Maret_2024.csv", [["a", "b"]], tmp_path / "out")
        assert path == tmp_path / "out" / "Laporan_RT_Maret_2024.csv"
        assert path.read_bytes() == b"a,b\r\n"


@pytest.fixture
def month_data(make_resident):
    residents = [make_resident(name="Budi")]
    payments = [
        DuesPayment(household_id=HOUSEHOLD_ID, year=2024, month=3, dues_type=DuesType.RT,
                    amount=Decimal("100000"), paid_at=datetime(2024, 3, 5, 9, 0)),
    ]
    other_income = [
        OtherIncome(date=date(2024, 3, 8), description="Sewa tenda, kursi", amount=Decimal("50000")),
    ]
    expenses = [
        Expense(date=date(2024, 3, 20), description="Beli lampu", amount=Decimal("30000")),
    ]
    summary = summarize_month(2024, 3, payments, other_income, expenses)
    transactions = list_transactions(2024, 3, residents, payments, other_income, expenses)
    return summary, transactions


class TestReports:
    """Tests for the canned reports."""

    def test_full_report_layout(self, month_data):
        """Test the summary block and transaction rows."""
        summary, transactions = month_data
        rows = build_full_report(2024, 3, summary, transactions)

        assert rows[0] == ["Laporan Keuangan Keseluruhan"]
        assert rows[1] == ["Periode: Maret 2024"]
        assert rows[3] == ["", "Ringkasan Keuangan"]
        assert rows[4] == ["", "Total Pemasukan", "150.000"]
        assert rows[5] == ["", "Total Pengeluaran", "30.000"]
        assert rows[6] == ["", "Saldo Akhir", "120.000"]
        assert rows[8] == ["Tanggal", "Keterangan", "Pemasukan (IDR)", "Pengeluaran (IDR)"]
        assert rows[9] == ["20/3/2024", "Beli lampu", "", "30.000"]
        assert rows[10] == ["8/3/2024", "Sewa tenda, kursi", "50.000", ""]
        assert rows[11] == ["5/3/2024", "Iuran RT - Budi", "100.000", ""]

    def test_full_report_round_trip(self, month_data):
        """Test that exported text reads back to the same totals."""
        summary, transactions = month_data
        rows = parse_report_rows(to_csv(build_full_report(2024, 3, summary, transactions)))

        assert parse_amount(find_section_value(rows, "Total Pemasukan")) == summary.total_income
        assert parse_amount(find_section_value(rows, "Saldo Akhir")) == summary.balance
        assert ["8/3/2024", "Sewa tenda, kursi", "50.000", ""] in rows

    def test_dues_report_filters_by_type(self, month_data):
        """Test the RT report contains only RT dues."""
        summary, transactions = month_data
        rows = build_dues_report(DuesType.RT, 2024, 3, transactions)

        assert rows[0] == ["Laporan Pemasukan Iuran RT"]
        assert rows[3] == ["", "Total Pemasukan Iuran", "100.000"]
        assert rows[5] == ["Tanggal Bayar", "Keterangan", "Jumlah (IDR)"]
        assert rows[6:] == [["5/3/2024", "Iuran RT - Budi", "100.000"]]

    def test_dues_report_ignores_description_text(self, month_data):
        """Test that an income entry mentioning Iuran RT is not counted as dues."""
        summary, transactions = month_data
        decoy = OtherIncome(date=date(2024, 3, 9), description="Titipan Iuran RT", amount=Decimal("1000"))
        transactions = transactions + list_transactions(2024, 3, [], [], [decoy], [])
        rows = build_dues_report(DuesType.RT, 2024, 3, transactions)
        assert len(rows) == 7

    def test_empty_pkk_report(self, month_data):
        summary, transactions = month_data
        rows = build_report(ReportKind.PKK, 2024, 3, summary, transactions)
        assert rows[0] == ["Laporan Pemasukan Iuran PKK"]
        assert rows[3] == ["", "Total Pemasukan Iuran", "0"]
        assert len(rows) == 6
