"""Tests for the dues ledger and the arrears calculator."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from rt_admin.dues import (
    check_arrears,
    is_paid,
    monthly_payment_status,
    record_payment,
    scan_arrears,
    trailing_months,
)
from rt_admin.models import DuesPayment, DuesRateConfig, DuesType, HouseholdCategory

from conftest import HOUSEHOLD_ID, OTHER_HOUSEHOLD_ID


TODAY = date(2024, 3, 15)


def pay(payments, year, month, dues_type, household_id=HOUSEHOLD_ID, category=HouseholdCategory.C):
    updated, _ = record_payment(
        payments, household_id, year, month, dues_type, DuesRateConfig(), category
    )
    return updated


def pay_all(months, household_id=HOUSEHOLD_ID):
    payments = []
    for year, month in months:
        for dues_type in DuesType:
            payments = pay(payments, year, month, dues_type, household_id)
    return payments


class TestLedger:
    """Tests for recording payments."""

    def test_is_paid_requires_exact_match(self):
        """Test that every field of the obligation must match."""
        payments = pay([], 2024, 3, DuesType.RT)
        assert is_paid(payments, HOUSEHOLD_ID, 2024, 3, DuesType.RT)
        assert not is_paid(payments, HOUSEHOLD_ID, 2024, 3, DuesType.PKK)
        assert not is_paid(payments, HOUSEHOLD_ID, 2024, 2, DuesType.RT)
        assert not is_paid(payments, HOUSEHOLD_ID, 2023, 3, DuesType.RT)
        assert not is_paid(payments, OTHER_HOUSEHOLD_ID, 2024, 3, DuesType.RT)

    def test_amount_snapshots_category_rate(self):
        """Test that the charged amount comes from the category's rate."""
        _, payment = record_payment(
            [], HOUSEHOLD_ID, 2024, 3, DuesType.RT, DuesRateConfig(), HouseholdCategory.A
        )
        assert payment.amount == Decimal("75000")
        assert payment.id == f"{HOUSEHOLD_ID}-2024-3-RT"

    def test_paying_twice_keeps_one_record(self):
        """Test that paying is idempotent per obligation."""
        first = datetime(2024, 3, 1, 9, 0)
        second = datetime(2024, 3, 2, 10, 0)
        payments, _ = record_payment(
            [], HOUSEHOLD_ID, 2024, 3, DuesType.RT, DuesRateConfig(), HouseholdCategory.C, first
        )
        payments, stored = record_payment(
            payments, HOUSEHOLD_ID, 2024, 3, DuesType.RT, DuesRateConfig(), HouseholdCategory.C, second
        )
        assert len(payments) == 1
        assert payments[0].paid_at == second
        assert stored is payments[0]

    def test_input_list_not_modified(self):
        original = []
        updated = pay(original, 2024, 3, DuesType.RT)
        assert original == []
        assert len(updated) == 1

    def test_rate_change_keeps_recorded_amount(self):
        """Test that editing rates does not rewrite history."""
        payments = pay([], 2024, 3, DuesType.RT)
        new_rates = DuesRateConfig().with_rate(HouseholdCategory.C, DuesType.RT, Decimal("50000"))
        lines = scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, payments, new_rates, TODAY, window=1)
        assert payments[0].amount == Decimal("35000")
        assert lines[0].rt_due is None
        assert lines[0].pkk_due == Decimal("5000")


class TestTrailingMonths:
    """Tests for the arrears window."""

    def test_current_month_first(self):
        assert trailing_months(TODAY, 3) == [(2024, 3), (2024, 2), (2024, 1)]

    def test_crosses_year_boundary(self):
        """Test stepping back from February into the previous year."""
        assert trailing_months(date(2024, 2, 10), 6) == [
            (2024, 2), (2024, 1), (2023, 12), (2023, 11), (2023, 10), (2023, 9),
        ]

    def test_window_of_one(self):
        assert trailing_months(date(2024, 1, 31), 1) == [(2024, 1)]


class TestArrearsScan:
    """Tests for scanning unpaid obligations."""

    def test_all_unpaid(self):
        """Test six months of category C arrears."""
        lines = scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, [], DuesRateConfig(), TODAY)
        assert len(lines) == 6
        assert sum(line.total for line in lines) == Decimal("240000")
        assert (lines[0].year, lines[0].month, lines[0].month_name) == (2024, 3, "Maret")
        assert (lines[-1].year, lines[-1].month, lines[-1].month_name) == (2023, 10, "Oktober")

    def test_all_paid(self):
        """Test that a fully paid window has no lines."""
        payments = pay_all(trailing_months(TODAY, 6))
        assert scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, payments, DuesRateConfig(), TODAY) == []

    def test_partially_paid_month(self):
        """Test that a month with one unpaid type still appears."""
        payments = pay([], 2024, 3, DuesType.RT)
        lines = scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, payments, DuesRateConfig(), TODAY)
        assert lines[0].rt_due is None
        assert lines[0].pkk_due == Decimal("5000")
        assert sum(line.total for line in lines) == Decimal("205000")

    def test_payment_outside_window_ignored(self):
        payments = pay_all([(2023, 9)])
        lines = scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, payments, DuesRateConfig(), TODAY)
        assert len(lines) == 6

    def test_other_households_payments_ignored(self):
        payments = pay_all(trailing_months(TODAY, 6), household_id=OTHER_HOUSEHOLD_ID)
        lines = scan_arrears(HOUSEHOLD_ID, HouseholdCategory.C, payments, DuesRateConfig(), TODAY)
        assert len(lines) == 6


class TestArrearsLookup:
    """Tests for the public lookup by household id."""

    def test_lookup_scenario(self, make_resident):
        """Test a category C household that paid only March RT."""
        residents = [make_resident(name="Budi", unit="A1", category=HouseholdCategory.C)]
        payments = pay([], 2024, 3, DuesType.RT)

        result = check_arrears(HOUSEHOLD_ID, residents, payments, DuesRateConfig(), TODAY, window=6)

        assert result.success is True
        assert result.head_name == "Budi"
        assert result.unit == "A1"
        assert result.category == HouseholdCategory.C
        assert len(result.lines) == 6
        assert result.lines[0].rt_due is None
        assert result.lines[0].pkk_due == Decimal("5000")
        assert result.total == Decimal("205000")
        assert result.has_arrears is True

    def test_zero_arrears_is_success(self, make_resident):
        """Test that nothing outstanding is distinct from a failed lookup."""
        payments = pay_all(trailing_months(TODAY, 6))
        result = check_arrears(HOUSEHOLD_ID, [make_resident()], payments, DuesRateConfig(), TODAY, window=6)
        assert result.success is True
        assert result.lines == []
        assert result.total == Decimal("0")
        assert result.has_arrears is False

    @pytest.mark.parametrize("household_id", ["123", "320101010101000A", "32010101010100011", ""])
    def test_malformed_id(self, make_resident, household_id):
        """Test that malformed ids fail without a scan."""
        result = check_arrears(household_id, [make_resident()], [], DuesRateConfig(), TODAY)
        assert result.success is False
        assert result.error_code == "invalid_household_id"
        assert result.error_message == "Nomor KK harus terdiri dari 16 digit angka."
        assert result.lines == []

    def test_unknown_household(self, make_resident):
        result = check_arrears(OTHER_HOUSEHOLD_ID, [make_resident()], [], DuesRateConfig(), TODAY)
        assert result.success is False
        assert result.error_code == "household_not_found"
        assert result.error_message == "Nomor KK tidak ditemukan atau bukan Kepala Keluarga."

    def test_household_without_head_not_found(self, make_resident):
        """Test that only a Kepala Keluarga makes a household findable."""
        residents = [make_resident(relationship_status="Anak")]
        result = check_arrears(HOUSEHOLD_ID, residents, [], DuesRateConfig(), TODAY)
        assert result.error_code == "household_not_found"

    def test_missing_category_uses_default(self, make_resident, activity):
        """Test the default tier and its warning."""
        residents = [make_resident(category=None)]
        result = check_arrears(
            HOUSEHOLD_ID, residents, [], DuesRateConfig(), TODAY,
            window=1, default_category=HouseholdCategory.C, activity=activity,
        )
        assert result.category == HouseholdCategory.C
        assert result.total == Decimal("40000")
        assert "household_category_defaulted" in activity.names

    def test_id_is_trimmed(self, make_resident):
        result = check_arrears(f" {HOUSEHOLD_ID} ", [make_resident()], [], DuesRateConfig(), TODAY)
        assert result.success is True


class TestPaymentStatus:
    """Tests for the monthly payment history panel."""

    def test_rows_for_households_with_head(self, make_resident):
        """Test that headless households are left out and rows are sorted by unit."""
        residents = [
            make_resident(household_id=HOUSEHOLD_ID, name="Budi", unit="B1"),
            make_resident(household_id=OTHER_HOUSEHOLD_ID, name="Sari", unit="A2"),
            make_resident(household_id="3201010101010003", name="Ani", relationship_status="Anak"),
        ]
        paid_at = datetime(2024, 3, 5, 8, 30)
        payments, _ = record_payment(
            [], HOUSEHOLD_ID, 2024, 3, DuesType.PKK, DuesRateConfig(), HouseholdCategory.C, paid_at
        )

        rows = monthly_payment_status(2024, 3, residents, payments)

        assert [row.head_name for row in rows] == ["Sari", "Budi"]
        budi = rows[1]
        assert budi.pkk_paid_at == paid_at
        assert budi.pkk_paid is True
        assert budi.rt_paid is False
        assert rows[0].rt_paid_at is None

    def test_other_month_not_counted(self, make_resident):
        payments = pay([], 2024, 2, DuesType.RT)
        [row] = monthly_payment_status(2024, 3, [make_resident()], payments)
        assert row.rt_paid is False

    def test_payment_built_directly(self, make_resident):
        payment = DuesPayment(
            household_id=HOUSEHOLD_ID, year=2024, month=3, dues_type=DuesType.RT, amount=Decimal("1"),
        )
        [row] = monthly_payment_status(2024, 3, [make_resident()], [payment])
        assert row.rt_paid is True
