"""
Dues Ledger and Arrears Calculator

DESIGN DECISION: A payment is identified by its obligation, the tuple
(household_id, year, month, dues_type). Recording the same obligation
twice replaces the earlier record, so at most one payment exists per
tuple and paying is idempotent.

The amount is snapshotted from the rate table at payment time. Editing
rates later never changes recorded payments.

All functions here are pure: they take the collections as arguments and
return new values. AppState owns persistence.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from rt_admin.activity import ActivityLogger
from rt_admin.config import get_settings
from rt_admin.households.aggregator import (
    find_head,
    group_by_household,
    resolve_category,
    unit_sort_key,
)
from rt_admin.models.finance import (
    ArrearsLine,
    ArrearsLookupResult,
    DuesPayment,
    DuesRateConfig,
    DuesType,
    HouseholdCategory,
    HouseholdPaymentStatus,
    payment_key,
)
from rt_admin.models.resident import Resident
from rt_admin.reports.formatting import month_name
from rt_admin.validation.validator import validate_household_id


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ArrearsLookupError(Exception):
    """Base exception for arrears lookups."""
    error_code = "lookup_failed"


class InvalidHouseholdIdError(ArrearsLookupError):
    """The household id is not 16 numeric digits."""
    error_code = "invalid_household_id"


class HouseholdNotFoundError(ArrearsLookupError):
    """No Kepala Keluarga is registered under the household id."""
    error_code = "household_not_found"


# =============================================================================
# LEDGER
# =============================================================================

def find_payment(
    payments: Iterable[DuesPayment],
    household_id: str,
    year: int,
    month: int,
    dues_type: DuesType,
) -> Optional[DuesPayment]:
    key = payment_key(household_id, year, month, dues_type)
    return next((p for p in payments if p.id == key), None)


def is_paid(
    payments: Iterable[DuesPayment],
    household_id: str,
    year: int,
    month: int,
    dues_type: DuesType,
) -> bool:
    """True only when a payment matches all four fields exactly."""
    return any(
        p.household_id == household_id
        and p.year == year
        and p.month == month
        and p.dues_type == dues_type
        for p in payments
    )


def record_payment(
    payments: list[DuesPayment],
    household_id: str,
    year: int,
    month: int,
    dues_type: DuesType,
    rates: DuesRateConfig,
    category: HouseholdCategory,
    paid_at: Optional[datetime] = None,
) -> tuple[list[DuesPayment], DuesPayment]:
    """
    Upsert the payment for one obligation.

    Returns:
        (new_payment_list, stored_payment). The input list is not modified.
    """
    payment = DuesPayment(
        household_id=household_id,
        year=year,
        month=month,
        dues_type=dues_type,
        amount=rates.rate_for(category).for_type(dues_type),
        paid_at=paid_at or datetime.now(),
    )
    kept = [p for p in payments if p.id != payment.id]
    return kept + [payment], payment


# =============================================================================
# ARREARS
# =============================================================================

def trailing_months(today: date, window: int) -> list[tuple[int, int]]:
    """
    (year, month) pairs for the current month and the window - 1 before it.

    Newest first; steps back across year boundaries.
    """
    year, month = today.year, today.month
    months = []
    for _ in range(window):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


def scan_arrears(
    household_id: str,
    category: HouseholdCategory,
    payments: Iterable[DuesPayment],
    rates: DuesRateConfig,
    today: Optional[date] = None,
    window: int = 6,
) -> list[ArrearsLine]:
    """
    Unpaid obligations over the trailing window.

    A month appears only when at least one of its two dues is unpaid.
    Unpaid amounts use the current rate for the category.
    """
    payments = list(payments)
    rate = rates.rate_for(category)
    lines = []

    for year, month in trailing_months(today or date.today(), window):
        rt_paid = is_paid(payments, household_id, year, month, DuesType.RT)
        pkk_paid = is_paid(payments, household_id, year, month, DuesType.PKK)
        if rt_paid and pkk_paid:
            continue
        lines.append(ArrearsLine(
            year=year,
            month=month,
            month_name=month_name(month),
            rt_due=None if rt_paid else rate.rt,
            pkk_due=None if pkk_paid else rate.pkk,
        ))

    return lines


def _lookup_head(household_id: str, residents: Iterable[Resident]) -> Resident:
    """
    Raises:
        InvalidHouseholdIdError: If the id is malformed
        HouseholdNotFoundError: If no head is registered under the id
    """
    if validate_household_id(household_id).has_errors:
        raise InvalidHouseholdIdError("Nomor KK harus terdiri dari 16 digit angka.")

    head = find_head(residents, household_id)
    if head is None:
        raise HouseholdNotFoundError("Nomor KK tidak ditemukan atau bukan Kepala Keluarga.")
    return head


def check_arrears(
    household_id: str,
    residents: Iterable[Resident],
    payments: Iterable[DuesPayment],
    rates: DuesRateConfig,
    today: Optional[date] = None,
    window: Optional[int] = None,
    default_category: Optional[HouseholdCategory] = None,
    activity: Optional[ActivityLogger] = None,
) -> ArrearsLookupResult:
    """
    Public arrears lookup by household id.

    Lookup failures come back as an unsuccessful result, never raised.
    A household with nothing outstanding is a successful result with no
    lines.
    """
    household_id = (household_id or "").strip()
    settings = get_settings().dues
    window = window or settings.arrears_window_months
    default_category = default_category or settings.default_category

    try:
        head = _lookup_head(household_id, residents)
    except ArrearsLookupError as e:
        return ArrearsLookupResult(
            household_id=household_id,
            success=False,
            error_code=e.error_code,
            error_message=str(e),
        )

    category = resolve_category(household_id, head, default_category, activity)

    return ArrearsLookupResult(
        household_id=household_id,
        success=True,
        head_name=head.name,
        unit=head.unit,
        category=category,
        lines=scan_arrears(household_id, category, payments, rates, today, window),
    )


# =============================================================================
# PAYMENT STATUS
# =============================================================================

def monthly_payment_status(
    year: int,
    month: int,
    residents: Iterable[Resident],
    payments: Iterable[DuesPayment],
) -> list[HouseholdPaymentStatus]:
    """
    RT and PKK status of every household with a head, sorted by unit.

    Households without a Kepala Keluarga are left out.
    """
    in_month = [p for p in payments if p.year == year and p.month == month]
    rows = []

    for household_id, members in group_by_household(residents).items():
        head = next((m for m in members if m.is_head), None)
        if head is None:
            continue
        rt = find_payment(in_month, household_id, year, month, DuesType.RT)
        pkk = find_payment(in_month, household_id, year, month, DuesType.PKK)
        rows.append(HouseholdPaymentStatus(
            household_id=household_id,
            head_name=head.name,
            unit=head.unit,
            rt_paid_at=rt.paid_at if rt else None,
            pkk_paid_at=pkk.paid_at if pkk else None,
        ))

    return sorted(rows, key=lambda row: unit_sort_key(row.unit))
