"""Dues payments, arrears and monthly payment status."""

from rt_admin.dues.ledger import (
    ArrearsLookupError,
    HouseholdNotFoundError,
    InvalidHouseholdIdError,
    check_arrears,
    find_payment,
    is_paid,
    monthly_payment_status,
    record_payment,
    scan_arrears,
    trailing_months,
)

__all__ = [
    "ArrearsLookupError",
    "HouseholdNotFoundError",
    "InvalidHouseholdIdError",
    "check_arrears",
    "find_payment",
    "is_paid",
    "monthly_payment_status",
    "record_payment",
    "scan_arrears",
    "trailing_months",
]
