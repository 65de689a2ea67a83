"""
Data Models Package

This package contains all Pydantic models used in RT Admin.
All data flowing through the system must conform to these schemas.
"""

from rt_admin.models.finance import (
    DUES_LABELS,
    ArrearsLine,
    ArrearsLookupResult,
    DuesPayment,
    DuesRate,
    DuesRateConfig,
    DuesType,
    Expense,
    FinancialRecap,
    HouseholdCategory,
    HouseholdPaymentStatus,
    MonthlyFinancialSummary,
    OtherIncome,
    Transaction,
    TransactionKind,
    TransactionSource,
    payment_key,
)
from rt_admin.models.resident import (
    ADMIN_LIST_LABELS,
    HEAD_OF_HOUSEHOLD,
    AdminListCategory,
    AdminLists,
    Demographics,
    HouseholdSummary,
    Resident,
    Sex,
)
from rt_admin.models.user import Role, User
from rt_admin.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Finance models
    "DUES_LABELS",
    "ArrearsLine",
    "ArrearsLookupResult",
    "DuesPayment",
    "DuesRate",
    "DuesRateConfig",
    "DuesType",
    "Expense",
    "FinancialRecap",
    "HouseholdCategory",
    "HouseholdPaymentStatus",
    "MonthlyFinancialSummary",
    "OtherIncome",
    "Transaction",
    "TransactionKind",
    "TransactionSource",
    "payment_key",
    # Resident models
    "ADMIN_LIST_LABELS",
    "HEAD_OF_HOUSEHOLD",
    "AdminListCategory",
    "AdminLists",
    "Demographics",
    "HouseholdSummary",
    "Resident",
    "Sex",
    # Session
    "Role",
    "User",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
