"""
Monthly Financial Aggregator

Answers "how much came in and went out in month M of year Y".

Two different time tags are in play:
- Dues payments are filtered by their obligation period (year, month),
  not by when they were paid. Paying January's dues in March counts
  toward January.
- Other income and expenses are filtered by the calendar month of their
  date.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional

from rt_admin.households.aggregator import find_head
from rt_admin.models.finance import (
    DUES_LABELS,
    ZERO,
    DuesPayment,
    DuesRateConfig,
    DuesType,
    Expense,
    FinancialRecap,
    MonthlyFinancialSummary,
    OtherIncome,
    Transaction,
    TransactionKind,
    TransactionSource,
)
from rt_admin.models.resident import HouseholdSummary, Resident


def _in_month(entry_date: date, year: int, month: int) -> bool:
    return entry_date.year == year and entry_date.month == month


def _total(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


def summarize_month(
    year: int,
    month: int,
    payments: Iterable[DuesPayment],
    other_income: Iterable[OtherIncome],
    expenses: Iterable[Expense],
) -> MonthlyFinancialSummary:
    """Income by source, total expense and balance for one month."""
    dues = [p for p in payments if p.year == year and p.month == month]

    return MonthlyFinancialSummary(
        year=year,
        month=month,
        collected_by_type={
            dues_type: _total(p.amount for p in dues if p.dues_type == dues_type)
            for dues_type in DuesType
        },
        other_income_total=_total(i.amount for i in other_income if _in_month(i.date, year, month)),
        expense_total=_total(e.amount for e in expenses if _in_month(e.date, year, month)),
    )


def expected_dues_total(households: Iterable[HouseholdSummary], rates: DuesRateConfig) -> Decimal:
    """
    RT + PKK for every household at current rates, paid or not.

    This is the collection ceiling for a month, not a receivable.
    """
    return _total(rates.rate_for(h.category).total for h in households)


def build_recap(
    year: int,
    month: int,
    residents: list[Resident],
    households: list[HouseholdSummary],
    payments: Iterable[DuesPayment],
    other_income: Iterable[OtherIncome],
    expenses: Iterable[Expense],
    rates: DuesRateConfig,
) -> FinancialRecap:
    return FinancialRecap(
        summary=summarize_month(year, month, payments, other_income, expenses),
        expected_dues_total=expected_dues_total(households, rates),
        total_residents=len(residents),
        total_households=len(households),
    )


def dues_description(
    dues_type: DuesType,
    household_id: str,
    head_name: Optional[str] = None,
    public: bool = False,
) -> str:
    """
    Listing label for a dues payment.

    The public variant never shows who paid.
    """
    dues_type = DuesType(dues_type)
    if public:
        return f"Pembayaran Iuran Warga ({dues_type.value})"
    return f"{DUES_LABELS[dues_type]} - {head_name or household_id}"


def list_transactions(
    year: int,
    month: int,
    residents: list[Resident],
    payments: Iterable[DuesPayment],
    other_income: Iterable[OtherIncome],
    expenses: Iterable[Expense],
    public: bool = False,
) -> list[Transaction]:
    """
    Every income and expense of the month in one list, newest first.

    Dues entries carry their dues_type so reports can filter on it
    instead of matching description text.
    """
    transactions = []

    for payment in payments:
        if payment.year != year or payment.month != month:
            continue
        head = None if public else find_head(residents, payment.household_id)
        transactions.append(Transaction(
            id=payment.id,
            occurred_at=payment.paid_at,
            description=dues_description(
                payment.dues_type,
                payment.household_id,
                head.name if head else None,
                public=public,
            ),
            amount=payment.amount,
            kind=TransactionKind.INCOME,
            source=TransactionSource.DUES,
            dues_type=payment.dues_type,
        ))

    for income in other_income:
        if _in_month(income.date, year, month):
            transactions.append(Transaction(
                id=str(income.id),
                occurred_at=datetime.combine(income.date, time.min),
                description=income.description,
                amount=income.amount,
                kind=TransactionKind.INCOME,
                source=TransactionSource.OTHER_INCOME,
            ))

    for expense in expenses:
        if _in_month(expense.date, year, month):
            transactions.append(Transaction(
                id=str(expense.id),
                occurred_at=datetime.combine(expense.date, time.min),
                description=expense.description,
                amount=expense.amount,
                kind=TransactionKind.EXPENSE,
                source=TransactionSource.EXPENSE,
                has_receipt=expense.has_receipt and not public,
            ))

    return sorted(transactions, key=lambda t: t.occurred_at, reverse=True)
