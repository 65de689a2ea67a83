"""Monthly income, expense and balance aggregation."""

from rt_admin.finance.aggregator import (
    build_recap,
    dues_description,
    expected_dues_total,
    list_transactions,
    summarize_month,
)

__all__ = [
    "build_recap",
    "dues_description",
    "expected_dues_total",
    "list_transactions",
    "summarize_month",
]
