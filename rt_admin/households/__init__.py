"""Household grouping and resident demographics."""

from rt_admin.households.aggregator import (
    configure_collation,
    find_head,
    group_by_household,
    resolve_category,
    search_households,
    summarize_households,
)
from rt_admin.households.demographics import AGE_GROUPS, build_demographics

__all__ = [
    "AGE_GROUPS",
    "build_demographics",
    "configure_collation",
    "find_head",
    "group_by_household",
    "resolve_category",
    "search_households",
    "summarize_households",
]
