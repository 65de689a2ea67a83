"""
Household Aggregator

Households are not stored. They are derived on every read by grouping
residents that share a household id, with the Kepala Keluarga as the
representative member.
"""

import locale
from typing import Iterable, Optional

from rt_admin.activity import ActivityLogger
from rt_admin.models.finance import HouseholdCategory
from rt_admin.models.resident import PLACEHOLDER, HouseholdSummary, Resident


_activity = ActivityLogger("rt_admin.households")


def group_by_household(residents: Iterable[Resident]) -> dict[str, list[Resident]]:
    """Group residents by household id, keeping first-seen order."""
    groups: dict[str, list[Resident]] = {}
    for resident in residents:
        groups.setdefault(resident.household_id, []).append(resident)
    return groups


def find_head(residents: Iterable[Resident], household_id: str) -> Optional[Resident]:
    """First resident of the household tagged Kepala Keluarga, if any."""
    return next(
        (r for r in residents if r.household_id == household_id and r.is_head),
        None,
    )


def resolve_category(
    household_id: str,
    head: Optional[Resident],
    default_category: HouseholdCategory,
    activity: Optional[ActivityLogger] = None,
    reported: Optional[set[str]] = None,
) -> HouseholdCategory:
    """
    Category of a household: the head's, else the default tier.

    Falling back is a data-quality condition and is logged. When a
    reported set is given, each household is logged only the first time
    and its id is added to the set.
    """
    if head is not None and head.category is not None:
        return head.category
    if reported is None or household_id not in reported:
        (activity or _activity).household_category_defaulted(household_id, default_category.value)
        if reported is not None:
            reported.add(household_id)
    return default_category


def configure_collation(locale_name: str = "", activity: Optional[ActivityLogger] = None) -> bool:
    """
    Set the process collation locale used by unit_sort_key.

    An empty name takes the locale from the environment (LC_ALL, LC_COLLATE,
    LANG). When the locale is not installed, sorting stays bytewise and the
    failure is logged.

    Returns:
        True if the locale was applied
    """
    try:
        locale.setlocale(locale.LC_COLLATE, locale_name)
    except locale.Error as e:
        (activity or _activity).collation_unavailable(locale_name, str(e))
        return False
    return True


def unit_sort_key(unit: str) -> str:
    """Locale-aware collation key for house numbers."""
    try:
        return locale.strxfrm(unit)
    except (OSError, ValueError):
        return unit


def summarize_households(
    residents: Iterable[Resident],
    default_category: HouseholdCategory = HouseholdCategory.C,
    activity: Optional[ActivityLogger] = None,
    reported: Optional[set[str]] = None,
) -> list[HouseholdSummary]:
    """
    One summary per household, sorted by unit.

    Address and unit come from the head, else from the first member.
    """
    summaries = []

    for household_id, members in group_by_household(residents).items():
        head = next((m for m in members if m.is_head), None)
        first = members[0]

        summaries.append(HouseholdSummary(
            household_id=household_id,
            head_name=head.name if head else PLACEHOLDER,
            phone=head.phone if head else None,
            address=(head.address if head else "") or first.address or PLACEHOLDER,
            unit=(head.unit if head else "") or first.unit or PLACEHOLDER,
            member_count=len(members),
            category=resolve_category(household_id, head, default_category, activity, reported),
        ))

    return sorted(summaries, key=lambda s: unit_sort_key(s.unit))


def search_households(summaries: Iterable[HouseholdSummary], term: str) -> list[HouseholdSummary]:
    """Case-insensitive substring match over every displayed column."""
    term = term.strip().lower()
    if not term:
        return list(summaries)

    def matches(summary: HouseholdSummary) -> bool:
        values = summary.model_dump(mode="json").values()
        return any(term in str(value).lower() for value in values if value is not None)

    return [s for s in summaries if matches(s)]
