"""Dashboard breakdowns over the resident collection."""

from collections import Counter
from datetime import date
from typing import Iterable, Optional

from rt_admin.models.resident import Demographics, Resident


# (label, inclusive upper bound in years); the last group is open-ended
AGE_GROUPS = (
    ("Balita (0-5)", 5),
    ("Anak & Remaja (6-17)", 17),
    ("Dewasa (18-59)", 59),
    ("Lansia (60+)", None),
)


def age_group(age: int) -> str:
    for label, upper in AGE_GROUPS:
        if upper is None or age <= upper:
            return label
    raise AssertionError("unreachable")


def count_by(values: Iterable[str]) -> dict[str, int]:
    """Count non-empty values, most frequent first."""
    counts = Counter(value for value in values if value)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def build_demographics(residents: Iterable[Resident], today: Optional[date] = None) -> Demographics:
    """
    Totals and breakdowns for the dashboard.

    Residents without a birth date, or with one after today, are left
    out of the age groups only.
    Age groups keep their fixed order and always include every label.
    """
    residents = list(residents)
    today = today or date.today()

    ages = {label: 0 for label, _ in AGE_GROUPS}
    for resident in residents:
        age = resident.age(today)
        if age is not None and age >= 0:
            ages[age_group(age)] += 1

    return Demographics(
        total_residents=len(residents),
        total_households=len({r.household_id for r in residents}),
        by_sex=count_by(r.sex.value for r in residents),
        by_age_group=ages,
        by_religion=count_by(r.religion for r in residents),
        by_education=count_by(r.education for r in residents),
        by_marital_status=count_by(r.marital_status for r in residents),
    )
