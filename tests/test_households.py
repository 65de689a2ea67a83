"""Tests for household grouping and dashboard demographics."""

import locale
from datetime import date

import pytest

from rt_admin.households import (
    build_demographics,
    configure_collation,
    find_head,
    group_by_household,
    resolve_category,
    search_households,
    summarize_households,
)
from rt_admin.models import HouseholdCategory, Sex

from conftest import HOUSEHOLD_ID, OTHER_HOUSEHOLD_ID


THIRD_HOUSEHOLD_ID = "3201010101010003"


class TestGrouping:
    """Tests for grouping residents into households."""

    def test_group_preserves_first_seen_order(self, make_resident):
        residents = [
            make_resident(name="B1", household_id=OTHER_HOUSEHOLD_ID),
            make_resident(name="A1", household_id=HOUSEHOLD_ID),
            make_resident(name="B2", household_id=OTHER_HOUSEHOLD_ID, relationship_status="Anak"),
        ]
        groups = group_by_household(residents)
        assert list(groups) == [OTHER_HOUSEHOLD_ID, HOUSEHOLD_ID]
        assert [r.name for r in groups[OTHER_HOUSEHOLD_ID]] == ["B1", "B2"]

    def test_find_head(self, make_resident):
        child = make_resident(name="Ani", relationship_status="Anak")
        head = make_resident(name="Budi")
        assert find_head([child, head], HOUSEHOLD_ID) is head
        assert find_head([child], HOUSEHOLD_ID) is None


class TestHouseholdSummary:
    """Tests for the derived household rows."""

    def test_head_is_representative(self, make_resident):
        """Test that the head supplies name, address and unit."""
        residents = [
            make_resident(name="Ani", relationship_status="Istri", address="Lain", unit="Z9"),
            make_resident(name="Budi", phone="0812", category=HouseholdCategory.A),
        ]
        [summary] = summarize_households(residents)
        assert summary.head_name == "Budi"
        assert summary.address == "Jl. Melati No. 1"
        assert summary.unit == "A1"
        assert summary.phone == "62812"
        assert summary.member_count == 2
        assert summary.category == HouseholdCategory.A
        assert summary.has_head is True

    def test_headless_household_uses_first_member(self, make_resident, activity):
        """Test the placeholder name and first-member fallbacks."""
        residents = [
            make_resident(name="Ani", relationship_status="Anak", address="Jl. Mawar", unit="B2"),
            make_resident(name="Ina", relationship_status="Anak", address="", unit=""),
        ]
        [summary] = summarize_households(residents, HouseholdCategory.C, activity)
        assert summary.head_name == "N/A"
        assert summary.has_head is False
        assert summary.address == "Jl. Mawar"
        assert summary.unit == "B2"
        assert summary.category == HouseholdCategory.C

    def test_missing_address_becomes_placeholder(self, make_resident):
        [summary] = summarize_households([make_resident(address="", unit="")])
        assert summary.address == "N/A"
        assert summary.unit == "N/A"

    def test_sorted_by_unit(self, make_resident):
        """Test that households are ordered by house number."""
        residents = [
            make_resident(household_id=HOUSEHOLD_ID, unit="B2"),
            make_resident(household_id=OTHER_HOUSEHOLD_ID, unit="A1"),
            make_resident(household_id=THIRD_HOUSEHOLD_ID, unit="A3"),
        ]
        units = [s.unit for s in summarize_households(residents)]
        assert units == ["A1", "A3", "B2"]

    def test_category_fallback_is_logged(self, make_resident, activity):
        """Test that a missing category defaults and warns."""
        head = make_resident(category=None)
        category = resolve_category(HOUSEHOLD_ID, head, HouseholdCategory.C, activity)
        assert category == HouseholdCategory.C
        assert activity.names == ["household_category_defaulted"]
        level, _, fields = activity.events[0]
        assert level == "warning"
        assert fields == {"household_id": HOUSEHOLD_ID, "default_category": "C"}

    def test_category_from_head_is_not_logged(self, make_resident, activity):
        head = make_resident(category=HouseholdCategory.B)
        assert resolve_category(HOUSEHOLD_ID, head, HouseholdCategory.C, activity) == HouseholdCategory.B
        assert activity.events == []

    def test_category_fallback_reported_once(self, make_resident, activity):
        """Test that repeated summaries warn once per household."""
        reported = set()
        residents = [make_resident(category=None)]
        summarize_households(residents, HouseholdCategory.C, activity, reported)
        summarize_households(residents, HouseholdCategory.C, activity, reported)
        assert activity.names == ["household_category_defaulted"]
        assert reported == {HOUSEHOLD_ID}

    def test_configured_default_category(self, make_resident, activity):
        [summary] = summarize_households(
            [make_resident(category=None)], HouseholdCategory.D, activity
        )
        assert summary.category == HouseholdCategory.D

    def test_search(self, make_resident):
        residents = [
            make_resident(household_id=HOUSEHOLD_ID, name="Budi", unit="A1"),
            make_resident(household_id=OTHER_HOUSEHOLD_ID, name="Sari", unit="B4"),
        ]
        summaries = summarize_households(residents)
        assert [s.head_name for s in search_households(summaries, "sar")] == ["Sari"]
        assert [s.head_name for s in search_households(summaries, "0001")] == ["Budi"]
        assert len(search_households(summaries, "  ")) == 2


class TestDemographics:
    """Tests for the dashboard breakdowns."""

    TODAY = date(2024, 6, 1)

    def test_totals(self, make_resident):
        residents = [
            make_resident(household_id=HOUSEHOLD_ID),
            make_resident(household_id=HOUSEHOLD_ID, relationship_status="Anak"),
            make_resident(household_id=OTHER_HOUSEHOLD_ID),
        ]
        stats = build_demographics(residents, self.TODAY)
        assert stats.total_residents == 3
        assert stats.total_households == 2

    @pytest.mark.parametrize("birth_date, group", [
        (date(2020, 1, 1), "Balita (0-5)"),
        (date(2018, 6, 2), "Balita (0-5)"),
        (date(2018, 6, 1), "Anak & Remaja (6-17)"),
        (date(2006, 6, 1), "Dewasa (18-59)"),
        (date(1964, 6, 2), "Dewasa (18-59)"),
        (date(1964, 6, 1), "Lansia (60+)"),
    ])
    def test_age_group_boundaries(self, make_resident, birth_date, group):
        """Test that boundaries use full years of age."""
        stats = build_demographics([make_resident(birth_date=birth_date)], self.TODAY)
        assert stats.by_age_group[group] == 1

    def test_age_groups_always_listed(self, make_resident):
        stats = build_demographics([make_resident(birth_date=None)], self.TODAY)
        assert list(stats.by_age_group) == [
            "Balita (0-5)", "Anak & Remaja (6-17)", "Dewasa (18-59)", "Lansia (60+)",
        ]
        assert sum(stats.by_age_group.values()) == 0

    def test_future_birth_date_not_counted(self, make_resident):
        stats = build_demographics([make_resident(birth_date=date(2030, 1, 1))], self.TODAY)
        assert sum(stats.by_age_group.values()) == 0
        assert stats.total_residents == 1

    def test_breakdowns_skip_empty_and_sort_by_count(self, make_resident):
        """Test that blank values are skipped and the largest group comes first."""
        residents = [
            make_resident(religion="Kristen Protestan", sex=Sex.FEMALE),
            make_resident(religion="Islam"),
            make_resident(religion="Islam"),
            make_resident(religion=""),
        ]
        stats = build_demographics(residents, self.TODAY)
        assert list(stats.by_religion.items()) == [("Islam", 2), ("Kristen Protestan", 1)]
        assert stats.by_sex == {"Laki-laki": 3, "Perempuan": 1}
        assert stats.by_education == {}

    def test_empty_collection(self):
        stats = build_demographics([], self.TODAY)
        assert stats.total_residents == 0
        assert stats.total_households == 0


class TestCollation:
    """Tests for the unit sorting locale."""

    def test_applies_locale(self, monkeypatch, activity):
        calls = []
        monkeypatch.setattr(locale, "setlocale", lambda category, name: calls.append((category, name)))
        assert configure_collation("id_ID.UTF-8", activity) is True
        assert calls == [(locale.LC_COLLATE, "id_ID.UTF-8")]
        assert activity.events == []

    def test_missing_locale_is_logged(self, monkeypatch, activity):
        def unavailable(category, name):
            raise locale.Error("unsupported locale setting")

        monkeypatch.setattr(locale, "setlocale", unavailable)
        assert configure_collation("xx_XX.UTF-8", activity) is False
        assert activity.names == ["collation_unavailable"]
