"""Shared fixtures for the RT Admin test suite."""

from datetime import date
from io import BytesIO

import pytest
from PIL import Image

from rt_admin.activity import ActivityLogger
from rt_admin.models import HEAD_OF_HOUSEHOLD, HouseholdCategory, Resident
from rt_admin.services.storage import InMemoryStore, register_legacy_migrations
from rt_admin.state import AppState


HOUSEHOLD_ID = "3201010101010001"
OTHER_HOUSEHOLD_ID = "3201010101010002"


class RecordingActivity(ActivityLogger):
    """ActivityLogger that keeps events in memory instead of logging them."""

    def __init__(self):
        super().__init__("tests")
        self.events = []

    def _emit(self, level, event, **fields):
        self.events.append((level, event, fields))

    @property
    def names(self):
        return [event for _, event, _ in self.events]


@pytest.fixture
def activity():
    return RecordingActivity()


@pytest.fixture
def make_resident():
    """Factory for residents; keyword arguments override the defaults."""

    def _make(**overrides):
        data = dict(
            name="Budi Santoso",
            household_id=HOUSEHOLD_ID,
            relationship_status=HEAD_OF_HOUSEHOLD,
            address="Jl. Melati No. 1",
            unit="A1",
            category=HouseholdCategory.C,
            birth_date=date(1980, 5, 17),
        )
        data.update(overrides)
        return Resident(**data)

    return _make


@pytest.fixture
def store(activity):
    return register_legacy_migrations(InMemoryStore(activity=activity))


@pytest.fixture
def state(store, activity):
    return AppState(store, activity=activity)


@pytest.fixture
def admin_state(state):
    state.login("admin", "password")
    return state


@pytest.fixture
def treasurer_state(state):
    state.login("bendahara", "password")
    return state


@pytest.fixture
def png_bytes():
    buffer = BytesIO()
    Image.new("RGB", (20, 20), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()
