"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a plain key-value store of JSON-serializable
values. Each collection (residents, dues payments, ...) lives under its own
key and is rewritten whole on every mutation.

Every value is wrapped in a versioned envelope:

    {"version": 1, "payload": <value>}

A stored value without an envelope is treated as version 0 (the layout
written before envelopes existed) and migrated on read.

Reads are best-effort: a missing, corrupted or unmigratable value falls back
to the caller's default and is logged. Writes are not: a failed write raises
StorageError so the UI can tell the user.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from rt_admin.activity import ActivityLogger


# Storage keys, one per persisted collection
SESSION_KEY = "session"
RESIDENTS_KEY = "residents"
ADMIN_LISTS_KEY = "admin_lists"
DUES_PAYMENTS_KEY = "dues_payments"
DUES_RATES_KEY = "dues_rates"
EXPENSES_KEY = "expenses"
OTHER_INCOME_KEY = "other_income"

ALL_KEYS = (
    SESSION_KEY,
    RESIDENTS_KEY,
    ADMIN_LISTS_KEY,
    DUES_PAYMENTS_KEY,
    DUES_RATES_KEY,
    EXPENSES_KEY,
    OTHER_INCOME_KEY,
)

Migration = Callable[[Any], Any]


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class KeyValueStore(ABC):
    """
    Abstract interface for the local key-value store.

    Subclasses implement raw access (_read_raw/_write_raw/_delete_raw);
    envelopes, migrations and the read fallback policy live here.
    """

    def __init__(
        self,
        schema_version: int = 1,
        activity: Optional[ActivityLogger] = None,
    ):
        self._schema_version = schema_version
        self._migrations: dict[tuple[str, int], Migration] = {}
        self._activity = activity or ActivityLogger("rt_admin.storage")

    @abstractmethod
    def _read_raw(self, key: str) -> Optional[Any]:
        """
        Return the decoded JSON stored under key, or None if absent.

        Raises:
            Any decoding/IO error; load() turns it into a fallback
        """
        pass

    @abstractmethod
    def _write_raw(self, key: str, value: Any) -> None:
        """
        Persist a JSON-serializable value under key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def _delete_raw(self, key: str) -> None:
        pass

    @property
    def schema_version(self) -> int:
        return self._schema_version

    def register_migration(self, key: str, from_version: int, migration: Migration) -> None:
        """Register a payload upgrade from from_version to from_version + 1."""
        self._migrations[(key, from_version)] = migration

    def _unwrap(self, key: str, stored: Any) -> Any:
        if isinstance(stored, dict) and set(stored) == {"version", "payload"}:
            version, payload = int(stored["version"]), stored["payload"]
        else:
            version, payload = 0, stored

        if version > self._schema_version:
            raise StorageError(
                f"Stored '{key}' has version {version}, newer than {self._schema_version}"
            )

        start = version
        while version < self._schema_version:
            migration = self._migrations.get((key, version), _wrap_legacy if version == 0 else None)
            if migration is None:
                raise StorageError(f"No migration for '{key}' from version {version}")
            payload = migration(payload)
            version += 1

        if start != version:
            self._activity.storage_migrated(key, start, version)
        return payload

    def load(self, key: str, default: Any) -> Any:
        """
        Load the payload stored under key.

        Falls back to default (without raising) when the value is absent,
        unreadable or cannot be migrated.
        """
        try:
            stored = self._read_raw(key)
            if stored is None:
                return default
            return self._unwrap(key, stored)
        except Exception as e:  # noqa: BLE001 - never block startup on bad data
            self._activity.storage_read_failed(key, str(e))
            return default

    def save(self, key: str, value: Any) -> None:
        """Write value through to storage inside a versioned envelope."""
        envelope = {"version": self._schema_version, "payload": value}
        try:
            self._write_raw(key, envelope)
        except StorageError:
            raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save '{key}': {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._delete_raw(key)
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e


def _wrap_legacy(payload: Any) -> Any:
    """Version 0 -> 1: the payload shape is unchanged, only the envelope is new."""
    return payload
