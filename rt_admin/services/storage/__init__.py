"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
JSON files are the default backend; the in-memory store backs the tests.
"""

from rt_admin.services.storage.interface import (
    ADMIN_LISTS_KEY,
    ALL_KEYS,
    DUES_PAYMENTS_KEY,
    DUES_RATES_KEY,
    EXPENSES_KEY,
    OTHER_INCOME_KEY,
    RESIDENTS_KEY,
    SESSION_KEY,
    KeyValueStore,
    NotFoundError,
    StorageError,
)
from rt_admin.services.storage.json_store import JsonFileStore
from rt_admin.services.storage.memory import InMemoryStore
from rt_admin.services.storage.migrations import register_legacy_migrations

__all__ = [
    # Interface
    "KeyValueStore",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Keys
    "ADMIN_LISTS_KEY",
    "ALL_KEYS",
    "DUES_PAYMENTS_KEY",
    "DUES_RATES_KEY",
    "EXPENSES_KEY",
    "OTHER_INCOME_KEY",
    "RESIDENTS_KEY",
    "SESSION_KEY",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
    # Migrations
    "register_legacy_migrations",
]
