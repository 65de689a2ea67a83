"""
Activity Logger

Every mutation and every silent-looking fallback is logged as a named,
structured event. Nothing here is persisted: the log goes to the standard
logging handlers only.

Each kind of action gets one event name, with the entity ids as fields.
"""

import logging
import sys
from decimal import Decimal
from typing import Optional

import structlog


_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog on top of the standard library logger.

    Safe to call more than once; only the first call installs the
    handler.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level)
    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class ActivityLogger:
    """
    Named domain events over a structlog logger.

    Amounts are logged as strings so Decimal survives the JSON renderer.
    """

    def __init__(self, name: str = "rt_admin"):
        self._logger = get_logger(name)

    def _emit(self, level: str, event: str, **fields) -> None:
        getattr(self._logger, level)(event, **fields)

    # Session
    def login_succeeded(self, username: str, role: str) -> None:
        self._emit("info", "login_succeeded", username=username, role=role)

    def login_failed(self, username: str) -> None:
        self._emit("warning", "login_failed", username=username)

    def logged_out(self, username: str) -> None:
        self._emit("info", "logged_out", username=username)

    # Residents
    def resident_saved(self, resident_id: str, household_id: str, created: bool) -> None:
        self._emit(
            "info",
            "resident_saved",
            resident_id=resident_id,
            household_id=household_id,
            created=created,
        )

    def resident_deleted(self, resident_id: str) -> None:
        self._emit("info", "resident_deleted", resident_id=resident_id)

    def admin_list_changed(self, category: str, value: str, action: str) -> None:
        self._emit("info", "admin_list_changed", category=category, value=value, action=action)

    # Money
    def dues_payment_recorded(
        self,
        household_id: str,
        year: int,
        month: int,
        dues_type: str,
        amount: Decimal,
        replaced: bool,
    ) -> None:
        self._emit(
            "info",
            "dues_payment_recorded",
            household_id=household_id,
            year=year,
            month=month,
            dues_type=dues_type,
            amount=str(amount),
            replaced=replaced,
        )

    def entry_added(self, entry_kind: str, entry_id: str, amount: Decimal) -> None:
        self._emit("info", "entry_added", entry_kind=entry_kind, entry_id=entry_id, amount=str(amount))

    def entry_deleted(self, entry_kind: str, entry_id: str) -> None:
        self._emit("info", "entry_deleted", entry_kind=entry_kind, entry_id=entry_id)

    def rates_updated(self, rates: dict) -> None:
        self._emit("info", "rates_updated", rates=rates)

    def report_exported(self, path: str, rows: int) -> None:
        self._emit("info", "report_exported", path=path, rows=rows)

    # Data-quality conditions
    def household_category_defaulted(self, household_id: str, default_category: str) -> None:
        self._emit(
            "warning",
            "household_category_defaulted",
            household_id=household_id,
            default_category=default_category,
        )

    def collation_unavailable(self, locale_name: str, error: str) -> None:
        self._emit("warning", "collation_unavailable", locale_name=locale_name, error=error)

    def storage_read_failed(self, key: str, error: str) -> None:
        self._emit("warning", "storage_read_failed", key=key, error=error)

    def storage_migrated(self, key: str, from_version: int, to_version: int) -> None:
        self._emit("info", "storage_migrated", key=key, from_version=from_version, to_version=to_version)
