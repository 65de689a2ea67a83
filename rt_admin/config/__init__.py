"""Configuration package."""

from rt_admin.config.settings import (
    AppSettings,
    AuthSettings,
    DuesSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "DuesSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
