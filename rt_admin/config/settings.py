"""
Configuration Management for RT Admin

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Credentials, dues policy and storage location are all visible in one place
and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rt_admin.models.finance import HouseholdCategory


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".rt_admin_data"),
        description="Directory holding one JSON file per storage key"
    )
    schema_version: int = Field(
        default=1,
        ge=1,
        description="Envelope version written on every save"
    )


class AuthSettings(BaseSettings):
    """
    Static credentials for the two roles.

    NOTE: This is cosmetic access control, not a security boundary.
    Passwords are compared in plain text.
    """

    model_config = SettingsConfigDict(
        env_prefix="RT_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    admin_username: str = Field(default="admin")
    admin_password: str = Field(default="password")
    treasurer_username: str = Field(default="bendahara")
    treasurer_password: str = Field(default="password")


class DuesSettings(BaseSettings):
    """Dues policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RT_DUES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    arrears_window_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="How many trailing months the arrears scan covers"
    )
    default_category: HouseholdCategory = Field(
        default=HouseholdCategory.C,
        description="Category used when a household has none"
    )
    enforce_single_head: bool = Field(
        default=True,
        description="Reject a second Kepala Keluarga in the same household"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    collation_locale: str = Field(
        default="",
        description="Locale for sorting house numbers; empty uses the environment"
    )

    # Receipt upload limits
    max_upload_size_mb: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Maximum receipt image size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def dues(self) -> DuesSettings:
        return DuesSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings sections.

    Returns a dict of {section_name: is_valid}, plus "<section>_error"
    entries describing failures. Used by the settings page.
    """
    results = {}

    settings = get_settings()

    for section in ("storage", "auth", "dues", "app"):
        try:
            getattr(settings, section)
            results[section] = True
        except ValueError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
