"""Input validation run before every mutation."""

from rt_admin.validation.validator import (
    ValidationFailedError,
    validate_entry,
    validate_household_id,
    validate_resident,
)

__all__ = [
    "ValidationFailedError",
    "validate_entry",
    "validate_household_id",
    "validate_resident",
]
