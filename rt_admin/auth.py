"""
Authentication and role permissions.

NOTE: Credentials are two static pairs from settings, compared in plain
text. This gates the UI; it is not a security boundary.
"""

import hmac
from typing import Optional

from rt_admin.config import Settings, get_settings
from rt_admin.models.user import Role, User


class PermissionDeniedError(Exception):
    """The current session may not perform this action."""
    pass


def _password_matches(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def authenticate(username: str, password: str, settings: Optional[Settings] = None) -> Optional[User]:
    """
    Check a username/password pair against the configured credentials.

    The username is case-insensitive; the password is not.

    Returns:
        The logged-in User, or None on a mismatch
    """
    auth = (settings or get_settings()).auth
    username = (username or "").strip().lower()
    password = password or ""

    accounts = (
        (auth.admin_username, auth.admin_password, Role.ADMIN),
        (auth.treasurer_username, auth.treasurer_password, Role.TREASURER),
    )
    for expected_user, expected_password, role in accounts:
        if username == expected_user.lower() and _password_matches(password, expected_password):
            return User(username=expected_user, role=role)
    return None


def can_manage_residents(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.ADMIN


def can_manage_admin_lists(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.ADMIN


def can_manage_finance(user: Optional[User]) -> bool:
    return user is not None and user.role in (Role.ADMIN, Role.TREASURER)


def can_edit_rates(user: Optional[User]) -> bool:
    return user is not None and user.role in (Role.ADMIN, Role.TREASURER)


def require(allowed: bool, action: str) -> None:
    """
    Raises:
        PermissionDeniedError: If allowed is False
    """
    if not allowed:
        raise PermissionDeniedError(f"Tidak memiliki izin untuk {action}.")
