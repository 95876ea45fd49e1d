"""
Input validation utilities for TradieIQ forms and local backends.

Covers the sign-in/sign-up form checks made before any gateway call, the
email/password rules enforced by the local auth backends, and the UTC
timestamp format used by the sqlite backends.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from tradieiq.models.errors import create_validation_error

DEFAULT_MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128

# Deliberately loose: one "@", something on each side, a dot in the domain.
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_credentials_present(email: Optional[str], password: Optional[str]) -> str:
    """
    Check that both sign-in fields were filled in.

    Args:
        email: Email as typed
        password: Password as typed

    Returns:
        The email with surrounding whitespace removed

    Raises:
        TradieError: VALIDATION_ERROR if either field is empty
    """
    if not email or not email.strip() or not password:
        raise create_validation_error("Please enter both email and password")
    return email.strip()


def validate_new_password(password: str, min_length: int = DEFAULT_MIN_PASSWORD_LENGTH) -> str:
    """
    Check a password chosen at sign-up.

    Raises:
        TradieError: VALIDATION_ERROR if shorter than ``min_length``
    """
    if len(password) < min_length:
        raise create_validation_error(f"Password must be at least {min_length} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        raise create_validation_error(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
        )
    return password


def is_valid_email(email: Optional[str]) -> bool:
    """Format check used by the local auth backends."""
    if not email:
        return False
    return bool(_EMAIL_PATTERN.match(email.strip()))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def format_utc_timestamp(moment: datetime) -> str:
    """
    Format a datetime as ISO 8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC.
    Example: 2026-02-04T03:47:36.966Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_utc_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Inverse of ``format_utc_timestamp``; None/empty gives None."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_current_utc_timestamp() -> str:
    """Current time in the ``format_utc_timestamp`` format."""
    return format_utc_timestamp(datetime.now(timezone.utc))
