"""
Error model for the TradieIQ client core.

Provides structured error codes, the fixed authentication failure taxonomy,
and sanitized error messages.
"""

import re
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Structured error codes surfaced by controller actions and tools."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ACCESS_DENIED = "ACCESS_DENIED"
    AUTH_ERROR = "AUTH_ERROR"
    STORE_ERROR = "STORE_ERROR"
    FEATURE_DISABLED = "FEATURE_DISABLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AuthErrorCode(str, Enum):
    """Fixed set of authentication failure reasons."""
    USER_NOT_FOUND = "user_not_found"
    WRONG_PASSWORD = "wrong_password"
    INVALID_EMAIL = "invalid_email"
    EMAIL_IN_USE = "email_in_use"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


class TradieError(Exception):
    """Base exception with structured error information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize a structured error.

        Args:
            code: The error code
            message: Human-readable error message
            retryable: Whether the operation can be retried
            original_error: The original exception if this wraps another error
        """
        self.code = code
        self.message = message
        self.retryable = retryable
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary format for tool responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "retryable": self.retryable
            }
        }


class AuthError(TradieError):
    """Authentication gateway failure tagged with an AuthErrorCode."""

    def __init__(
        self,
        auth_code: AuthErrorCode,
        message: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.auth_code = auth_code
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message or auth_code.value,
            retryable=auth_code == AuthErrorCode.RATE_LIMITED,
            original_error=original_error,
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["error"]["auth_code"] = self.auth_code.value
        return result


class AccessDenied(TradieError):
    """Operation attempted without a signed-in session or on a foreign record."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.ACCESS_DENIED, message=message, retryable=False)


class StoreError(TradieError):
    """Job store create/update/delete/subscribe failure with an opaque cause."""

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            code=ErrorCode.STORE_ERROR,
            message=message,
            retryable=retryable,
            original_error=original_error,
        )


# Backend error codes (Firebase style "auth/<reason>") mapped by exact lookup.
_BACKEND_AUTH_CODES = {
    "user-not-found": AuthErrorCode.USER_NOT_FOUND,
    "wrong-password": AuthErrorCode.WRONG_PASSWORD,
    "invalid-credential": AuthErrorCode.WRONG_PASSWORD,
    "invalid-email": AuthErrorCode.INVALID_EMAIL,
    "email-already-in-use": AuthErrorCode.EMAIL_IN_USE,
    "weak-password": AuthErrorCode.WEAK_PASSWORD,
    "too-many-requests": AuthErrorCode.RATE_LIMITED,
}

_SIGN_IN_MESSAGES = {
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email address",
    AuthErrorCode.WRONG_PASSWORD: "Incorrect password",
    AuthErrorCode.INVALID_EMAIL: "Invalid email address",
    AuthErrorCode.RATE_LIMITED: "Too many failed attempts. Try again later",
}

_SIGN_UP_MESSAGES = {
    AuthErrorCode.EMAIL_IN_USE: "An account with this email already exists. Try signing in instead.",
    AuthErrorCode.WEAK_PASSWORD: "Password is too weak. Use at least 6 characters.",
    AuthErrorCode.INVALID_EMAIL: "Invalid email address",
    AuthErrorCode.RATE_LIMITED: "Too many failed attempts. Try again later",
}

_FALLBACK_MESSAGES = {
    "sign_in": "Sign in failed",
    "sign_up": "Account creation failed",
    "sign_out": "Failed to sign out",
}


def classify_auth_error(backend_code: Optional[str]) -> AuthErrorCode:
    """
    Map a backend error code string to an AuthErrorCode.

    Accepts both bare codes ("user-not-found") and prefixed ones
    ("auth/user-not-found"). Anything unrecognised is UNKNOWN.

    Args:
        backend_code: Error code reported by the auth backend

    Returns:
        Matching AuthErrorCode
    """
    if not backend_code:
        return AuthErrorCode.UNKNOWN
    key = backend_code.strip().lower()
    if key.startswith("auth/"):
        key = key[len("auth/"):]
    return _BACKEND_AUTH_CODES.get(key, AuthErrorCode.UNKNOWN)


def auth_error_message(code: AuthErrorCode, action: str = "sign_in") -> str:
    """
    Human-readable message for an authentication failure.

    Args:
        code: The classified failure
        action: One of "sign_in", "sign_up", "sign_out"

    Returns:
        Message suitable for a user-facing notification
    """
    if action == "sign_up":
        table = _SIGN_UP_MESSAGES
    elif action == "sign_in":
        table = _SIGN_IN_MESSAGES
    else:
        table = {}
    return table.get(code, _FALLBACK_MESSAGES.get(action, "An unexpected error occurred"))


def sanitize_sql_error(error_msg: str) -> str:
    """
    Sanitize SQL error messages to remove sensitive details.

    Removes SQL fragments and keeps only actionable information.

    Args:
        error_msg: The original error message

    Returns:
        Sanitized error message
    """
    sanitized = re.sub(r'SQL:.*', '', error_msg, flags=re.IGNORECASE)
    sanitized = re.sub(r'"[^"]*SELECT[^"]*"', '[SQL query]', sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(r"'[^']*SELECT[^']*'", '[SQL query]', sanitized, flags=re.IGNORECASE)

    # Remove unquoted SQL statements (SELECT, INSERT, UPDATE, DELETE followed by anything)
    sanitized = re.sub(r'\b(SELECT|INSERT|UPDATE|DELETE)\b.*', '[SQL query]', sanitized, flags=re.IGNORECASE)

    # Remove absolute paths
    sanitized = re.sub(r'/[^\s]+/', '[path]/', sanitized)

    return sanitized.strip()


def sanitize_stack_trace(error_msg: str) -> str:
    """
    Remove stack traces from error messages.

    Args:
        error_msg: The original error message

    Returns:
        Error message without stack trace
    """
    lines = error_msg.split('\n')
    if lines:
        return lines[0].strip()
    return error_msg


def create_validation_error(message: str) -> TradieError:
    """
    Create a validation error.

    Args:
        message: Description of the validation failure

    Returns:
        TradieError with VALIDATION_ERROR code
    """
    return TradieError(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        retryable=False
    )


def create_access_denied_error(message: str = "Please sign in to access TradieIQ") -> AccessDenied:
    """Create an access-denied error with a user-facing message."""
    return AccessDenied(message)


def create_feature_disabled_error(feature: str) -> TradieError:
    """Create an error for a feature switched off in configuration."""
    return TradieError(
        code=ErrorCode.FEATURE_DISABLED,
        message=f"{feature} is not enabled",
        retryable=False
    )


def create_auth_error(
    backend_code: Optional[str],
    message: Optional[str] = None,
    original_error: Optional[Exception] = None
) -> AuthError:
    """
    Create an AuthError from a backend error code string.

    Args:
        backend_code: Raw backend code such as "auth/wrong-password"
        message: Optional detail; defaults to the classified code
        original_error: The original exception

    Returns:
        AuthError tagged with the classified code
    """
    return AuthError(classify_auth_error(backend_code), message=message, original_error=original_error)


def create_store_error(
    message: str,
    retryable: bool = False,
    original_error: Optional[Exception] = None
) -> StoreError:
    """
    Create a job store error.

    Args:
        message: Description of the store error
        retryable: Whether the operation can be retried
        original_error: The original exception

    Returns:
        StoreError with a sanitized message
    """
    sanitized_message = sanitize_sql_error(message)
    sanitized_message = sanitize_stack_trace(sanitized_message)

    return StoreError(
        message=f"Store error: {sanitized_message}",
        retryable=retryable,
        original_error=original_error
    )


def create_internal_error(message: str, original_error: Optional[Exception] = None) -> TradieError:
    """
    Create an internal error for unexpected exceptions.

    Args:
        message: Description of the internal error
        original_error: The original exception

    Returns:
        TradieError with INTERNAL_ERROR code
    """
    sanitized_message = sanitize_stack_trace(message)

    return TradieError(
        code=ErrorCode.INTERNAL_ERROR,
        message=f"Internal error: {sanitized_message}",
        retryable=True,
        original_error=original_error
    )
