"""
Email/password auth logic shared by the in-memory and sqlite gateways.

Subclasses only supply user storage (``_find_user`` / ``_insert_user``).
Listeners registered with ``on_change`` receive the current identity
immediately, then every change.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from tradieiq.core.subscription import ListenerRegistry, Subscription
from tradieiq.models.errors import create_auth_error
from tradieiq.models.session import Identity
from tradieiq.utils.passwords import hash_password, verify_password
from tradieiq.utils.rate_limit import FailedAttemptLimiter
from tradieiq.utils.validation import DEFAULT_MIN_PASSWORD_LENGTH, is_valid_email, normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    uid: str
    email: str
    password_hash: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def identity(self) -> Identity:
        return Identity(uid=self.uid, email=self.email, display_name=self.display_name)


class LocalAuthGateway:
    """Base class implementing the AuthGateway protocol over local user storage."""

    def __init__(
        self,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
        max_failed_attempts: int = 5,
        lockout_seconds: float = 300,
        emit_initial: bool = True,
        google_account: Optional[Identity] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.min_password_length = min_password_length
        self.max_failed_attempts = max_failed_attempts
        self.emit_initial = emit_initial
        self._google_account = google_account
        self._current: Optional[Identity] = None
        self._limiter = FailedAttemptLimiter(max_failed_attempts, lockout_seconds, clock=clock)
        self._listeners: ListenerRegistry[Optional[Identity]] = ListenerRegistry("auth-listener")

    # storage hooks ----------------------------------------------------
    def _find_user(self, email: str) -> Optional[UserRecord]:
        raise NotImplementedError

    def _insert_user(self, record: UserRecord) -> None:
        raise NotImplementedError

    # AuthGateway --------------------------------------------------------
    def current(self) -> Optional[Identity]:
        return self._current

    def on_change(self, callback: Callable[[Optional[Identity]], Any]) -> Subscription:
        subscription = self._listeners.add(callback)
        if self.emit_initial:
            callback(self._current)
        return subscription

    def announce(self) -> int:
        """Deliver the current identity to every listener (startup notification)."""
        return self._listeners.emit(self._current)

    def sign_in(self, email: str, password: str) -> Identity:
        key = normalize_email(email)
        if not is_valid_email(key):
            raise create_auth_error("auth/invalid-email")
        if self._limiter.blocked(key):
            logger.warning(f"Sign-in for {key} refused: too many failed attempts")
            raise create_auth_error("auth/too-many-requests")

        user = self._find_user(key)
        if user is None:
            raise create_auth_error("auth/user-not-found")
        if not verify_password(password, user.password_hash):
            self._limiter.record_failure(key)
            raise create_auth_error("auth/wrong-password")

        self._limiter.reset(key)
        identity = user.identity()
        self._set_current(identity)
        return identity

    def sign_up(self, email: str, password: str) -> Identity:
        key = normalize_email(email)
        if not is_valid_email(key):
            raise create_auth_error("auth/invalid-email")
        if len(password or "") < self.min_password_length:
            raise create_auth_error("auth/weak-password")
        if self._find_user(key) is not None:
            raise create_auth_error("auth/email-already-in-use")

        record = UserRecord(
            uid=uuid.uuid4().hex,
            email=key,
            password_hash=hash_password(password),
            created_at=datetime.now(timezone.utc),
        )
        self._insert_user(record)
        logger.info(f"Created account {key}")

        identity = record.identity()
        self._set_current(identity)
        return identity

    def sign_in_with_google(self) -> Identity:
        if self._google_account is None:
            raise create_auth_error("auth/operation-not-allowed", message="Google sign-in is not available")
        self._set_current(self._google_account)
        return self._google_account

    def sign_out(self) -> None:
        self._set_current(None)

    def _set_current(self, identity: Optional[Identity]) -> None:
        before = self._current.uid if self._current else None
        after = identity.uid if identity else None
        self._current = identity
        if before != after:
            self._listeners.emit(identity)


def google_identity(email: str, display_name: Optional[str] = None) -> Identity:
    """Identity for a configured local Google account. The uid is stable per email."""
    key = normalize_email(email)
    uid = uuid.uuid5(uuid.NAMESPACE_URL, f"google:{key}").hex
    return Identity(uid=uid, email=key, display_name=display_name)
