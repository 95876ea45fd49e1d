"""
Session store: the client's belief about who is signed in.

The only mutation path is ``apply``, called with each auth gateway change
notification. State starts at LOADING and leaves it on the first
notification, whatever its value.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tradieiq.models.session import Identity
from tradieiq.models.status import SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTransition:
    """Before/after pair produced by one gateway notification."""

    previous_state: SessionState
    previous_identity: Optional[Identity]
    state: SessionState
    identity: Optional[Identity]

    @property
    def is_first(self) -> bool:
        """True for the notification that ends LOADING."""
        return self.previous_state == SessionState.LOADING

    @property
    def identity_changed(self) -> bool:
        """True when the signed-in uid differs from the previous one."""
        before = self.previous_identity.uid if self.previous_identity else None
        after = self.identity.uid if self.identity else None
        return before != after


class SessionStore:
    """Holds the current Identity, or none."""

    def __init__(self):
        self._state = SessionState.LOADING
        self._identity: Optional[Identity] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_signed_in(self) -> bool:
        return self._state == SessionState.SIGNED_IN

    @property
    def is_loading(self) -> bool:
        return self._state == SessionState.LOADING

    def apply(self, identity: Optional[Identity]) -> SessionTransition:
        """
        Record a gateway notification.

        Args:
            identity: The identity now authenticated, or None

        Returns:
            The transition that took place
        """
        previous_state, previous_identity = self._state, self._identity

        if identity is None:
            self._state = SessionState.SIGNED_OUT
            self._identity = None
        else:
            self._state = SessionState.SIGNED_IN
            self._identity = identity

        transition = SessionTransition(
            previous_state=previous_state,
            previous_identity=previous_identity,
            state=self._state,
            identity=self._identity,
        )
        if transition.identity_changed or transition.is_first:
            logger.info(
                f"Session {previous_state.value} -> {self._state.value}"
                + (f" ({identity.email})" if identity else "")
            )
        return transition
