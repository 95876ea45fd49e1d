"""
Interfaces of the external collaborators the client core talks to.

Success is a return value; failure is a raised ``AuthError`` or
``StoreError`` carrying the error code.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, Sequence, runtime_checkable

from tradieiq.core.subscription import Subscription
from tradieiq.models.job import Job, JobDraft
from tradieiq.models.session import Identity


@runtime_checkable
class AuthGateway(Protocol):
    """Hosted authentication service."""

    def sign_in(self, email: str, password: str) -> Identity: ...

    def sign_up(self, email: str, password: str) -> Identity: ...

    def sign_in_with_google(self) -> Identity: ...

    def sign_out(self) -> None: ...

    def on_change(self, callback: Callable[[Optional[Identity]], Any]) -> Subscription:
        """Register for identity changes. Fires once with the current value, then on every change."""
        ...

    def current(self) -> Optional[Identity]: ...


@runtime_checkable
class JobStore(Protocol):
    """Hosted document store holding job records."""

    def create(self, draft: JobDraft) -> str: ...

    def update(self, job_id: str, fields: Dict[str, Any]) -> None: ...

    def delete(self, job_id: str) -> None: ...

    def subscribe(
        self, owner_id: str, callback: Callable[[Sequence[Job]], Any]
    ) -> Subscription:
        """Live query ``owner_id == owner`` ordered by ``updated_at`` descending."""
        ...


@runtime_checkable
class Renderer(Protocol):
    def render(self, view_state: Any, jobs: Sequence[Job], aggregates: Any) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, notification: Any) -> None: ...
