"""
Job cache: in-memory mirror of the signed-in user's live job query.

Every push replaces the whole list. Deactivation cancels the store
subscription before the list is cleared, and pushes that belong to an
earlier activation are dropped, so records from a previous identity can
never reappear after a switch.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Tuple

from pydantic import ValidationError

from tradieiq.core.subscription import ListenerRegistry, Subscription
from tradieiq.models.errors import create_store_error
from tradieiq.models.job import Job

logger = logging.getLogger(__name__)

JobSnapshot = Tuple[Job, ...]


class JobCache:
    """Owns the cached job list and the single live subscription behind it."""

    def __init__(self, store):
        self._store = store
        self._jobs: JobSnapshot = ()
        self._owner_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        # Bumped on every activate/deactivate; pushes tagged with an older
        # generation are stale.
        self._generation = 0
        self._listeners: ListenerRegistry[JobSnapshot] = ListenerRegistry("job-cache-listener")

    @property
    def jobs(self) -> JobSnapshot:
        """Read-only snapshot of the current list."""
        return self._jobs

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def is_active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    def get(self, job_id: Optional[str]) -> Optional[Job]:
        if job_id is None:
            return None
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def __contains__(self, job_id: object) -> bool:
        return any(job.id == job_id for job in self._jobs)

    def listen(self, callback: Callable[[JobSnapshot], Any]) -> Subscription:
        """Register for every replace (pushes and clears)."""
        return self._listeners.add(callback)

    def activate(self, owner_id: str) -> None:
        """
        Start mirroring ``owner_id``'s jobs.

        Re-activating for the current owner is a no-op. Activating for a
        different owner fully deactivates first.

        Raises:
            StoreError: If the store refuses the subscription
        """
        if self.is_active and self._owner_id == owner_id:
            return

        self.deactivate()

        self._generation += 1
        generation = self._generation
        self._owner_id = owner_id

        def _on_push(records: Iterable[Any]) -> None:
            self._receive(generation, records)

        try:
            subscription = self._store.subscribe(owner_id, _on_push)
        except Exception:
            self._owner_id = None
            self._generation += 1
            raise

        if generation != self._generation:
            # Deactivated from inside the initial push.
            subscription.cancel()
            return

        self._subscription = subscription
        logger.info(f"Job cache subscribed for owner {owner_id}")

    def deactivate(self) -> None:
        """Cancel the subscription, then clear the list."""
        had_subscription = self._subscription is not None
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self._generation += 1
        self._owner_id = None

        if had_subscription:
            logger.info("Job cache unsubscribed")
        if self._jobs:
            self._replace(())

    def _receive(self, generation: int, records: Iterable[Any]) -> None:
        if generation != self._generation:
            logger.debug("Dropped push from a cancelled job subscription")
            return

        try:
            snapshot = tuple(
                record if isinstance(record, Job) else Job.model_validate(record)
                for record in records
            )
        except ValidationError as e:
            raise create_store_error(f"Malformed job record in push: {e}", original_error=e) from e

        self._replace(snapshot)

    def _replace(self, snapshot: JobSnapshot) -> None:
        self._jobs = snapshot
        logger.debug(f"Job cache replaced with {len(snapshot)} record(s)")
        self._listeners.emit(snapshot)
