"""
In-memory auth gateway and job store.

Used for local development and tests. The store pushes synchronously
after every write unless ``auto_publish`` is off, in which case pushes
wait for ``flush()`` (handy for exercising delayed visibility of writes).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from pydantic import ValidationError

from tradieiq.backends.local_auth import LocalAuthGateway, UserRecord
from tradieiq.core.subscription import ListenerRegistry, Subscription
from tradieiq.models.errors import StoreError
from tradieiq.models.job import Job, JobDraft
from tradieiq.models.session import Identity
from tradieiq.utils.passwords import hash_password
from tradieiq.utils.pydantic_error_mapper import map_pydantic_validation_error
from tradieiq.utils.validation import normalize_email

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

# Fields fixed at creation.
_IMMUTABLE_FIELDS = ("id", "owner_id", "created_at")


class InMemoryAuthGateway(LocalAuthGateway):
    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._users: Dict[str, UserRecord] = {}

    def _find_user(self, email: str) -> Optional[UserRecord]:
        return self._users.get(email)

    def _insert_user(self, record: UserRecord) -> None:
        self._users[record.email] = record

    def add_user(self, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        """Seed an account without signing in."""
        record = UserRecord(
            uid=uuid.uuid4().hex,
            email=normalize_email(email),
            password_hash=hash_password(password),
            display_name=display_name,
            created_at=datetime.now(timezone.utc),
        )
        self._insert_user(record)
        return record.identity()


def sort_jobs(jobs: Sequence[Job]) -> List[Job]:
    """Order by updated_at descending, id as tie-breaker."""
    return sorted(jobs, key=lambda job: (job.updated_at or _EPOCH, job.id), reverse=True)


class InMemoryJobStore:
    def __init__(self, auto_publish: bool = True):
        self.auto_publish = auto_publish
        self._jobs: Dict[str, Job] = {}
        self._registries: Dict[str, ListenerRegistry] = {}
        self._dirty: Set[str] = set()

    def create(self, draft: JobDraft) -> str:
        job_id = uuid.uuid4().hex
        job = Job(id=job_id, **draft.model_dump())
        self._jobs[job_id] = job
        self._changed(job.owner_id)
        return job_id

    def update(self, job_id: str, fields: Dict[str, Any]) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            raise StoreError(f"Job not found: {job_id}")
        fixed = [name for name in _IMMUTABLE_FIELDS if name in fields]
        if fixed:
            raise StoreError(f"Cannot change fields: {', '.join(fixed)}")
        try:
            updated = Job.model_validate({**job.model_dump(), **fields})
        except ValidationError as e:
            reason = map_pydantic_validation_error(e).message
            raise StoreError(f"Store error: {reason} (job {job_id})", original_error=e) from e
        self._jobs[job_id] = updated
        self._changed(updated.owner_id)

    def delete(self, job_id: str) -> None:
        job = self._jobs.pop(job_id, None)
        if job is None:
            raise StoreError(f"Job not found: {job_id}")
        self._changed(job.owner_id)

    def query(self, owner_id: str) -> List[Job]:
        return sort_jobs([job for job in self._jobs.values() if job.owner_id == owner_id])

    def subscribe(self, owner_id: str, callback: Callable[[Sequence[Job]], Any]) -> Subscription:
        registry = self._registry_for(owner_id)
        subscription = registry.add(callback)
        try:
            callback(tuple(self.query(owner_id)))
        except Exception:
            subscription.cancel()
            raise
        return subscription

    def subscriber_count(self, owner_id: str) -> int:
        registry = self._registries.get(owner_id)
        return len(registry) if registry is not None else 0

    def flush(self) -> None:
        """Deliver pushes held back while ``auto_publish`` is off."""
        dirty, self._dirty = self._dirty, set()
        for owner_id in sorted(dirty):
            self._publish(owner_id)

    def _changed(self, owner_id: str) -> None:
        if self.auto_publish:
            self._publish(owner_id)
        else:
            self._dirty.add(owner_id)

    def _registry_for(self, owner_id: str) -> ListenerRegistry:
        registry = self._registries.get(owner_id)
        if registry is None:

            def _prune() -> None:
                if self._registries.get(owner_id) is registry:
                    del self._registries[owner_id]

            registry = ListenerRegistry(f"jobs:{owner_id}", on_empty=_prune)
            self._registries[owner_id] = registry
        return registry

    def _publish(self, owner_id: str) -> None:
        registry = self._registries.get(owner_id)
        if registry is None:
            return
        delivered = registry.emit(tuple(self.query(owner_id)))
        logger.debug(f"Pushed jobs for {owner_id} to {delivered} subscriber(s)")
