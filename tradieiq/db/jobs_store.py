"""
SQLite-backed job store for local use.

Implements the JobStore interface: writes are committed to the ``jobs``
table, then every live subscription for the affected owner receives the
owner's full list ordered by ``updated_at`` descending.
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from tradieiq.core.subscription import ListenerRegistry, Subscription
from tradieiq.db.connection import get_connection
from tradieiq.models.errors import StoreError, create_store_error
from tradieiq.models.job import UPDATABLE_FIELDS, Job, JobDraft
from tradieiq.models.status import JobStatus
from tradieiq.utils.validation import format_utc_timestamp, parse_utc_timestamp

logger = logging.getLogger(__name__)

_JSON_COLUMNS = {"tasks": "tasks_json", "materials": "materials_json"}
_WRITABLE_FIELDS = set(UPDATABLE_FIELDS) | {"updated_at"}


def row_to_job(row: sqlite3.Row) -> Job:
    """Map a ``jobs`` row to a Job."""
    data = dict(row)
    return Job(
        id=data["id"],
        owner_id=data["owner_id"],
        client=data["client"],
        address=data["address"],
        value=data["value"],
        status=data["status"],
        transcript=data["transcript"],
        summary=data["summary"],
        tasks=json.loads(data["tasks_json"] or "[]"),
        materials=json.loads(data["materials_json"] or "[]"),
        created_at=parse_utc_timestamp(data["created_at"]),
        updated_at=parse_utc_timestamp(data["updated_at"]),
    )


def _column_value(field: str, value: Any) -> Any:
    if field in _JSON_COLUMNS:
        return json.dumps(list(value), ensure_ascii=False)
    if field == "status":
        return JobStatus(value).value
    if isinstance(value, datetime):
        return format_utc_timestamp(value)
    return value


class SqliteJobStore:
    """JobStore over a local sqlite file with in-process push delivery."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self._registries: Dict[str, ListenerRegistry] = {}

    def create(self, draft: JobDraft) -> str:
        job_id = uuid.uuid4().hex
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO jobs (
                    id, owner_id, client, address, value, status, transcript,
                    summary, tasks_json, materials_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job_id,
                    draft.owner_id,
                    draft.client,
                    draft.address,
                    draft.value,
                    JobStatus(draft.status).value,
                    draft.transcript,
                    draft.summary,
                    json.dumps(draft.tasks, ensure_ascii=False),
                    json.dumps(draft.materials, ensure_ascii=False),
                    format_utc_timestamp(draft.created_at),
                    format_utc_timestamp(draft.updated_at),
                ),
            )
        logger.info(f"Inserted job {job_id} for owner {draft.owner_id}")
        self._publish(draft.owner_id)
        return job_id

    def update(self, job_id: str, fields: Dict[str, Any]) -> None:
        unknown = sorted(set(fields) - _WRITABLE_FIELDS)
        if unknown:
            raise StoreError(f"Cannot change fields: {', '.join(unknown)}")
        if not fields:
            return

        assignments = []
        params: List[Any] = []
        for field in sorted(fields):
            try:
                params.append(_column_value(field, fields[field]))
            except (TypeError, ValueError) as e:
                raise StoreError(f"Store error: Invalid {field}: {e}", original_error=e) from e
            assignments.append(f"{_JSON_COLUMNS.get(field, field)} = ?")

        with get_connection(self.db_path) as conn:
            owner_id = self._owner_of(conn, job_id)
            conn.execute(
                f"UPDATE jobs SET {', '.join(assignments)} WHERE id = ?",
                (*params, job_id),
            )
        self._publish(owner_id)

    def delete(self, job_id: str) -> None:
        with get_connection(self.db_path) as conn:
            owner_id = self._owner_of(conn, job_id)
            conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
        logger.info(f"Deleted job {job_id}")
        self._publish(owner_id)

    def query(self, owner_id: str) -> List[Job]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM jobs WHERE owner_id = ? ORDER BY updated_at DESC, id DESC",
                (owner_id,),
            ).fetchall()
        try:
            return [row_to_job(row) for row in rows]
        except (ValidationError, ValueError) as e:
            raise create_store_error(f"Malformed job row: {e}", original_error=e) from e

    def subscribe(self, owner_id: str, callback: Callable[[Sequence[Job]], Any]) -> Subscription:
        snapshot = tuple(self.query(owner_id))
        registry = self._registry_for(owner_id)
        subscription = registry.add(callback)
        try:
            callback(snapshot)
        except Exception:
            subscription.cancel()
            raise
        return subscription

    def _owner_of(self, conn: sqlite3.Connection, job_id: str) -> str:
        row = conn.execute("SELECT owner_id FROM jobs WHERE id = ?", (job_id,)).fetchone()
        if row is None:
            raise StoreError(f"Job not found: {job_id}")
        return row["owner_id"]

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
        if registry is None or not len(registry):
            return
        registry.emit(tuple(self.query(owner_id)))
