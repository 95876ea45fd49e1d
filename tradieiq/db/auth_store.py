"""
SQLite-backed auth gateway for local use.

Accounts live in the ``users`` table next to the jobs, so uids (and the
jobs they own) survive restarts. Session state itself is in-process.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from tradieiq.backends.local_auth import LocalAuthGateway, UserRecord
from tradieiq.db.connection import get_connection
from tradieiq.utils.validation import format_utc_timestamp, parse_utc_timestamp


class SqliteAuthGateway(LocalAuthGateway):
    def __init__(self, db_path: Optional[str] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.db_path = db_path

    def _find_user(self, email: str) -> Optional[UserRecord]:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT uid, email, password_hash, display_name, created_at FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            return None
        return UserRecord(
            uid=row["uid"],
            email=row["email"],
            password_hash=row["password_hash"],
            display_name=row["display_name"],
            created_at=parse_utc_timestamp(row["created_at"]),
        )

    def _insert_user(self, record: UserRecord) -> None:
        created_at = record.created_at or datetime.now(timezone.utc)
        with get_connection(self.db_path) as conn:
            conn.execute(
                "INSERT INTO users (uid, email, password_hash, display_name, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    record.uid,
                    record.email,
                    record.password_hash,
                    record.display_name,
                    format_utc_timestamp(created_at),
                ),
            )
