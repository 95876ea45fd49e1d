"""
SQLite connection management and schema bootstrap for the local backends.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from tradieiq.models.errors import create_store_error

# Default database path relative to repository root
DEFAULT_DB_PATH = "data/tradieiq.db"


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve the database path with support for overrides and defaults.

    Resolution order:
    1. Provided db_path parameter
    2. TRADIEIQ_DB environment variable
    3. TRADIEIQ_ROOT/data/tradieiq.db
    4. Default path: data/tradieiq.db

    Args:
        db_path: Optional database path override

    Returns:
        Resolved absolute Path to the database
    """
    if db_path is not None:
        path_str = db_path
    else:
        db_env = os.getenv("TRADIEIQ_DB")
        if db_env:
            path_str = db_env
        else:
            root_env = os.getenv("TRADIEIQ_ROOT")
            if root_env:
                return Path(root_env) / "data" / "tradieiq.db"
            path_str = DEFAULT_DB_PATH

    path = Path(path_str)

    # If relative, resolve from repository root
    if not path.is_absolute():
        current_file = Path(__file__).resolve()
        repo_root = current_file.parents[2]  # db/ -> tradieiq/ -> repo/
        path = repo_root / path

    return path


def bootstrap_schema(conn: sqlite3.Connection) -> None:
    """
    Create the users and jobs tables and their indexes if missing.

    Idempotent; safe to call on existing databases.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            uid TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            display_name TEXT,
            created_at TEXT NOT NULL
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS jobs (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            client TEXT NOT NULL DEFAULT '',
            address TEXT NOT NULL DEFAULT '',
            value TEXT NOT NULL DEFAULT '$0',
            status TEXT NOT NULL DEFAULT 'new',
            transcript TEXT NOT NULL DEFAULT '',
            summary TEXT NOT NULL DEFAULT '',
            tasks_json TEXT NOT NULL DEFAULT '[]',
            materials_json TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_jobs_owner_updated ON jobs (owner_id, updated_at DESC)"
    )


@contextmanager
def get_connection(db_path: Optional[str] = None):
    """
    Context manager for read-write SQLite connections.

    Creates the database (and parent directories) on first use, bootstraps
    the schema, commits on success, rolls back on error and always closes.

    Yields:
        sqlite3.Connection with dictionary-style rows

    Raises:
        StoreError: If the database cannot be opened or a statement fails
    """
    resolved_path = resolve_db_path(db_path)

    conn = None
    try:
        resolved_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(resolved_path))
        conn.row_factory = sqlite3.Row
        bootstrap_schema(conn)

        yield conn

        conn.commit()

    except OSError as e:
        raise create_store_error(
            f"Failed to create parent directories: {str(e)}", retryable=False, original_error=e
        ) from e

    except sqlite3.OperationalError as e:
        if conn is not None:
            conn.rollback()
        raise create_store_error(str(e), retryable=True, original_error=e) from e

    except sqlite3.Error as e:
        if conn is not None:
            conn.rollback()
        raise create_store_error(str(e), retryable=False, original_error=e) from e

    except Exception:
        if conn is not None:
            conn.rollback()
        raise

    finally:
        if conn is not None:
            conn.close()
