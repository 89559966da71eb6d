"""
SQLite connection and schema initialization for client-side local storage.

Repositories (e.g. storage_repo) use with_connection to run a function inside a
connection. They wrap the call in try/except sqlite3.Error, log with
logger.exception, and re-raise so callers can decide what to do.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS local_storage (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def with_connection(
    connector: Callable[[], sqlite3.Connection],
    fn: Callable[[sqlite3.Connection], _T],
    *,
    commit: bool = False,
) -> _T:
    """
    Obtain a connection, call fn(conn), and close in finally.
    If commit=True, commit on success and rollback on exception.
    """
    conn = connector()
    try:
        result = fn(conn)
        if commit:
            conn.commit()
        return result
    except Exception:
        if commit:
            conn.rollback()
        raise
    finally:
        conn.close()


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    """Apply robustness PRAGMAs. Safe to call on every connection."""
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")


def init_database(db_path: str) -> None:
    """
    Create the database file if needed and apply schema.
    Idempotent; safe to call on every startup.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        _apply_pragmas(conn)
        conn.executescript(_SCHEMA)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied to %s", db_path)


def get_connection(db_path: str) -> sqlite3.Connection:
    """
    Return a new SQLite connection. Caller must close it or use with_connection.
    """
    conn = sqlite3.connect(db_path, check_same_thread=False)
    _apply_pragmas(conn)
    return conn
