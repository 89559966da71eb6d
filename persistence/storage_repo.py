"""
Repository for the local key/value store (the client's equivalent of device storage).
Holds small JSON records such as the signed-in "user" record with its auth token.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable

from persistence.database import get_connection, init_database, with_connection

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the local store cannot be read or written."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalStorageRepo:
    """SQLite-backed string key/value store."""

    def __init__(self, conn_factory: Callable[[], sqlite3.Connection]) -> None:
        self._conn_factory = conn_factory

    @classmethod
    def open(cls, db_path: str) -> "LocalStorageRepo":
        """Initialize the schema at db_path and return a repo bound to it."""
        init_database(db_path)
        return cls(lambda: get_connection(db_path))

    def get_item(self, key: str) -> str | None:
        def do_get(conn: sqlite3.Connection) -> str | None:
            row = conn.execute(
                "SELECT value FROM local_storage WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None

        try:
            return with_connection(self._conn_factory, do_get)
        except sqlite3.Error as e:
            logger.exception("local_storage get_item failed for %s", key)
            raise StorageError(str(e)) from e

    def set_item(self, key: str, value: str) -> None:
        def do_set(conn: sqlite3.Connection) -> None:
            conn.execute(
                """
                INSERT INTO local_storage (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, _now_iso()),
            )

        try:
            with_connection(self._conn_factory, do_set, commit=True)
        except sqlite3.Error as e:
            logger.exception("local_storage set_item failed for %s", key)
            raise StorageError(str(e)) from e

    def remove_item(self, key: str) -> None:
        def do_remove(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))

        try:
            with_connection(self._conn_factory, do_remove, commit=True)
        except sqlite3.Error as e:
            logger.exception("local_storage remove_item failed for %s", key)
            raise StorageError(str(e)) from e
