"""Tests for persistence.database: with_connection, init_database, get_connection."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from persistence.database import (
    get_connection,
    init_database,
    with_connection,
)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "client.db"


def test_with_connection_commit_path(db_path: Path) -> None:
    def connector() -> sqlite3.Connection:
        return sqlite3.connect(str(db_path))

    def insert(conn: sqlite3.Connection) -> int:
        conn.execute("CREATE TABLE IF NOT EXISTS t (id INTEGER PRIMARY KEY)")
        conn.execute("INSERT INTO t (id) VALUES (1)")
        return 1

    assert with_connection(connector, insert, commit=True) == 1
    conn2 = sqlite3.connect(str(db_path))
    row = conn2.execute("SELECT id FROM t").fetchone()
    conn2.close()
    assert row == (1,)


def test_with_connection_rollback_on_exception(db_path: Path) -> None:
    setup = sqlite3.connect(str(db_path))
    setup.execute("CREATE TABLE t (id INTEGER)")
    setup.commit()
    setup.close()

    def connector() -> sqlite3.Connection:
        return sqlite3.connect(str(db_path))

    def insert_and_fail(conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO t (id) VALUES (1)")
        raise ValueError("abort")

    with pytest.raises(ValueError, match="abort"):
        with_connection(connector, insert_and_fail, commit=True)
    conn2 = sqlite3.connect(str(db_path))
    count = conn2.execute("SELECT COUNT(*) FROM t").fetchone()[0]
    conn2.close()
    assert count == 0


def test_with_connection_closes_connection(db_path: Path) -> None:
    holder: list[sqlite3.Connection] = []

    def connector() -> sqlite3.Connection:
        conn = sqlite3.connect(str(db_path))
        holder.append(conn)
        return conn

    with_connection(connector, lambda conn: None)
    with pytest.raises(sqlite3.ProgrammingError):
        holder[0].execute("SELECT 1")


def test_init_database_creates_local_storage(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "client.db"
    init_database(str(path))
    init_database(str(path))
    conn = get_connection(str(path))
    try:
        row = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='local_storage'"
        ).fetchone()
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    finally:
        conn.close()
    assert row is not None
    assert mode.lower() == "wal"
