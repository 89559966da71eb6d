"""Tests for persistence.storage_repo: LocalStorageRepo get/set/remove and error wrapping."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from persistence.storage_repo import LocalStorageRepo, StorageError


@pytest.fixture
def repo(tmp_path: Path) -> LocalStorageRepo:
    return LocalStorageRepo.open(str(tmp_path / "store" / "client.db"))


def test_get_missing_returns_none(repo: LocalStorageRepo) -> None:
    assert repo.get_item("user") is None


def test_set_then_get(repo: LocalStorageRepo) -> None:
    repo.set_item("user", '{"token": "a"}')
    assert repo.get_item("user") == '{"token": "a"}'


def test_set_overwrites(repo: LocalStorageRepo) -> None:
    repo.set_item("user", "one")
    repo.set_item("user", "two")
    assert repo.get_item("user") == "two"


def test_remove(repo: LocalStorageRepo) -> None:
    repo.set_item("user", "x")
    repo.remove_item("user")
    assert repo.get_item("user") is None
    repo.remove_item("user")


def test_values_survive_new_repo_instance(tmp_path: Path) -> None:
    db_path = str(tmp_path / "client.db")
    LocalStorageRepo.open(db_path).set_item("user", "persisted")
    assert LocalStorageRepo.open(db_path).get_item("user") == "persisted"


def test_sqlite_error_wrapped(tmp_path: Path) -> None:
    # no schema applied: every query fails with "no such table"
    db_path = str(tmp_path / "empty.db")
    repo = LocalStorageRepo(lambda: sqlite3.connect(db_path))
    with pytest.raises(StorageError, match="no such table"):
        repo.get_item("user")
    with pytest.raises(StorageError):
        repo.set_item("user", "x")
    with pytest.raises(StorageError):
        repo.remove_item("user")
