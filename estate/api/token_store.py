"""
Auth token lookup over a key/value storage backend.

The signed-in user is stored as a JSON object under USER_KEY. The token is read
on every call and removed when the server rejects it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from persistence.storage_repo import StorageError

logger = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_FIELDS = ("token", "access_token", "accessToken")


class KeyValueStorage(Protocol):
    """String key/value storage (SQLite, KeyDB or in-memory)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


def extract_token(record: Any) -> str | None:
    """Return the first non-empty token field of a user record, or None."""
    if not isinstance(record, dict):
        return None
    for field in TOKEN_FIELDS:
        value = record.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return None


class TokenStore:
    """Reads, saves and clears the stored user record."""

    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self._storage = storage if storage is not None else MemoryStorage()

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def get_token(self) -> str | None:
        """
        Best-effort token lookup. Missing record, unreadable storage, bad JSON
        and empty token all mean "unauthenticated" and return None.
        """
        try:
            raw = self._storage.get_item(USER_KEY)
        except StorageError as e:
            logger.debug("No auth token found: %s", e)
            return None
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except ValueError:
            logger.debug("Stored user record is not valid JSON")
            return None
        return extract_token(record)

    def save_user(self, record: dict[str, Any]) -> None:
        self._storage.set_item(USER_KEY, json.dumps(record))

    def close(self) -> None:
        """Release the storage backend's connections (KeyDB); no-op for others."""
        close = getattr(self._storage, "close", None)
        if callable(close):
            close()

    def clear(self) -> None:
        try:
            self._storage.remove_item(USER_KEY)
        except StorageError as e:
            logger.warning("Failed to clear stored user: %s", e)
