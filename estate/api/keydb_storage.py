"""
KeyDB-backed key/value storage (Redis-compatible), for sharing a signed-in
session between client processes.
"""

from __future__ import annotations

import logging

import redis  # redis-py works with KeyDB (same protocol)

logger = logging.getLogger(__name__)


class KeyDBStorage:
    """
    String key/value storage on KeyDB.
    Backend failures are logged and read as absent values; they never raise.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        db: int = 0,
        key_prefix: str = "estate:",
        ttl_sec: int | None = None,
    ) -> None:
        """
        Args:
            host: KeyDB server host
            port: KeyDB server port
            password: Optional password
            db: Database number
            key_prefix: Prefix applied to every key
            ttl_sec: Optional expiry for stored values
        """
        self._prefix = key_prefix
        self._ttl = ttl_sec
        self._client = redis.Redis(
            host=host,
            port=port,
            password=password,
            db=db,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def ping(self) -> bool:
        """Check if KeyDB is available."""
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning("KeyDB ping failed: %s", e)
            return False

    def get_item(self, key: str) -> str | None:
        try:
            return self._client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("KeyDB get failed for key %s: %s", key, e)
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value, ex=self._ttl)
        except redis.RedisError as e:
            logger.warning("KeyDB set failed for key %s: %s", key, e)

    def remove_item(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            logger.warning("KeyDB delete failed for key %s: %s", key, e)

    def close(self) -> None:
        """Close the connection."""
        try:
            self._client.close()
        except redis.RedisError as e:
            logger.debug("KeyDB close failed: %s", e)
