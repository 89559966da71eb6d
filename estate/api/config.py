"""
API client configuration helpers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from estate.api.keydb_storage import KeyDBStorage
from estate.api.token_store import KeyValueStorage, MemoryStorage
from persistence.storage_repo import LocalStorageRepo

logger = logging.getLogger(__name__)


def _clamp_float(value: Any, default: float, low: float, high: float) -> float:
    try:
        return max(low, min(high, float(value)))
    except (TypeError, ValueError):
        return default


def _clamp_int(value: Any, default: int, low: int, high: int) -> int:
    try:
        return max(low, min(high, int(value)))
    except (TypeError, ValueError):
        return default


def get_api_client_config(raw_config: dict[str, Any]) -> dict[str, Any]:
    """
    Get normalized API client settings from the full config.

    Args:
        raw_config: Full config dict (e.g. from load_config())

    Returns:
        Keyword arguments for ResilientAPIClient (minus token_store/session)

    Raises:
        ValueError: If no host is configured
    """
    api = raw_config.get("api") or {}
    hosts = api.get("hosts") or api.get("base_url") or []
    if isinstance(hosts, str):
        hosts = [hosts]
    hosts = [str(h).strip().rstrip("/") for h in hosts if h and str(h).strip()]
    if not hosts:
        raise ValueError("config.api.hosts must list at least one base URL")

    user_agent = str(api.get("user_agent") or "").strip() or "EstateApp-Mobile/1.0"
    return {
        "base_url": hosts,
        "timeout_sec": _clamp_float(api.get("timeout_sec"), 10.0, 1.0, 120.0),
        "health_timeout_sec": _clamp_float(
            api.get("health_timeout_sec"), 8.0, 1.0, 60.0
        ),
        "probe_timeout_sec": _clamp_float(api.get("probe_timeout_sec"), 3.0, 0.5, 30.0),
        "max_retries": _clamp_int(api.get("max_retries"), 3, 1, 10),
        "backoff_unit_sec": _clamp_float(api.get("backoff_unit_sec"), 1.0, 0.0, 30.0),
        "user_agent": user_agent,
    }


def build_storage(
    raw_config: dict[str, Any], root: Path | None = None
) -> KeyValueStorage:
    """
    Build the token storage backend named by api.storage.backend
    ("sqlite", "keydb" or "memory"; unknown values fall back to memory).
    """
    storage_cfg = (raw_config.get("api") or {}).get("storage") or {}
    backend = str(storage_cfg.get("backend", "memory")).strip().lower()

    if backend == "sqlite":
        db_path = Path(storage_cfg.get("db_path") or "data/estate_client.db")
        if not db_path.is_absolute() and root is not None:
            db_path = root / db_path
        return LocalStorageRepo.open(str(db_path))

    if backend == "keydb":
        ttl = storage_cfg.get("ttl_sec")
        keydb = KeyDBStorage(
            host=str(storage_cfg.get("host", "localhost")),
            port=_clamp_int(storage_cfg.get("port"), 6379, 1, 65535),
            password=storage_cfg.get("password"),
            db=_clamp_int(storage_cfg.get("db"), 0, 0, 15),
            key_prefix=str(storage_cfg.get("key_prefix", "estate:")),
            ttl_sec=int(ttl) if ttl else None,
        )
        if not keydb.ping():
            logger.warning(
                "KeyDB token storage unreachable; requests will go out unauthenticated"
            )
        return keydb

    return MemoryStorage()
