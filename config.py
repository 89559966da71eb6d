"""
Config loading: YAML file merged over built-in defaults, with environment overrides.
ESTATE_CONFIG selects the file; ESTATE_API_URLS (comma-separated) replaces api.hosts.
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parent

DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        "hosts": [
            "http://192.168.100.46:3000/api",
            "http://192.168.100.1:3000/api",
            "http://localhost:3000/api",
        ],
        "timeout_sec": 10.0,
        "health_timeout_sec": 8.0,
        "probe_timeout_sec": 3.0,
        "max_retries": 3,
        "backoff_unit_sec": 1.0,
        "user_agent": "EstateApp-Mobile/1.0",
        "storage": {
            "backend": "sqlite",
            "db_path": "data/estate_client.db",
        },
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def load_yaml_file(path: Path | str) -> dict[str, Any]:
    """Load a YAML mapping from path. Returns {} if missing, invalid, or not a mapping."""
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """
    Return the merged config dict.

    Args:
        path: Config file; defaults to $ESTATE_CONFIG or config.yaml next to this file
    """
    if path is None:
        path = os.environ.get("ESTATE_CONFIG", str(_ROOT / "config.yaml"))
    config = _deep_merge(DEFAULT_CONFIG, load_yaml_file(path))

    env_urls = os.environ.get("ESTATE_API_URLS", "").strip()
    if env_urls:
        hosts = [u.strip() for u in env_urls.split(",") if u.strip()]
        if hosts:
            config["api"]["hosts"] = hosts
    return config
