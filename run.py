#!/usr/bin/env python3
"""
Estate client entry point: load config, set up logging and token storage, run one API command.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sqlite3
import sys
from pathlib import Path
from typing import Any

from config import load_config

logger = logging.getLogger(__name__)

# Ensure project root is on path
_ROOT = Path(__file__).resolve().parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))


def setup_logging(config: dict) -> None:
    log_cfg = config.get("logging") or {}
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(level=level, format=log_fmt)
    log_path = log_cfg.get("file")
    if log_path:
        path = Path(log_path) if os.path.isabs(log_path) else _ROOT / log_path
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def build_client(config: dict):
    """Create a ResilientAPIClient from the api section of config."""
    from estate.api.client import ResilientAPIClient
    from estate.api.config import build_storage, get_api_client_config
    from estate.api.token_store import TokenStore

    client_kwargs = get_api_client_config(config)
    token_store = TokenStore(build_storage(config, root=_ROOT))
    return ResilientAPIClient(token_store=token_store, **client_kwargs)


def _parse_params(pairs: list[str] | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Estate platform API client")
    parser.add_argument("--config", help="Config file (default: $ESTATE_CONFIG or config.yaml)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("health", help="Health check against the current host")
    sub.add_parser("discover", help="Probe configured hosts and pick the first that answers")
    sub.add_parser("check", help="Health check plus a listing stats call")
    listings = sub.add_parser("listings", help="Fetch listings")
    listings.add_argument(
        "--param", action="append", metavar="KEY=VALUE", help="Query parameter (repeatable)"
    )
    sub.add_parser("stats", help="Fetch listing stats")
    login = sub.add_parser("login", help="Sign in and store the token")
    login.add_argument("--email", required=True)
    login.add_argument("--password", required=True)
    sub.add_parser("logout", help="Sign out and clear the stored token")
    return parser


def run_command(client, args: argparse.Namespace) -> tuple[bool, Any]:
    """Run the selected command. Returns (success, JSON-able result)."""
    from estate.api import endpoints
    from estate.api.errors import APIError

    if args.command == "health":
        result = client.check_health()
        return result.healthy, result.to_dict()
    if args.command == "discover":
        result = client.discover_host()
        return result.success, result.to_dict()
    if args.command == "check":
        result = client.check_api_connection()
        return bool(result.get("success")), result

    try:
        if args.command == "listings":
            return True, endpoints.get_listings(client, _parse_params(args.param))
        if args.command == "stats":
            return True, endpoints.get_listing_stats(client)
        if args.command == "login":
            return True, endpoints.login(
                client, {"email": args.email, "password": args.password}
            )
        if args.command == "logout":
            return True, endpoints.logout(client)
    except APIError as e:
        return False, {"error": str(e)}
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)
    setup_logging(config)
    try:
        client = build_client(config)
    except (ValueError, OSError, sqlite3.Error) as e:
        logger.error("Could not set up client: %s", e)
        print(json.dumps({"error": str(e)}))
        return 1
    with client:
        try:
            ok, result = run_command(client, args)
        except ValueError as e:
            ok, result = False, {"error": str(e)}
    print(json.dumps(result, indent=2, default=str))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
