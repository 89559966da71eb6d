"""
Platform endpoints: auth and listing calls on top of ResilientAPIClient.
"""

from __future__ import annotations

import logging
from typing import Any

from estate.api.client import ResilientAPIClient
from estate.api.errors import APIError
from estate.api.token_store import extract_token

logger = logging.getLogger(__name__)

API_ENDPOINTS = {
    "login": "/auth/signin",
    "register": "/auth/signup",
    "logout": "/auth/signout",
    "listings": "/listing/get",
    "create_listing": "/listing/create",
    "listing_stats": "/listing/stats",
    "health": "/debug/test",
}


def _remember_user(client: ResilientAPIClient, response: Any) -> None:
    """Store the returned user record if it carries a token."""
    if extract_token(response) is not None:
        client.token_store.save_user(response)
        logger.debug("Stored signed-in user record")


def login(client: ResilientAPIClient, credentials: dict[str, Any]) -> Any:
    response = client.call(API_ENDPOINTS["login"], "POST", credentials)
    _remember_user(client, response)
    return response


def register(client: ResilientAPIClient, user_data: dict[str, Any]) -> Any:
    response = client.call(API_ENDPOINTS["register"], "POST", user_data)
    _remember_user(client, response)
    return response


def logout(client: ResilientAPIClient) -> Any:
    """Sign out on the server, then drop the local token even if the call failed."""
    try:
        return client.call(API_ENDPOINTS["logout"], "GET")
    except APIError as e:
        logger.warning("Server sign-out failed: %s", e)
        raise
    finally:
        client.token_store.clear()


def get_listings(
    client: ResilientAPIClient, params: dict[str, Any] | None = None
) -> Any:
    """Fetch listings; params become the query string (none when empty)."""
    return client.call(API_ENDPOINTS["listings"], "GET", params=params or None)


def create_listing(client: ResilientAPIClient, listing: dict[str, Any]) -> Any:
    return client.call(API_ENDPOINTS["create_listing"], "POST", listing)


def get_listing_stats(client: ResilientAPIClient) -> Any:
    return client.call(API_ENDPOINTS["listing_stats"], "GET")
