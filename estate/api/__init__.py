"""
Estate platform API client: host fallback, retry with linear backoff, token injection.
"""

from __future__ import annotations

from estate.api.client import RequestOptions, ResilientAPIClient
from estate.api.errors import APIError
from estate.api.hosts import HostList
from estate.api.retry import RetryPolicy
from estate.api.token_store import TokenStore

__all__ = [
    "APIError",
    "HostList",
    "RequestOptions",
    "ResilientAPIClient",
    "RetryPolicy",
    "TokenStore",
]
