"""
Resilient HTTP client for the estate platform API.
Injects the stored bearer token, retries transient failures with linear backoff,
and falls back to alternate hosts when the current one fails.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import requests

from estate.api.errors import (
    AllHostsExhaustedError,
    APIError,
    AuthenticationError,
    EndpointNotFoundError,
    HTTPStatusError,
    MalformedResponseError,
    RequestTimeoutError,
    ServerInternalError,
    TransportError,
)
from estate.api.health import (
    HEALTH_TIMEOUT_SEC,
    PROBE_TIMEOUT_SEC,
    HealthResult,
    ProbeResult,
    check_health,
    probe_hosts,
)
from estate.api.hosts import HostList
from estate.api.retry import RetryPolicy
from estate.api.token_store import TokenStore

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "EstateApp-Mobile/1.0"
DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_MAX_RETRIES = 3
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
STATS_PATH = "/listing/stats"


@dataclass
class RequestOptions:
    """One logical API call."""

    endpoint: str
    method: str = "GET"
    body: Any = None
    headers: dict[str, str] | None = None
    params: dict[str, Any] | None = None


def _error_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict):
        for field in ("message", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {status}"


class ResilientAPIClient:
    """
    API client with per-host retry and multi-host fallback.

    The host list is owned by the instance, so independent clients do not
    share a current host.
    """

    def __init__(
        self,
        base_url: str | list[str] | HostList,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_unit_sec: float = 1.0,
        health_timeout_sec: float = HEALTH_TIMEOUT_SEC,
        probe_timeout_sec: float = PROBE_TIMEOUT_SEC,
        token_store: TokenStore | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL(s) or a prepared HostList; first entry is the default
            timeout_sec: Per-attempt timeout for API calls
            max_retries: Attempts per call against the current host
            backoff_unit_sec: Linear backoff unit (wait attempt * unit between attempts)
            health_timeout_sec: Timeout for check_health
            probe_timeout_sec: Timeout for each discover_host probe
            token_store: Where the signed-in user's token lives (in-memory if None)
            user_agent: Client identifier sent with every call
            session: Optional requests session (a new one is created otherwise)
        """
        self._hosts = base_url if isinstance(base_url, HostList) else HostList(base_url)
        self._timeout = timeout_sec
        self._health_timeout = health_timeout_sec
        self._probe_timeout = probe_timeout_sec
        self._token_store = token_store if token_store is not None else TokenStore()
        self._user_agent = user_agent
        self._retry_policy = RetryPolicy(
            max_attempts=max_retries, backoff_unit_sec=backoff_unit_sec
        )
        self._session = session if session is not None else requests.Session()

    @property
    def hosts(self) -> HostList:
        return self._hosts

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    @property
    def current_url(self) -> str:
        return self._hosts.current

    def get_config(self) -> dict[str, Any]:
        return {
            "base_url": self._hosts.current,
            "timeout_sec": self._timeout,
            "max_retries": self._retry_policy.max_attempts,
        }

    def switch_to_next_host(self) -> str | None:
        """Move to the next configured host; None if already on the last one."""
        return self._hosts.switch_to_next()

    def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API call and return the parsed JSON body. See send()."""
        return self.send(
            RequestOptions(
                endpoint=endpoint,
                method=method,
                body=body,
                headers=headers,
                params=params,
            )
        )

    def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return self.call(endpoint, "GET", params=params, headers=headers)

    def post(
        self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None
    ) -> Any:
        return self.call(endpoint, "POST", body=body, headers=headers)

    def send(self, options: RequestOptions) -> Any:
        """
        Run one logical call: retries on the current host, then one attempt on
        each alternate host in configured order.

        Returns:
            Parsed JSON body ({} for an empty body)

        Raises:
            AuthenticationError: On 401 from any host (no further attempts)
            AllHostsExhaustedError: When every host failed
        """
        method = options.method.upper()
        headers = self._build_headers(self._token_store.get_token(), options.headers)
        data = self._encode_body(method, options.body)
        attempted: list[str] = []

        primary = self._hosts.current
        try:
            return self._request_with_retry(
                primary, method, options.endpoint, headers, data, options.params
            )
        except AuthenticationError:
            raise
        except APIError as e:
            last_error = e
            attempted.append(primary)
            logger.warning("Failed with %s: %s", primary, e)

        for host in self._hosts.alternates(primary):
            logger.debug("Trying fallback: %s", host)
            try:
                result = self._request_with_retry(
                    host,
                    method,
                    options.endpoint,
                    headers,
                    data,
                    options.params,
                    max_attempts=1,
                )
            except AuthenticationError:
                raise
            except APIError as e:
                last_error = e
                attempted.append(host)
                logger.warning("Fallback %s failed: %s", host, e)
                continue
            self._hosts.promote(host)
            return result

        logger.error(
            "All API endpoints failed for %s (attempted: %s)",
            options.endpoint,
            ", ".join(attempted),
        )
        raise AllHostsExhaustedError(last_error, attempted) from last_error

    def _build_headers(
        self, token: str | None, overrides: dict[str, str] | None
    ) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if overrides:
            headers.update(overrides)
        return headers

    @staticmethod
    def _encode_body(method: str, body: Any) -> str | None:
        if body is None or method not in BODY_METHODS:
            return None
        if isinstance(body, str):
            return body
        return json.dumps(body)

    def _request_with_retry(
        self,
        host: str,
        method: str,
        endpoint: str,
        headers: dict[str, str],
        data: str | None,
        params: dict[str, Any] | None,
        max_attempts: int | None = None,
    ) -> Any:
        budget = max_attempts or self._retry_policy.max_attempts

        def _attempt(attempt: int) -> Any:
            return self._attempt(
                host, method, endpoint, headers, data, params, attempt, budget
            )

        return self._retry_policy.execute(_attempt, max_attempts=budget)

    def _attempt(
        self,
        host: str,
        method: str,
        endpoint: str,
        headers: dict[str, str],
        data: str | None,
        params: dict[str, Any] | None,
        attempt: int,
        budget: int,
    ) -> Any:
        url = f"{host}{endpoint}"
        logger.debug("Attempt %d/%d: %s %s", attempt, budget, method, url)
        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=headers,
                data=data,
                params=params or None,
                timeout=self._timeout,
            )
        except requests.Timeout as e:
            raise RequestTimeoutError("Request timeout", url=url) from e
        except requests.RequestException as e:
            raise TransportError(str(e) or "Network request failed", url=url) from e

        logger.debug("Response status %d from %s", response.status_code, url)
        return self._handle_response(response, host, url)

    def _handle_response(self, response: requests.Response, host: str, url: str) -> Any:
        content_type = response.headers.get("content-type") or ""
        if "text/html" in content_type.lower():
            raise MalformedResponseError(
                f"Server returned HTML error page. Check if API server is running at {host}",
                url=url,
            )

        text = response.text or ""
        try:
            payload = json.loads(text) if text.strip() else {}
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON response: {e}", url=url) from e

        status = response.status_code
        if 200 <= status < 300:
            return payload
        if status == 401:
            self._token_store.clear()
            raise AuthenticationError(url=url)
        if status == 404:
            raise EndpointNotFoundError(url=url)
        if status == 500:
            raise ServerInternalError(url=url)
        raise HTTPStatusError(_error_message(payload, status), status=status, url=url)

    def check_health(self) -> HealthResult:
        """Single health GET against the current host. Never raises."""
        return check_health(self._session, self._hosts.current, self._health_timeout)

    def discover_host(self) -> ProbeResult:
        """Probe hosts in order; the first that answers becomes current. Never raises."""
        result = probe_hosts(self._session, self._hosts.hosts, self._probe_timeout)
        if result.success and result.url:
            self._hosts.promote(result.url)
        return result

    def check_api_connection(self) -> dict[str, Any]:
        """Health check, then a real call to the listing stats endpoint."""
        health = self.check_health()
        if not health.healthy:
            reason = health.error or f"HTTP {health.status}"
            return {
                "success": False,
                "error": f"API server not reachable: {reason}",
                "details": health.to_dict(),
            }
        try:
            data = self.call(STATS_PATH)
        except APIError as e:
            logger.warning("API connection failed: %s", e)
            return {"success": False, "error": str(e)}
        return {"success": True, "data": data}

    def close(self) -> None:
        """Close the underlying session and the token storage backend, if it holds connections."""
        self._session.close()
        self._token_store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
