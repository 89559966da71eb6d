"""
Health check and host discovery probe against the diagnostic endpoint.
Neither function raises: failures come back as structured results.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import requests

logger = logging.getLogger(__name__)

HEALTH_PATH = "/debug/test"
HEALTH_TIMEOUT_SEC = 8.0
PROBE_TIMEOUT_SEC = 3.0
PROBE_HEADERS = {"Content-Type": "application/json"}


@dataclass
class HealthResult:
    healthy: bool
    url: str
    status: int | None = None
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ProbeResult:
    success: bool
    url: str | None = None
    error: str | None = None
    tried: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def _parse_payload(response: requests.Response) -> Any:
    """Parsed JSON body ({} when empty). Raises ValueError for HTML or non-JSON bodies."""
    content_type = response.headers.get("content-type") or ""
    if "text/html" in content_type.lower():
        raise ValueError("Server returned HTML error page")
    text = response.text or ""
    if not text.strip():
        return {}
    return json.loads(text)


def check_health(
    session: requests.Session,
    base_url: str,
    timeout_sec: float = HEALTH_TIMEOUT_SEC,
) -> HealthResult:
    """
    GET base_url + HEALTH_PATH once.

    Returns:
        healthy=True with status and payload on a 2xx JSON (or empty) body;
        healthy=False with status and error on a 2xx HTML or non-JSON body;
        healthy=False with status on other codes; healthy=False with error on
        transport failure or timeout.
    """
    url = f"{base_url}{HEALTH_PATH}"
    logger.debug("Checking server health at %s", url)
    try:
        response = session.request(
            method="GET", url=url, headers=PROBE_HEADERS, timeout=timeout_sec
        )
    except requests.Timeout:
        logger.warning("Server health check timed out: %s", url)
        return HealthResult(healthy=False, url=base_url, error="Request timeout")
    except requests.RequestException as e:
        logger.warning("Server health check failed for %s: %s", url, e)
        return HealthResult(
            healthy=False, url=base_url, error=str(e) or type(e).__name__
        )

    if _is_success(response.status_code):
        try:
            data = _parse_payload(response)
        except ValueError as e:
            logger.warning("Server health check got a malformed body from %s: %s", url, e)
            return HealthResult(
                healthy=False,
                url=base_url,
                status=response.status_code,
                error=f"Invalid JSON response: {e}",
            )
        logger.info("Server is healthy: %s", base_url)
        return HealthResult(
            healthy=True, url=base_url, status=response.status_code, data=data
        )
    logger.warning(
        "Server responded but not healthy: %s (%d)", base_url, response.status_code
    )
    return HealthResult(healthy=False, url=base_url, status=response.status_code)


def probe_hosts(
    session: requests.Session,
    hosts: list[str],
    timeout_sec: float = PROBE_TIMEOUT_SEC,
) -> ProbeResult:
    """
    Try each host in order with a short-timeout GET of HEALTH_PATH.
    Returns the first host that answers 2xx.
    """
    tried: list[str] = []
    for host in hosts:
        tried.append(host)
        logger.debug("Testing API endpoint: %s", host)
        try:
            response = session.request(
                method="GET",
                url=f"{host}{HEALTH_PATH}",
                headers=PROBE_HEADERS,
                timeout=timeout_sec,
            )
        except requests.RequestException as e:
            logger.debug("API endpoint %s failed: %s", host, e)
            continue
        if _is_success(response.status_code):
            logger.info("Found working API endpoint: %s", host)
            return ProbeResult(success=True, url=host, tried=tried)
        logger.debug("API endpoint %s answered %d", host, response.status_code)

    logger.warning("No working API endpoints found")
    return ProbeResult(
        success=False, error="No API endpoints are reachable", tried=tried
    )
