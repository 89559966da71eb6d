"""Tests for estate.api.health: check_health and probe_hosts never raise and report structured results."""

from __future__ import annotations

from unittest.mock import MagicMock

import requests

from estate.api.health import HEALTH_PATH, check_health, probe_hosts
from http_fakes import build_response


def _session() -> MagicMock:
    return MagicMock(spec=requests.Session)


def test_check_health_healthy_with_payload() -> None:
    session = _session()
    session.request.return_value = build_response(200, {"message": "ok"})
    result = check_health(session, "http://a/api", timeout_sec=8.0)
    assert result.healthy is True
    assert result.status == 200
    assert result.data == {"message": "ok"}
    kwargs = session.request.call_args.kwargs
    assert kwargs["url"] == f"http://a/api{HEALTH_PATH}"
    assert kwargs["timeout"] == 8.0
    assert kwargs["method"] == "GET"


def test_check_health_empty_body_is_empty_object() -> None:
    session = _session()
    session.request.return_value = build_response(200, text="")
    result = check_health(session, "http://a/api")
    assert result.healthy is True
    assert result.data == {}


def test_check_health_html_page_is_unhealthy() -> None:
    session = _session()
    session.request.return_value = build_response(
        200, text="<html>proxy login</html>", content_type="text/html; charset=utf-8"
    )
    result = check_health(session, "http://a/api")
    assert result.healthy is False
    assert result.status == 200
    assert result.data is None
    assert result.error.startswith("Invalid JSON response:")
    assert "HTML" in result.error


def test_check_health_non_json_body_is_unhealthy() -> None:
    session = _session()
    session.request.return_value = build_response(200, text="pong", content_type="text/plain")
    result = check_health(session, "http://a/api")
    assert result.healthy is False
    assert result.status == 200
    assert result.error.startswith("Invalid JSON response:")


def test_check_health_reachable_but_unhealthy() -> None:
    session = _session()
    session.request.return_value = build_response(503, {"message": "down"})
    result = check_health(session, "http://a/api")
    assert result.healthy is False
    assert result.status == 503
    assert result.error is None
    assert result.to_dict() == {"healthy": False, "url": "http://a/api", "status": 503}


def test_check_health_unreachable_does_not_raise() -> None:
    session = _session()
    session.request.side_effect = requests.ConnectionError("connection refused")
    result = check_health(session, "http://a/api")
    assert result.healthy is False
    assert result.status is None
    assert "connection refused" in result.error


def test_check_health_timeout() -> None:
    session = _session()
    session.request.side_effect = requests.Timeout()
    result = check_health(session, "http://a/api")
    assert result.healthy is False
    assert result.error == "Request timeout"


def test_probe_hosts_first_responder_wins() -> None:
    session = _session()
    session.request.side_effect = [
        requests.ConnectionError("refused"),
        build_response(500, {}),
        build_response(200, {}),
    ]
    result = probe_hosts(session, ["http://a", "http://b", "http://c"], timeout_sec=3.0)
    assert result.success is True
    assert result.url == "http://c"
    assert result.tried == ["http://a", "http://b", "http://c"]
    assert all(c.kwargs["timeout"] == 3.0 for c in session.request.call_args_list)


def test_probe_hosts_stops_at_first_success() -> None:
    session = _session()
    session.request.return_value = build_response(200, {})
    result = probe_hosts(session, ["http://a", "http://b"])
    assert result.url == "http://a"
    assert session.request.call_count == 1


def test_probe_hosts_none_reachable() -> None:
    session = _session()
    session.request.side_effect = requests.Timeout()
    result = probe_hosts(session, ["http://a", "http://b"])
    assert result.success is False
    assert result.url is None
    assert result.error == "No API endpoints are reachable"
    assert session.request.call_count == 2
