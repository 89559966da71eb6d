"""Tests for estate.api.retry: RetryPolicy execute, linear backoff, retryable classification."""

from __future__ import annotations

from unittest.mock import call, patch

import pytest

from estate.api.errors import AuthenticationError, ServerInternalError
from estate.api.retry import RetryPolicy, is_retryable


def test_retry_policy_success_first_try() -> None:
    policy = RetryPolicy(max_attempts=3)
    calls: list[int] = []
    with patch("estate.api.retry.time.sleep") as sleep:
        result = policy.execute(lambda attempt: (calls.append(attempt) or 42))
    assert result == 42
    assert calls == [1]
    sleep.assert_not_called()


def test_retry_policy_retry_then_success() -> None:
    policy = RetryPolicy(max_attempts=3)
    calls: list[int] = []

    def flaky(attempt: int) -> int:
        calls.append(attempt)
        if attempt < 2:
            raise ValueError("fail")
        return 99

    with patch("estate.api.retry.time.sleep") as sleep:
        result = policy.execute(flaky)
    assert result == 99
    assert calls == [1, 2]
    sleep.assert_called_once_with(1.0)


def test_retry_policy_linear_backoff_then_raises() -> None:
    policy = RetryPolicy(max_attempts=3, backoff_unit_sec=1.0)
    calls: list[int] = []

    def always_fail(attempt: int) -> int:
        calls.append(attempt)
        raise ValueError("always fail")

    with patch("estate.api.retry.time.sleep") as sleep:
        with pytest.raises(ValueError, match="always fail"):
            policy.execute(always_fail)
    assert calls == [1, 2, 3]
    assert sleep.call_args_list == [call(1.0), call(2.0)]


def test_retry_policy_non_retryable_raises_immediately() -> None:
    policy = RetryPolicy(max_attempts=5)
    calls: list[int] = []

    def fail(attempt: int) -> int:
        calls.append(attempt)
        raise AuthenticationError()

    with patch("estate.api.retry.time.sleep") as sleep:
        with pytest.raises(AuthenticationError):
            policy.execute(fail)
    assert calls == [1]
    sleep.assert_not_called()


def test_retry_policy_custom_should_retry() -> None:
    policy = RetryPolicy(max_attempts=4)
    calls: list[int] = []

    def fail(attempt: int) -> int:
        calls.append(attempt)
        raise ValueError("do not retry")

    with patch("estate.api.retry.time.sleep"):
        with pytest.raises(ValueError, match="do not retry"):
            policy.execute(fail, should_retry=lambda e: False)
    assert calls == [1]


def test_retry_policy_max_attempts_override() -> None:
    policy = RetryPolicy(max_attempts=3)
    calls: list[int] = []

    def fail(attempt: int) -> int:
        calls.append(attempt)
        raise ServerInternalError()

    with patch("estate.api.retry.time.sleep") as sleep:
        with pytest.raises(ServerInternalError):
            policy.execute(fail, max_attempts=1)
    assert calls == [1]
    sleep.assert_not_called()


def test_retry_policy_init_clamps() -> None:
    policy = RetryPolicy(max_attempts=0, backoff_unit_sec=-1.0)
    assert policy.max_attempts == 1
    assert policy.delay_for(3) == 0.0


def test_delay_for_is_linear() -> None:
    policy = RetryPolicy(backoff_unit_sec=0.5)
    assert policy.delay_for(1) == 0.5
    assert policy.delay_for(2) == 1.0
    assert policy.delay_for(4) == 2.0


def test_is_retryable_flags() -> None:
    assert is_retryable(ServerInternalError()) is True
    assert is_retryable(AuthenticationError()) is False
    assert is_retryable(ValueError("plain")) is True
