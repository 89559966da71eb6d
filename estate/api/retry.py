"""
Retry logic with linear backoff for the estate API client.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: Exception) -> bool:
    """Default classifier: honor an APIError's `retryable` flag, retry anything else."""
    return bool(getattr(exc, "retryable", True))


class RetryPolicy:
    """
    Retry policy with linear backoff: the wait before attempt N+1 is N * backoff_unit_sec.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_unit_sec: float = 1.0,
    ) -> None:
        """
        Args:
            max_attempts: Total attempts including the first (minimum 1)
            backoff_unit_sec: Base unit for linear backoff
        """
        self._max_attempts = max(1, max_attempts)
        self._backoff_unit = max(0.0, backoff_unit_sec)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return attempt * self._backoff_unit

    def execute(
        self,
        func: Callable[[int], T],
        should_retry: Callable[[Exception], bool] | None = None,
        max_attempts: int | None = None,
    ) -> T:
        """
        Execute a function with retry logic.

        Args:
            func: Function to execute; receives the 1-based attempt number
            should_retry: Returns True if the exception is worth another attempt.
                          Defaults to is_retryable.
            max_attempts: Override the policy's attempt budget for this execution

        Returns:
            Function result

        Raises:
            Last exception if attempts are exhausted or the failure is not retryable
        """
        should_retry = should_retry or is_retryable
        budget = self._max_attempts if max_attempts is None else max(1, max_attempts)

        for attempt in range(1, budget + 1):
            try:
                return func(attempt)
            except Exception as e:
                if not should_retry(e):
                    logger.debug("Not retrying after attempt %d: %s", attempt, e)
                    raise

                if attempt >= budget:
                    logger.debug("Retry exhausted after %d attempts: %s", attempt, e)
                    raise

                delay = self.delay_for(attempt)
                logger.debug(
                    "Retry attempt %d/%d after %.2fs: %s",
                    attempt,
                    budget,
                    delay,
                    e,
                )
                time.sleep(delay)

        raise RuntimeError("Retry logic error")
