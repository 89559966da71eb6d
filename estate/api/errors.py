"""
Error taxonomy for the estate API client.
Every failure raised by a call is an APIError; `retryable` tells the retry loop
whether another attempt against the same host is worth making.
"""

from __future__ import annotations


class APIError(RuntimeError):
    """Base class for all API client failures."""

    retryable = True

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url


class RequestTimeoutError(APIError):
    """The attempt did not complete within its timeout."""


class TransportError(APIError):
    """Connection refused, DNS failure, reset, or any other network-level error."""


class AuthenticationError(APIError):
    """Server answered 401. Stored token has been cleared."""

    retryable = False

    def __init__(self, message: str = "Authentication failed", url: str | None = None) -> None:
        super().__init__(message, url=url)


class EndpointNotFoundError(APIError):
    """Server answered 404."""

    retryable = False

    def __init__(self, message: str = "API endpoint not found", url: str | None = None) -> None:
        super().__init__(message, url=url)


class ServerInternalError(APIError):
    """Server answered 500."""

    def __init__(self, message: str = "Server internal error", url: str | None = None) -> None:
        super().__init__(message, url=url)


class HTTPStatusError(APIError):
    """Any other non-2xx status."""

    def __init__(self, message: str, status: int, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.status = status


class MalformedResponseError(APIError):
    """HTML error page or a body that is not JSON (misconfigured host)."""

    retryable = False


class AllHostsExhaustedError(APIError):
    """Every configured host failed for a single call."""

    retryable = False

    def __init__(
        self,
        last_error: APIError,
        attempted_urls: list[str],
    ) -> None:
        super().__init__(
            f"API call failed: {last_error.message}. "
            f"Tried {len(attempted_urls)} endpoints."
        )
        self.last_error = last_error
        self.attempted_urls = list(attempted_urls)
