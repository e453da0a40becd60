"""Custom exception hierarchy for toonkit.

All library exceptions inherit from :class:`ToonkitError`, which carries an
optional ``provider_name`` so callers can tell which platform adapter (e.g.
"webtoons", "naver") or which layer ("transport") raised it.

    ToonkitError  (base -- catch-all for any toonkit error)
    +-- NotFoundError          (identity does not exist upstream)
    +-- RateLimitedError       (429 responses, retry budget exhausted)
    +-- ParseError             (response did not match the expected layout)
    +-- UnauthenticatedError   (session token missing or rejected)
    +-- NetworkError           (transient I/O failure or 5xx)
    +-- HttpStatusError        (any other 4xx, not retryable)
    +-- ConfigurationError     (invalid settings or platform)

Callers distinguish "does not exist" from "platform changed" from "try
later" by type alone, never by matching on the message.  Only
:class:`RateLimitedError` and :class:`NetworkError` are retryable; the
retrying transport consults :attr:`ToonkitError.retryable`.
"""

from __future__ import annotations


class ToonkitError(Exception):
    """Base exception for all toonkit errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[naver] Webtoon 12345 not found``.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream answered, but not with what was asked for
# ---------------------------------------------------------------------------

class NotFoundError(ToonkitError):
    """Raised when the requested identity does not exist upstream."""

    def __init__(
        self,
        message: str = "Requested resource does not exist",
        provider_name: str | None = None,
        resource: str | None = None,
    ) -> None:
        self._resource = resource
        super().__init__(message=message, provider_name=provider_name)

    @property
    def resource(self) -> str | None:
        return self._resource


class ParseError(ToonkitError):
    """Raised when a response does not match the expected structure.

    Never retried.  ``field`` and ``endpoint`` name what was missing and
    where it was looked for so a layout change can be diagnosed quickly.
    """

    def __init__(
        self,
        message: str = "Unexpected response structure",
        provider_name: str | None = None,
        field: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        self._field = field
        self._endpoint = endpoint
        super().__init__(message=message, provider_name=provider_name)

    @property
    def field(self) -> str | None:
        return self._field

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    def __str__(self) -> str:
        base = super().__str__()
        details = [f"{k}={v}" for k, v in (("field", self._field), ("endpoint", self._endpoint)) if v]
        if details:
            return f"{base} ({', '.join(details)})"
        return base


class UnauthenticatedError(ToonkitError):
    """Raised when an operation needs a session that is absent or rejected."""

    def __init__(
        self,
        message: str = "Operation requires a valid session",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class HttpStatusError(ToonkitError):
    """Raised for a client error status other than 401, 403, 404 and 429."""

    def __init__(
        self,
        message: str = "Unexpected HTTP status",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._status_code = status_code
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code


# ---------------------------------------------------------------------------
# Transient failures (retried by the transport)
# ---------------------------------------------------------------------------

class RateLimitedError(ToonkitError):
    """Raised on HTTP 429.

    The transport raises one per rate-limited response; once the retry
    budget runs out the last one surfaces to the caller with ``attempts``
    set to the number of requests that were made.
    """

    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        retry_after: float | None = None,
        attempts: int | None = None,
    ) -> None:
        self._retry_after = retry_after
        self.attempts = attempts
        super().__init__(message=message, provider_name=provider_name)

    @property
    def retry_after(self) -> float | None:
        return self._retry_after


class NetworkError(ToonkitError):
    """Raised on connection failures, timeouts and 5xx responses."""

    retryable = True

    def __init__(
        self,
        message: str = "Network request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(ToonkitError):
    """Raised when client configuration is invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
