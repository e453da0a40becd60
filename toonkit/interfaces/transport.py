"""Abstract base class for the HTTP transport layer.

Adapters describe each outbound call as an :class:`HttpRequest` and hand
it to an :class:`ITransport`.  Concrete transports decide how the call is
made (connection pooling, cadence, admission, session cookie) and turn
unusable responses into typed errors; decorators such as
:class:`~toonkit.providers.transport.retry.RetryingTransport` add
cross-cutting behaviour without the adapter knowing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(frozen=True)
class HttpRequest:
    """Description of one outbound HTTP call.

    Attributes
    ----------
    url:
        Absolute URL, without the query string.
    params:
        Query parameters; values are sent verbatim.
    headers:
        Extra headers merged over the transport defaults.
    requires_session:
        The operation is only permitted with a session token.  Without
        one the transport raises ``UnauthenticatedError`` before any I/O.
    session_cookie:
        Cookie name carrying the session token on this platform.  When
        ``None`` the token is never sent.
    pass_statuses:
        Statuses handed back to the adapter untouched instead of being
        classified (e.g. 400 meaning "profile disabled").
    follow_redirects:
        Follow 3xx responses; the final URL is on ``response.url``.
    provider_name:
        Adapter name stamped on any raised error.
    """

    url: str
    method: str = "GET"
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    requires_session: bool = False
    session_cookie: str | None = None
    pass_statuses: frozenset[int] = frozenset()
    follow_redirects: bool = False
    provider_name: str | None = None


class ITransport(ABC):
    """Contract for sending :class:`HttpRequest` objects.

    Implementations raise :class:`~toonkit.utils.errors.ToonkitError`
    subclasses for every response they do not return.  Any call may
    suspend for a long time (cadence waits, backoff) and must stay
    cancellable at those points.
    """

    @abstractmethod
    async def send(self, request: HttpRequest) -> httpx.Response:
        """Send *request* and return the response.

        Raises
        ------
        NotFoundError
            On 404.
        RateLimitedError
            On 429 (retryable).
        UnauthenticatedError
            On 401/403, or when a session is required but not configured.
        NetworkError
            On 5xx or connection-level failures (retryable).
        HttpStatusError
            On any other 4xx.
        """

    @property
    @abstractmethod
    def has_session(self) -> bool:
        """Return ``True`` when a session token is configured."""

    async def aclose(self) -> None:
        """Release pooled connections.  Default is a no-op."""
        return None
