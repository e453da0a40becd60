"""Raw HTTP transport over an injected ``httpx.AsyncClient``.

Responsibilities, in the order a request meets them:

1. Session gate -- a request flagged ``requires_session`` fails with
   ``UnauthenticatedError`` before any I/O when no token is configured.
2. Admission -- at most ``max_concurrent_requests`` calls are in flight
   per transport (``asyncio.Semaphore``).
3. Cadence -- request starts are spaced ``min_request_interval`` seconds
   apart (``_throttle()``), because some endpoints rate-limit on request
   cadence rather than on volume.
4. Classification -- every unusable response becomes a typed error.

No retrying happens here; wrap the transport in
:class:`~toonkit.providers.transport.retry.RetryingTransport` for that.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable

import httpx

from toonkit.config.settings import ClientSettings
from toonkit.interfaces.transport import HttpRequest, ITransport
from toonkit.utils.errors import (
    HttpStatusError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthenticatedError,
)
from toonkit.utils.logging import get_logger


class HttpxTransport(ITransport):
    """Concrete transport backed by ``httpx.AsyncClient``.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    settings:
        Supplies the session token, user agent, timeout, admission limit
        and minimum request interval.
    clock / sleep:
        Injectable for tests; default to ``time.monotonic`` and
        ``asyncio.sleep``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: ClientSettings,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self._settings = settings
        self._clock = clock
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(settings.max_concurrent_requests)
        self._cadence_lock = asyncio.Lock()
        self._last_request_time: float | None = None
        self._logger = get_logger(__name__)

    @property
    def has_session(self) -> bool:
        return self._settings.has_session

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce the minimum delay between request starts."""
        interval = self._settings.min_request_interval
        if interval <= 0:
            return
        async with self._cadence_lock:
            if self._last_request_time is not None:
                elapsed = self._clock() - self._last_request_time
                if elapsed < interval:
                    await self._sleep(interval - elapsed)
            self._last_request_time = self._clock()

    def _build_headers(self, request: HttpRequest) -> dict[str, str]:
        headers = {"User-Agent": self._settings.user_agent}
        headers.update(request.headers)
        if request.session_cookie and self._settings.session_token:
            headers["Cookie"] = f"{request.session_cookie}={self._settings.session_token}"
        return headers

    @staticmethod
    def _parse_retry_after(value: str | None) -> float | None:
        """Parse a ``Retry-After`` header (delta-seconds or HTTP-date)."""
        if not value:
            return None
        value = value.strip()
        if value.isdigit():
            return float(value)
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0.0, (when - datetime.now(tz=timezone.utc)).total_seconds())

    def _classify(self, request: HttpRequest, response: httpx.Response) -> None:
        """Raise the typed error matching *response*, or return if usable."""
        status = response.status_code
        if status < 400 or status in request.pass_statuses:
            return

        url = str(response.url)
        provider = request.provider_name
        if status == 404:
            raise NotFoundError(f"Not found: {url}", provider_name=provider, resource=url)
        if status == 429:
            retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
            raise RateLimitedError(
                f"Rate limited: {url}",
                provider_name=provider,
                retry_after=retry_after,
            )
        if status in (401, 403):
            raise UnauthenticatedError(
                f"Upstream rejected the request ({status}): {url}",
                provider_name=provider,
            )
        if status >= 500:
            raise NetworkError(f"Server error {status}: {url}", provider_name=provider)
        raise HttpStatusError(
            f"Unexpected status {status}: {url}",
            provider_name=provider,
            status_code=status,
        )

    # ------------------------------------------------------------------
    # ITransport implementation
    # ------------------------------------------------------------------

    async def send(self, request: HttpRequest) -> httpx.Response:
        if request.requires_session and not self.has_session:
            raise UnauthenticatedError(
                "This operation requires a session token",
                provider_name=request.provider_name,
            )

        headers = self._build_headers(request)
        async with self._semaphore:
            await self._throttle()
            try:
                response = await self._http.request(
                    request.method,
                    request.url,
                    params=request.params or None,
                    headers=headers,
                    follow_redirects=request.follow_redirects,
                    timeout=self._settings.request_timeout,
                )
            except httpx.TransportError as exc:
                self._logger.warning(
                    "transport_request_failed",
                    url=request.url,
                    error=str(exc),
                )
                raise NetworkError(
                    f"Request to {request.url} failed: {exc}",
                    provider_name=request.provider_name,
                ) from exc

        self._logger.debug(
            "transport_response",
            url=str(response.url),
            status=response.status_code,
        )
        self._classify(request, response)
        return response

    async def aclose(self) -> None:
        await self._http.aclose()
