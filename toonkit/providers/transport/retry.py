"""Retry/backoff decorator for any :class:`ITransport`.

Only errors flagged ``retryable`` are retried: ``RateLimitedError`` (HTTP
429) and ``NetworkError`` (connection failures, timeouts, 5xx).  Every
other ``ToonkitError``, ``ParseError`` and non-429 client errors included,
propagates on the first occurrence.

Backoff is exponential with additive jitter capped at ``max_delay``.  A
``Retry-After`` hint is not capped: the server's wait always wins.  Delays
never shrink between attempts::

    delay_n = max(delay_{n-1}, min(max_delay, base * 2**(n-1) + U(0, base)), retry_after)
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable

import httpx

from toonkit.interfaces.transport import HttpRequest, ITransport
from toonkit.utils.errors import RateLimitedError, ToonkitError
from toonkit.utils.logging import get_logger

_MAX_EXPONENT = 30


class RetryingTransport(ITransport):
    """Wraps *inner* with a bounded retry policy.

    Parameters
    ----------
    inner:
        The transport that performs the actual call.
    max_attempts:
        Total number of attempts including the first one.
    base_delay:
        Backoff base in seconds.
    max_delay:
        Upper bound for the computed backoff.  A longer ``Retry-After``
        is still honoured.
    sleep / rand:
        Injectable for tests; default to ``asyncio.sleep`` and
        ``random.random``.
    """

    def __init__(
        self,
        inner: ITransport,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self._inner = inner
        self._max_attempts = max(1, max_attempts)
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep
        self._rand = rand
        self._logger = get_logger(__name__)

    @property
    def has_session(self) -> bool:
        return self._inner.has_session

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _next_delay(
        self,
        attempt: int,
        previous: float,
        error: ToonkitError,
    ) -> float:
        exponent = min(attempt - 1, _MAX_EXPONENT)
        backoff = self._base_delay * (2 ** exponent) + self._rand() * self._base_delay
        delay = max(previous, min(self._max_delay, backoff))
        if isinstance(error, RateLimitedError) and error.retry_after is not None:
            delay = max(delay, error.retry_after)
        return delay

    async def send(self, request: HttpRequest) -> httpx.Response:
        attempt = 0
        delay = 0.0
        while True:
            attempt += 1
            try:
                return await self._inner.send(request)
            except ToonkitError as exc:
                if not exc.retryable:
                    raise
                if attempt >= self._max_attempts:
                    if isinstance(exc, RateLimitedError):
                        exc.attempts = attempt
                    self._logger.warning(
                        "transport_retries_exhausted",
                        url=request.url,
                        attempts=attempt,
                        error=type(exc).__name__,
                    )
                    raise
                delay = self._next_delay(attempt, delay, exc)
                self._logger.warning(
                    "transport_retry",
                    url=request.url,
                    attempt=attempt,
                    error=type(exc).__name__,
                    backoff_s=round(delay, 3),
                )
                await self._sleep(delay)

    async def aclose(self) -> None:
        await self._inner.aclose()
