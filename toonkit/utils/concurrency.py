"""Bounded fan-out helpers.

:func:`throttled_gather` is a drop-in replacement for ``asyncio.gather``
that admits at most ``limit`` awaitables at a time.  The client uses it to
fetch many independent entities in parallel without starving the
transport's own admission limiter of slots for pagination traffic.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import structlog

from toonkit.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    limit: int = 4,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional shared semaphore.  When omitted a fresh one with ``limit``
        slots is created for this call.
    limit:
        Slot count for the per-call semaphore.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(max(1, limit))

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    results = await asyncio.gather(*tasks, return_exceptions=return_exceptions)

    failures = sum(1 for r in results if isinstance(r, BaseException))
    if failures:
        _logger.debug("throttled_gather_failures", total=len(results), failed=failures)
    return results
