"""Single-flight, never-expiring entity cache.

Each identity (a hashable key such as ``("webtoons", "webtoon", 95,
"original")``) is fetched at most once per cache lifetime:

* A hit returns the stored object itself, so repeated reads observe the
  very same instance with no network activity.
* The first caller on a miss starts the fetch as one ``asyncio.Task`` and
  records it in the in-flight map; concurrent callers for the same key
  await that task instead of fetching again.
* A successful fetch stores its value in one step.  A failed fetch stores
  nothing, every waiter receives the same exception, and the next call
  starts over.
* A waiter that is cancelled detaches from the fetch.  When the last
  waiter detaches the fetch task is cancelled and forgotten, so nothing
  half-done is ever stored.

There is no TTL and no size bound; only :meth:`EntityCache.evict` and
:meth:`EntityCache.clear` drop values.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Hashable

from toonkit.utils.logging import get_logger

logger = get_logger(__name__)


class _Flight:
    """An in-flight fetch and the number of callers awaiting it."""

    __slots__ = ("task", "waiters")

    def __init__(self, task: asyncio.Task) -> None:
        self.task = task
        self.waiters = 0


class EntityCache:
    """Per-identity single-flight memo shared by everything one Client spawns."""

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}
        self._in_flight: dict[Hashable, _Flight] = {}
        # Guards the check-then-insert on both maps.
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_or_fetch(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the value cached under *key*, fetching it once if absent.

        Parameters
        ----------
        key:
            Hashable identity of the entity.
        fetch:
            Zero-argument coroutine function producing the value.  Called
            at most once per concurrent burst of callers.

        Raises
        ------
        Exception
            Whatever *fetch* raised, delivered to every waiter.
        """
        async with self._lock:
            if key in self._values:
                logger.debug("cache_hit", key=key)
                return self._values[key]
            flight = self._in_flight.get(key)
            if flight is None:
                logger.debug("cache_miss", key=key)
                flight = _Flight(asyncio.ensure_future(self._run(key, fetch)))
                self._in_flight[key] = flight
            else:
                logger.debug("cache_join_in_flight", key=key)
            flight.waiters += 1

        try:
            # shield: one waiter's cancellation must not cancel the shared fetch.
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                self._forget(key, flight.task)
                flight.task.cancel()
                logger.debug("cache_fetch_abandoned", key=key)
            raise
        finally:
            flight.waiters -= 1

    def peek(self, key: Hashable) -> Any | None:
        """Return the cached value without fetching, or ``None``."""
        return self._values.get(key)

    def evict(self, key: Hashable) -> bool:
        """Drop the value cached under *key*; return whether one was present.

        A fetch already in flight for *key* is not affected and will store
        its result when it completes.
        """
        return self._values.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every cached value."""
        self._values.clear()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        task = asyncio.current_task()
        try:
            value = await fetch()
        except BaseException:
            self._forget(key, task)
            raise
        if self._forget(key, task):
            self._values[key] = value
            logger.debug("cache_set", key=key)
        return value

    def _forget(self, key: Hashable, task: asyncio.Task | None) -> bool:
        """Remove the in-flight entry for *key* if it still belongs to *task*."""
        flight = self._in_flight.get(key)
        if flight is not None and flight.task is task:
            del self._in_flight[key]
            return True
        return False
