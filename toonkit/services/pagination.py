"""Lazy, forward-only traversal over paginated listings.

:func:`paginate` is the single page-fetch loop behind every listing.  It
is driven by a :class:`~toonkit.models.pages.PageNumber` or a
:class:`~toonkit.models.pages.Cursor` token and stops when:

* page numbers -- the page is empty, the adapter marked it ``last``, the
  ``stop`` index was reached, or (walking forward) the page came back
  shorter than the requested ``page_size``;
* cursors -- the server returned no continuation token, or handed back
  the same token again.

Pages are fetched strictly one after another: page N+1 is requested only
after every item of page N has been yielded, so at most one page is held
in memory.  Items can be reordered within a page (``sort_key``) and are
de-duplicated against the previous page (``identity``), which covers
listings that shift by a few rows while being walked.  Only the keys of
the current and previous page are retained.

Errors raised by a page fetch propagate out of the iterator; items that
were already yielded stay valid.
"""

from __future__ import annotations

from functools import partial
from operator import attrgetter
from typing import Any, AsyncIterator, Awaitable, Callable, Hashable, TypeVar

from toonkit.interfaces.platform_adapter import IPlatformAdapter
from toonkit.models.entities import Episode, Post, Webtoon
from toonkit.models.pages import Cursor, Page, PageNumber, PageToken
from toonkit.utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def next_token(token: PageToken, page: Page[Any]) -> PageToken | None:
    """Return the token for the page after *page*, or ``None`` when done."""
    if isinstance(token, Cursor):
        if page.cursor is None or page.cursor == token.value:
            return None
        return Cursor(page.cursor)

    if page.last or not page.items or token.at_stop:
        return None
    if token.step > 0 and page.page_size is not None and len(page.items) < page.page_size:
        return None
    following = token.next()
    if following.number < 1:
        return None
    return following


async def paginate(
    fetch_page: Callable[[PageToken], Awaitable[Page[T]]],
    start: PageToken,
    *,
    sort_key: Callable[[T], Any] | None = None,
    identity: Callable[[T], Hashable] | None = None,
) -> AsyncIterator[T]:
    """Yield every item of a paginated listing, one page at a time.

    Parameters
    ----------
    fetch_page:
        Coroutine function fetching the page for a token.
    start:
        Token of the first page.
    sort_key:
        Optional key used to order the items of each page.
    identity:
        Optional key used to drop items repeated from the previous page.
    """
    token: PageToken | None = start
    previous: set[Hashable] = set()
    pages = 0

    while token is not None:
        page = await fetch_page(token)
        pages += 1
        logger.debug(
            "pagination_page_fetched",
            token=token,
            items=len(page.items),
            page_index=pages,
        )

        items = sorted(page.items, key=sort_key) if sort_key is not None else page.items
        current: set[Hashable] = set()
        for item in items:
            if identity is not None:
                key = identity(item)
                if key in current:
                    continue
                current.add(key)
                if key in previous:
                    continue
            yield item

        previous = current
        token = next_token(token, page)


class PaginationEngine:
    """Builds the episode, post and reply sequences on top of one adapter.

    Parameters
    ----------
    adapter:
        The platform adapter supplying pages.
    bind:
        Optional callback applied to every yielded entity, used by the
        client to attach itself for further navigation.
    """

    def __init__(
        self,
        adapter: IPlatformAdapter,
        bind: Callable[[Any], Any] | None = None,
    ) -> None:
        self._adapter = adapter
        self._bind = bind or (lambda item: item)

    async def episodes(self, webtoon: Webtoon) -> AsyncIterator[Episode]:
        """Every episode of *webtoon*, ascending by episode number."""
        start = await self._adapter.first_episode_token(webtoon)
        fetch = partial(self._adapter.fetch_episode_page, webtoon)
        async for episode in paginate(
            fetch,
            start,
            sort_key=attrgetter("number"),
            identity=attrgetter("number"),
        ):
            yield self._bind(episode)

    async def posts(self, episode: Episode) -> AsyncIterator[Post]:
        """Top-level posts of *episode* in upstream order."""
        fetch = partial(self._adapter.fetch_post_page, episode)
        async for post in paginate(fetch, self._adapter.first_post_token(), identity=attrgetter("id")):
            yield self._bind(post)

    async def replies(self, post: Post) -> AsyncIterator[Post]:
        """Replies to *post*.

        Posts known to have no replies, and tombstones, yield nothing
        without touching the adapter.
        """
        if post.reply_count == 0 or post.deleted:
            return
        fetch = partial(self._adapter.fetch_reply_page, post)
        async for reply in paginate(fetch, self._adapter.first_reply_token(), identity=attrgetter("id")):
            yield self._bind(reply)
