"""Abstract base class for platform adapters.

An adapter translates one platform's wire protocol into the shared domain
model.  Every adapter implements the same capability set (metadata, one
page of episodes, one page of posts, one page of replies) plus the
supplementary lookups (creator, viewer, single episode, likes, rating,
account).  Adapters never cache and never retry: the entity cache and the
retrying transport own those concerns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from toonkit.models.entities import (
    CreatorProfile,
    Episode,
    EpisodeDetail,
    Platform,
    Post,
    Rating,
    UserInfo,
    Webtoon,
    WebtoonType,
)
from toonkit.models.pages import Page, PageToken


class IPlatformAdapter(ABC):
    """Contract for per-platform data access.

    Page-fetch operations take the token produced by the matching
    ``first_*_token`` method (and then by the pagination engine) and return
    exactly one :class:`~toonkit.models.pages.Page`.
    """

    platform: Platform

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"webtoons"``."""

    # -- Metadata -----------------------------------------------------------

    @abstractmethod
    async def fetch_metadata(self, webtoon_id: int, webtoon_type: WebtoonType) -> Webtoon:
        """Fetch and parse a Webtoon's metadata.

        Raises
        ------
        NotFoundError
            The id/type pair does not exist.
        ParseError
            A required field (title, genres) is missing.
        """

    # -- Listings -----------------------------------------------------------

    @abstractmethod
    async def first_episode_token(self, webtoon: Webtoon) -> PageToken:
        """Token for the first episode page to request.

        May issue a request (e.g. to learn the page count) when the
        listing must be walked backwards.
        """

    @abstractmethod
    async def fetch_episode_page(self, webtoon: Webtoon, token: PageToken) -> Page[Episode]:
        """Fetch one page of the episode listing."""

    @abstractmethod
    def first_post_token(self) -> PageToken:
        """Token for the first page of top-level posts."""

    @abstractmethod
    async def fetch_post_page(self, episode: Episode, token: PageToken) -> Page[Post]:
        """Fetch one page of an episode's top-level posts."""

    @abstractmethod
    def first_reply_token(self) -> PageToken:
        """Token for the first page of replies."""

    @abstractmethod
    async def fetch_reply_page(self, post: Post, token: PageToken) -> Page[Post]:
        """Fetch one page of replies to *post*."""

    # -- Supplementary lookups ----------------------------------------------

    @abstractmethod
    async def fetch_creator(self, profile: str) -> CreatorProfile:
        """Fetch a creator's profile page.

        A profile disabled by its owner returns ``CreatorProfile(disabled=True)``.

        Raises
        ------
        NotFoundError
            No profile exists under *profile*.
        """

    @abstractmethod
    async def fetch_episode(self, webtoon: Webtoon, number: int) -> Episode | None:
        """Look up episode *number* without walking the whole listing.

        Returns ``None`` when the series has no such episode.
        """

    @abstractmethod
    async def fetch_episode_likes(self, episode: Episode) -> int:
        """Fetch the current like count of *episode*."""

    @abstractmethod
    async def fetch_episode_rating(self, episode: Episode) -> Rating | None:
        """Fetch the star rating of *episode*; ``None`` where episodes are unrated."""

    @abstractmethod
    async def fetch_episode_detail(self, webtoon: Webtoon, number: int) -> EpisodeDetail:
        """Fetch the viewer page of episode *number*."""

    @abstractmethod
    async def fetch_user_info(self) -> UserInfo:
        """Fetch the account behind the session token.

        Raises
        ------
        UnauthenticatedError
            No session configured, or the platform has no session API.
        """
