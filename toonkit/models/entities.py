"""Pydantic v2 domain models shared by both platform adapters.

All models are frozen: an entity never changes once an adapter has built
it.  Entities that support navigation (``webtoon.episodes()``,
``episode.posts()``, ``post.replies()``, ``creator.profile_page()``) hold
a reference to the :class:`~toonkit.client.Client` that produced them in
a ``PrivateAttr``, which is excluded from validation, serialization and
the frozen check.  An entity built by hand (e.g. in a test) is unbound
and raises :class:`~toonkit.utils.errors.ConfigurationError` when asked
to navigate.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from toonkit.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from toonkit.client import Client


class Platform(str, Enum):
    """Supported upstream platforms."""

    WEBTOONS = "webtoons"  # webtoons.com, HTML pages + community JSON API
    NAVER = "naver"  # comic.naver.com, JSON API


class WebtoonType(str, Enum):
    """Discriminator that, together with the numeric id, identifies a Webtoon."""

    ORIGINAL = "original"  # professionally published series
    CANVAS = "canvas"  # independent submissions (Naver "challenge")
    BEST_CHALLENGE = "best_challenge"  # Naver only: promoted challenge series


# ---------------------------------------------------------------------------
# Client binding
# ---------------------------------------------------------------------------

class _ClientBound(BaseModel):
    """Base for entities that can navigate to related data."""

    model_config = ConfigDict(frozen=True)

    _client: Any = PrivateAttr(default=None)

    def bind(self, client: Client) -> _ClientBound:
        """Attach *client* and return ``self``.

        Private attributes bypass the frozen check, so binding does not
        touch any validated field.
        """
        self.__pydantic_private__["_client"] = client
        return self

    def _require_client(self) -> Client:
        if self._client is None:
            raise ConfigurationError(
                f"{type(self).__name__} is not bound to a Client; "
                "obtain it through Client methods to navigate"
            )
        return self._client


# ---------------------------------------------------------------------------
# Creators
# ---------------------------------------------------------------------------

class CreatorProfile(BaseModel):
    """A creator's community profile page.

    A profile the creator has switched off is a valid state: ``disabled``
    is ``True`` and the counters are ``None``.
    """

    model_config = ConfigDict(frozen=True)

    platform: Platform
    profile: str = Field(description="Profile slug used in the community URL.")
    username: str | None = Field(default=None, description="Display name on the profile page.")
    creator_id: str | None = Field(default=None, description="Platform-internal creator id.")
    followers: int | None = Field(default=None, description="Follower count, when shown.")
    disabled: bool = Field(default=False, description="Profile turned off by its owner.")


class Creator(_ClientBound):
    """A creator credited on a Webtoon."""

    platform: Platform
    username: str = Field(description="Display name as credited on the series.")
    profile: str | None = Field(
        default=None,
        description="Profile slug; None for creators credited without an account.",
    )

    @property
    def has_profile(self) -> bool:
        return self.profile is not None

    async def profile_page(self) -> CreatorProfile | None:
        """Fetch (once) the creator's profile page; ``None`` without a profile slug."""
        if self.profile is None:
            return None
        return await self._require_client().get_creator(self.profile)


# ---------------------------------------------------------------------------
# Webtoons and episodes
# ---------------------------------------------------------------------------

class Webtoon(_ClientBound):
    """A series on one platform, identified by ``(platform, id, type)``."""

    platform: Platform
    id: int = Field(description="Platform-scoped numeric title id.")
    type: WebtoonType
    title: str
    creators: list[Creator] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    completed: bool = False
    summary: str | None = None
    views: int | None = None
    subscribers: int | None = None
    schedule: list[str] = Field(
        default_factory=list,
        description="Release weekdays (e.g. 'MONDAY'), ['DAILY'], or empty.",
    )
    thumbnail: str | None = None
    banner: str | None = None
    url: str | None = Field(default=None, description="Canonical listing page URL.")
    episode_pages: int | None = Field(
        default=None,
        description="Number of listing pages, when the platform exposes it.",
    )
    rating: float | None = Field(
        default=None,
        description="Average star score shown on the listing page (webtoons.com only).",
    )
    on_hiatus: bool | None = Field(
        default=None,
        description="Series is on a break; None where the platform does not say.",
    )

    @property
    def rss_url(self) -> str | None:
        """Feed URL consumed by RSS readers; only webtoons.com publishes one."""
        if self.platform is not Platform.WEBTOONS or not self.url:
            return None
        return self.url.replace("/list?", "/rss?", 1)

    def episodes(self) -> AsyncIterator[Episode]:
        """Lazily iterate every episode in ascending episode-number order."""
        return self._require_client().episodes(self)

    async def episode(self, number: int) -> Episode | None:
        """Look up episode *number* directly; ``None`` if it does not exist."""
        return await self._require_client().episode(self, number)

    async def likes(self) -> int:
        """Sum of the likes of every episode."""
        return await self._require_client().webtoon_likes(self)

    async def average_rating(self) -> float | None:
        """Series rating, or the mean of the episode ratings where only those exist."""
        return await self._require_client().webtoon_rating(self)


class Episode(_ClientBound):
    """One episode of a Webtoon."""

    platform: Platform
    webtoon_id: int
    webtoon_type: WebtoonType
    number: int = Field(description="Episode number, unique within its Webtoon.")
    title: str
    season: int | None = Field(default=None, description="Season parsed from the title.")
    published: datetime | None = None
    views: int | None = None
    thumbnail: str | None = None
    is_published: bool = Field(
        default=True,
        description="False for upcoming or paid-preview episodes.",
    )
    webtoon_url: str | None = None
    rating: float | None = Field(
        default=None,
        description="Star score carried by the listing (comic.naver.com only).",
    )

    def posts(self) -> AsyncIterator[Post]:
        """Lazily iterate the episode's top-level posts."""
        return self._require_client().posts(self)

    async def detail(self) -> EpisodeDetail:
        """Fetch (once) the episode's viewer page with its panel images."""
        return await self._require_client().episode_detail(self)

    async def likes(self) -> int:
        """Current like count; always fetched, never cached."""
        return await self._require_client().episode_likes(self)

    async def rating_details(self) -> Rating | None:
        """Score and number of raters, where the platform rates episodes."""
        return await self._require_client().episode_rating(self)


class Rating(BaseModel):
    """Star rating of one episode."""

    model_config = ConfigDict(frozen=True)

    score: float
    raters: int | None = Field(
        default=None,
        description="Number of ratings; None when the platform hides it (paid episodes).",
    )


class Panel(BaseModel):
    """One image of an episode's viewer page."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int | None = None
    height: int | None = None


class EpisodeDetail(BaseModel):
    """The viewer page of an episode."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    webtoon_id: int
    webtoon_type: WebtoonType
    number: int
    title: str | None = None
    note: str | None = Field(default=None, description="Creator's note under the episode.")
    panels: list[Panel] = Field(default_factory=list)

    @property
    def length(self) -> int | None:
        """Summed panel height in pixels, or ``None`` if any height is unknown."""
        heights = [p.height for p in self.panels]
        if not heights or any(h is None for h in heights):
            return None
        return sum(heights)


# ---------------------------------------------------------------------------
# Posts and replies
# ---------------------------------------------------------------------------

class Poster(BaseModel):
    """Author identity of a post or reply."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    username: str = ""
    profile: str | None = None
    is_creator: bool = False


class Post(_ClientBound):
    """A top-level post or a reply.

    A top-level post has ``parent_id == id``; a reply carries the id of
    the post it answers.  Deleted posts are kept as tombstones with
    ``deleted=True`` so thread positions stay intact.
    """

    platform: Platform
    webtoon_id: int
    webtoon_type: WebtoonType
    episode: int
    id: str
    parent_id: str
    poster: Poster = Field(default_factory=Poster)
    body: str = ""
    upvotes: int = 0
    downvotes: int = 0
    reply_count: int = 0
    posted: datetime | None = None
    deleted: bool = False
    is_top: bool = False

    @property
    def is_comment(self) -> bool:
        return self.parent_id == self.id

    @property
    def is_reply(self) -> bool:
        return self.parent_id != self.id

    def replies(self) -> AsyncIterator[Post]:
        """Lazily iterate replies; empty without any request when none exist."""
        return self._require_client().replies(self)


class UserInfo(BaseModel):
    """Account behind the configured session token."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    username: str
    profile: str | None = None


# A reply is a Post whose parent_id differs from its id.
Reply = Post
