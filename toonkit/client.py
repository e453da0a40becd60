"""Client facade: one transport, one adapter and one entity cache per platform.

Assembles the component graph the way an application entry point would:

* ``HttpxTransport`` (rate limiting, session gate, status classification)
  wrapped in ``RetryingTransport`` (bounded exponential backoff);
* the platform adapter selected from a closed set of platforms;
* an ``EntityCache`` shared by every entity the client hands out;
* a ``PaginationEngine`` that binds yielded entities back to the client.

Usage::

    async with Client("webtoons") as client:
        webtoon = await client.get_webtoon(95, WebtoonType.ORIGINAL)
        async for episode in webtoon.episodes():
            ...
"""

from __future__ import annotations

from typing import Any, AsyncIterator

import httpx

from toonkit.config.settings import ClientSettings
from toonkit.interfaces.platform_adapter import IPlatformAdapter
from toonkit.interfaces.transport import ITransport
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
from toonkit.providers.cache.entity_cache import EntityCache
from toonkit.providers.naver.adapter import NaverAdapter
from toonkit.providers.transport.httpx_transport import HttpxTransport
from toonkit.providers.transport.retry import RetryingTransport
from toonkit.providers.webtoons.adapter import WebtoonsAdapter
from toonkit.services.pagination import PaginationEngine
from toonkit.utils.concurrency import throttled_gather
from toonkit.utils.errors import ConfigurationError, NotFoundError, UnauthenticatedError
from toonkit.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

_ADAPTERS: dict[Platform, type[IPlatformAdapter]] = {
    Platform.WEBTOONS: WebtoonsAdapter,
    Platform.NAVER: NaverAdapter,
}


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _coerce_platform(platform: Platform | str) -> Platform:
    try:
        return Platform(platform)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown platform {platform!r}") from exc


def _build_transport(http_client: httpx.AsyncClient, settings: ClientSettings) -> ITransport:
    """Wrap the raw HTTP transport in the retry policy from *settings*."""
    return RetryingTransport(
        HttpxTransport(http_client, settings),
        max_attempts=settings.max_attempts,
        base_delay=settings.backoff_base,
        max_delay=settings.backoff_max,
    )


def _build_adapter(platform: Platform, transport: ITransport, settings: ClientSettings) -> IPlatformAdapter:
    """Select the adapter for *platform*; unknown platforms are a configuration error."""
    adapter_cls = _ADAPTERS.get(platform)
    if adapter_cls is None:
        raise ConfigurationError(f"No adapter registered for platform {platform!r}")
    return adapter_cls(transport, base_url=settings.base_url)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class Client:
    """Entry point for reading one platform.

    Parameters
    ----------
    platform:
        ``Platform.WEBTOONS`` / ``Platform.NAVER`` or their string values.
    settings:
        Client settings; defaults to ``ClientSettings()`` (environment and
        ``.env`` aware).  With ``configure_logs`` set, the client applies
        ``log_level`` and ``app_env`` to the structlog setup.
    http_client:
        Optional pre-configured ``httpx.AsyncClient``.  An injected client
        is left open by :meth:`aclose`; one created here is closed.
    transport:
        Optional transport replacing the default retrying httpx stack.
    adapter:
        Optional adapter replacing the platform's default one.
    """

    def __init__(
        self,
        platform: Platform | str,
        settings: ClientSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        *,
        transport: ITransport | None = None,
        adapter: IPlatformAdapter | None = None,
    ) -> None:
        self._platform = _coerce_platform(platform)
        self._settings = settings or ClientSettings()
        if self._settings.configure_logs:
            configure_logging(log_level=self._settings.log_level, app_env=self._settings.app_env)
        self._owns_transport = transport is None and http_client is None

        if transport is None:
            if http_client is None:
                http_client = httpx.AsyncClient(timeout=self._settings.request_timeout)
            transport = _build_transport(http_client, self._settings)
        self._transport = transport

        self._adapter = adapter or _build_adapter(self._platform, transport, self._settings)
        self._cache = EntityCache()
        self._pagination = PaginationEngine(self._adapter, bind=self._bind)
        self._closed = False

        logger.info(
            "client_created",
            platform=self._platform.value,
            provider=self._adapter.get_provider_name(),
            has_session=self.has_session,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def cache(self) -> EntityCache:
        return self._cache

    @property
    def has_session(self) -> bool:
        return self._transport.has_session

    # ------------------------------------------------------------------
    # Cached lookups
    # ------------------------------------------------------------------

    def _key(self, kind: str, *identity: Any) -> tuple:
        return (self._platform.value, kind, *identity)

    def _bind(self, entity: Any) -> Any:
        entity.bind(self)
        if isinstance(entity, Webtoon):
            for creator in entity.creators:
                creator.bind(self)
        return entity

    async def get_webtoon(
        self,
        webtoon_id: int,
        webtoon_type: WebtoonType | str = WebtoonType.ORIGINAL,
    ) -> Webtoon:
        """Return the Webtoon identified by ``(webtoon_id, webtoon_type)``.

        Fetched once per client; later calls return the same instance.

        Raises
        ------
        NotFoundError
            If the series does not exist on this platform.
        """
        webtoon_type = WebtoonType(webtoon_type)

        async def fetch() -> Webtoon:
            webtoon = await self._adapter.fetch_metadata(webtoon_id, webtoon_type)
            return self._bind(webtoon)

        return await self._cache.get_or_fetch(self._key("webtoon", webtoon_id, webtoon_type.value), fetch)

    async def try_get_webtoon(
        self,
        webtoon_id: int,
        webtoon_type: WebtoonType | str = WebtoonType.ORIGINAL,
    ) -> Webtoon | None:
        """Like :meth:`get_webtoon` but returns ``None`` for a missing series."""
        try:
            return await self.get_webtoon(webtoon_id, webtoon_type)
        except NotFoundError:
            return None

    async def get_webtoons(
        self,
        webtoon_ids: list[int],
        webtoon_type: WebtoonType | str = WebtoonType.ORIGINAL,
    ) -> list[Webtoon | None]:
        """Fetch several series concurrently, in input order.

        Missing series come back as ``None``; any other failure is raised.
        """
        results = await throttled_gather(
            [self.get_webtoon(webtoon_id, webtoon_type) for webtoon_id in webtoon_ids],
            limit=self._settings.max_concurrent_requests,
        )
        webtoons: list[Webtoon | None] = []
        for result in results:
            if isinstance(result, NotFoundError):
                webtoons.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                webtoons.append(result)
        return webtoons

    async def get_creator(self, profile: str) -> CreatorProfile:
        """Return the community profile page for *profile* (cached)."""

        async def fetch() -> CreatorProfile:
            return await self._adapter.fetch_creator(profile)

        return await self._cache.get_or_fetch(self._key("creator", profile), fetch)

    async def episode_detail(self, episode: Episode) -> EpisodeDetail:
        """Return the viewer page of *episode* (cached per episode)."""

        async def fetch() -> EpisodeDetail:
            webtoon = await self.get_webtoon(episode.webtoon_id, episode.webtoon_type)
            return await self._adapter.fetch_episode_detail(webtoon, episode.number)

        key = self._key("episode", episode.webtoon_id, episode.webtoon_type.value, episode.number)
        return await self._cache.get_or_fetch(key, fetch)

    async def user_info(self) -> UserInfo:
        """Return the account behind the session token.

        Raises
        ------
        UnauthenticatedError
            Without a session token (no request is made) or when the
            platform rejects it.
        """
        if not self.has_session:
            raise UnauthenticatedError(
                "user_info requires a session token",
                provider_name=self._adapter.get_provider_name(),
            )

        async def fetch() -> UserInfo:
            return await self._adapter.fetch_user_info()

        return await self._cache.get_or_fetch(self._key("user_info"), fetch)

    def evict(self, entity: Webtoon | CreatorProfile | EpisodeDetail | UserInfo) -> bool:
        """Drop *entity* from the cache so the next lookup refetches it."""
        if isinstance(entity, Webtoon):
            key = self._key("webtoon", entity.id, entity.type.value)
        elif isinstance(entity, CreatorProfile):
            key = self._key("creator", entity.profile)
        elif isinstance(entity, EpisodeDetail):
            key = self._key("episode", entity.webtoon_id, entity.webtoon_type.value, entity.number)
        elif isinstance(entity, UserInfo):
            key = self._key("user_info")
        else:
            raise TypeError(f"{type(entity).__name__} is not a cached entity")
        evicted = self._cache.evict(key)
        logger.debug("cache_evicted", key=key, evicted=evicted)
        return evicted

    # ------------------------------------------------------------------
    # Uncached lookups
    # ------------------------------------------------------------------

    # Like counts move constantly; neither they nor direct episode lookups are cached.

    async def episode(self, webtoon: Webtoon, number: int) -> Episode | None:
        """Look up episode *number* of *webtoon*; ``None`` if it does not exist."""
        episode = await self._adapter.fetch_episode(webtoon, number)
        return self._bind(episode) if episode is not None else None

    async def episode_likes(self, episode: Episode) -> int:
        """Current like count of *episode*."""
        return await self._adapter.fetch_episode_likes(episode)

    async def episode_rating(self, episode: Episode) -> Rating | None:
        """Star rating of *episode*; ``None`` on platforms without episode ratings."""
        return await self._adapter.fetch_episode_rating(episode)

    async def webtoon_likes(self, webtoon: Webtoon) -> int:
        """Sum of the like counts of every listed episode of *webtoon*."""
        episodes = [episode async for episode in self.episodes(webtoon)]
        counts = await throttled_gather(
            [self.episode_likes(episode) for episode in episodes],
            limit=self._settings.max_concurrent_requests,
            return_exceptions=False,
        )
        total = sum(counts)
        logger.debug("webtoon_likes_summed", webtoon_id=webtoon.id, episodes=len(episodes), likes=total)
        return total

    async def webtoon_rating(self, webtoon: Webtoon) -> float | None:
        """The series rating, else the mean of the rated episodes' scores.

        webtoons.com shows a series score on the listing page.  Naver only
        rates episodes, so the mean is taken over the listing's scores
        without any per-episode request.
        """
        if webtoon.rating is not None:
            return webtoon.rating
        scores = [episode.rating async for episode in self.episodes(webtoon) if episode.rating is not None]
        if not scores:
            return None
        return sum(scores) / len(scores)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def episodes(self, webtoon: Webtoon) -> AsyncIterator[Episode]:
        """Every episode of *webtoon*, ascending by number."""
        return self._pagination.episodes(webtoon)

    def posts(self, episode: Episode) -> AsyncIterator[Post]:
        """Top-level posts of *episode*."""
        return self._pagination.posts(episode)

    def replies(self, post: Post) -> AsyncIterator[Post]:
        """Replies to *post*; empty without a request when it has none."""
        return self._pagination.replies(post)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Release the HTTP client if this Client created it."""
        if self._closed:
            return
        self._closed = True
        if self._owns_transport:
            await self._transport.aclose()
        logger.info("client_closed", platform=self._platform.value)

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
