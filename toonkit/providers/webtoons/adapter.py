"""webtoons.com platform adapter.

Series metadata, episode listings, viewer pages and creator profiles are
scraped from server-rendered HTML with BeautifulSoup.  Posts and replies
come from the community JSON API (``/p/api/community/v2``), which
paginates with opaque cursors.

Episode listings are page-numbered and newest-first: page 1 holds the
latest episodes.  The adapter learns the page count from the metadata
page and walks the listing from the last page back to page 1, so the
pagination engine sees pages in ascending episode order and only has to
sort within a page.

Follows the same adapter shape as the other providers: injected
transport, ``_fetch_*`` helpers, pure parsing functions in
:mod:`~toonkit.providers.webtoons.parsers`.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError

from toonkit.interfaces.platform_adapter import IPlatformAdapter
from toonkit.interfaces.transport import HttpRequest, ITransport
from toonkit.models.entities import (
    Creator,
    CreatorProfile,
    Episode,
    EpisodeDetail,
    Panel,
    Platform,
    Post,
    Poster,
    Rating,
    UserInfo,
    Webtoon,
    WebtoonType,
)
from toonkit.models.pages import Cursor, Page, PageNumber, PageToken
from toonkit.providers.webtoons import parsers
from toonkit.providers.webtoons.schemas import (
    WireLikeResponse,
    WirePost,
    WirePostsResponse,
    WirePostsResult,
    WireUserInfo,
)
from toonkit.utils.errors import ConfigurationError, NotFoundError, ParseError, UnauthenticatedError
from toonkit.utils.logging import get_logger
from toonkit.utils.text import WEBTOONS_SEASON_PATTERNS, extract_season

PROVIDER = parsers.PROVIDER
_BASE_URL = "https://www.webtoons.com"
_LANGUAGE = "en"
_SESSION_COOKIE = "NEO_SES"
_POST_PAGE_SIZE = 100
_COMMUNITY_HEADERS = {
    "Service-Ticket-Id": "epicom",
    "Accept": "application/json",
}
_LIST_PATH_RE = re.compile(r"^/(?P<lang>[^/]+)/(?P<scope>[^/]+)/(?P<slug>[^/]+)/list/?$")


class WebtoonsAdapter(IPlatformAdapter):
    """HTML-derived adapter for webtoons.com (English site).

    Parameters
    ----------
    transport:
        Transport used for every request; normally the retrying decorator.
    base_url:
        Optional override of ``https://www.webtoons.com``.
    """

    platform = Platform.WEBTOONS

    def __init__(self, transport: ITransport, base_url: str = "") -> None:
        self._transport = transport
        self._base_url = (base_url or _BASE_URL).rstrip("/")
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return PROVIDER

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _request(self, url: str, **kwargs) -> HttpRequest:
        return HttpRequest(url=url, session_cookie=_SESSION_COOKIE, provider_name=PROVIDER, **kwargs)

    async def _fetch_html(self, request: HttpRequest) -> tuple[BeautifulSoup, httpx.Response]:
        response = await self._transport.send(request)
        return BeautifulSoup(response.text, "html.parser"), response

    async def _fetch_json(self, request: HttpRequest) -> dict:
        response = await self._transport.send(request)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError(
                "Response body is not JSON",
                provider_name=PROVIDER,
                endpoint=request.url,
            ) from exc
        if not isinstance(payload, dict):
            raise ParseError("Expected a JSON object", provider_name=PROVIDER, endpoint=request.url)
        return payload

    @staticmethod
    def _list_url(webtoon: Webtoon) -> str:
        if not webtoon.url:
            raise ConfigurationError(
                f"Webtoon {webtoon.id} has no listing URL; load it through Client.get_webtoon",
                provider_name=PROVIDER,
            )
        return webtoon.url.split("?", 1)[0]

    @staticmethod
    def _page_id(webtoon_type: WebtoonType, webtoon_id: int, number: int) -> str:
        prefix = "c" if webtoon_type is WebtoonType.CANVAS else "w"
        return f"{prefix}_{webtoon_id}_{number}"

    def _viewer_request(self, webtoon: Webtoon, number: int, **kwargs) -> HttpRequest:
        scope = urlsplit(self._list_url(webtoon)).path.split("/")[2]
        return self._request(
            f"{self._base_url}/*/{scope}/*/*/viewer",
            params={"title_no": webtoon.id, "episode_no": number},
            follow_redirects=True,
            **kwargs,
        )

    @staticmethod
    def _last_segment(url: str | None) -> str | None:
        if not url:
            return None
        return urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1] or None

    def _decode_posts(self, payload: dict, endpoint: str) -> WirePostsResult:
        status = payload.get("status")
        if status != "success":
            raise ParseError(
                f"Unexpected community API status {status!r}",
                provider_name=PROVIDER,
                field="status",
                endpoint=endpoint,
            )
        try:
            return WirePostsResponse.model_validate(payload).result
        except ValidationError as exc:
            raise ParseError(
                f"Community API response did not match the expected schema: {exc.error_count()} errors",
                provider_name=PROVIDER,
                field="result",
                endpoint=endpoint,
            ) from exc

    def _to_post(
        self,
        wire: WirePost,
        webtoon_id: int,
        webtoon_type: WebtoonType,
        episode: int,
    ) -> Post:
        deleted = wire.status == "DELETE"
        author = wire.created_by
        poster = Poster()
        if author is not None:
            poster = Poster(
                id=author.id,
                username=author.name,
                profile=self._last_segment(author.profile_url),
                is_creator=author.is_creator,
            )
        posted = None
        if wire.created_at is not None:
            posted = datetime.fromtimestamp(wire.created_at / 1000, tz=timezone.utc)
        return Post(
            platform=self.platform,
            webtoon_id=webtoon_id,
            webtoon_type=webtoon_type,
            episode=episode,
            id=wire.id,
            parent_id=wire.root_id or wire.id,
            poster=poster,
            body="" if deleted else (wire.body or ""),
            upvotes=wire.emotion_count("like"),
            downvotes=wire.emotion_count("dislike"),
            reply_count=wire.child_post_count,
            posted=posted,
            deleted=deleted,
            is_top=wire.is_pinned,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def fetch_metadata(self, webtoon_id: int, webtoon_type: WebtoonType) -> Webtoon:
        if webtoon_type is WebtoonType.BEST_CHALLENGE:
            raise NotFoundError(
                "webtoons.com has no best-challenge series",
                provider_name=PROVIDER,
                resource=f"{webtoon_type.value}/{webtoon_id}",
            )

        # Wildcard path segments; the site redirects to the canonical listing.
        scope = "canvas" if webtoon_type is WebtoonType.CANVAS else "*"
        request = self._request(
            f"{self._base_url}/{_LANGUAGE}/{scope}/*/list",
            params={"title_no": webtoon_id},
            follow_redirects=True,
        )
        soup, response = await self._fetch_html(request)
        endpoint = str(response.url)

        match = _LIST_PATH_RE.match(response.url.path)
        if match is None:
            raise ParseError(
                f"Unexpected listing path {response.url.path!r}",
                provider_name=PROVIDER,
                field="url",
                endpoint=endpoint,
            )
        if (match["scope"] == "canvas") != (webtoon_type is WebtoonType.CANVAS):
            raise NotFoundError(
                f"Webtoon {webtoon_id} is not a {webtoon_type.value} series",
                provider_name=PROVIDER,
                resource=f"{webtoon_type.value}/{webtoon_id}",
            )

        title = parsers.parse_title(soup, endpoint)
        genres = parsers.parse_genres(soup, endpoint)
        pages = parsers.parse_episode_pages(soup, endpoint)
        views, subscribers = parsers.parse_counts(soup)
        schedule, completed = parsers.parse_schedule(soup)
        thumbnail, banner = parsers.parse_images(soup)
        creators = [
            Creator(platform=self.platform, username=username, profile=profile)
            for username, profile in parsers.parse_creators(soup)
        ]

        webtoon = Webtoon(
            platform=self.platform,
            id=webtoon_id,
            type=webtoon_type,
            title=title,
            creators=creators,
            genres=genres,
            completed=completed,
            summary=parsers.parse_summary(soup),
            views=views,
            subscribers=subscribers,
            schedule=schedule,
            thumbnail=thumbnail,
            banner=banner,
            url=(
                f"{self._base_url}/{match['lang']}/{match['scope']}/{match['slug']}"
                f"/list?title_no={webtoon_id}"
            ),
            episode_pages=pages,
            rating=parsers.parse_rating(soup),
        )
        self._logger.debug(
            "webtoon_metadata_parsed",
            webtoon_id=webtoon_id,
            title=title,
            episode_pages=pages,
        )
        return webtoon

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def first_episode_token(self, webtoon: Webtoon) -> PageToken:
        pages = webtoon.episode_pages
        if pages is None:
            request = self._request(self._list_url(webtoon), params={"title_no": webtoon.id})
            soup, response = await self._fetch_html(request)
            pages = parsers.parse_episode_pages(soup, str(response.url))
        return PageNumber(max(pages, 1), step=-1, stop=1)

    async def fetch_episode_page(self, webtoon: Webtoon, token: PageToken) -> Page[Episode]:
        if not isinstance(token, PageNumber):
            raise TypeError(f"Episode listings are page-numbered, got {token!r}")
        request = self._request(
            self._list_url(webtoon),
            params={"title_no": webtoon.id, "page": token.number},
        )
        soup, response = await self._fetch_html(request)
        rows = parsers.parse_episode_rows(soup, str(response.url))
        episodes = [
            Episode(
                platform=self.platform,
                webtoon_id=webtoon.id,
                webtoon_type=webtoon.type,
                number=row["number"],
                title=row["title"],
                season=extract_season(row["title"], WEBTOONS_SEASON_PATTERNS),
                published=row["published"],
                thumbnail=row["thumbnail"],
                webtoon_url=webtoon.url,
            )
            for row in rows
        ]
        return Page(items=episodes)

    def first_post_token(self) -> PageToken:
        return Cursor()

    async def fetch_post_page(self, episode: Episode, token: PageToken) -> Page[Post]:
        if not isinstance(token, Cursor):
            raise TypeError(f"Posts are cursor-paginated, got {token!r}")
        request = self._request(
            f"{self._base_url}/p/api/community/v2/posts",
            params={
                "pageId": self._page_id(episode.webtoon_type, episode.webtoon_id, episode.number),
                "pinRepresentation": "none",
                "prevSize": 0,
                "nextSize": _POST_PAGE_SIZE,
                "cursor": token.value or "",
                "withCursor": "true",
            },
            headers=_COMMUNITY_HEADERS,
        )
        result = self._decode_posts(await self._fetch_json(request), request.url)
        posts = [
            self._to_post(wire, episode.webtoon_id, episode.webtoon_type, episode.number)
            for wire in result.posts
        ]
        return Page(items=posts, cursor=result.pagination.next, page_size=_POST_PAGE_SIZE)

    def first_reply_token(self) -> PageToken:
        return Cursor()

    async def fetch_reply_page(self, post: Post, token: PageToken) -> Page[Post]:
        if not isinstance(token, Cursor):
            raise TypeError(f"Replies are cursor-paginated, got {token!r}")
        request = self._request(
            f"{self._base_url}/p/api/community/v2/post/{post.id}/child-posts",
            params={
                "sort": "oldest",
                "displayBlindCommentAsService": "false",
                "prevSize": 0,
                "nextSize": _POST_PAGE_SIZE,
                "cursor": token.value or "",
                "withCursor": "false",
            },
            headers=_COMMUNITY_HEADERS,
        )
        result = self._decode_posts(await self._fetch_json(request), request.url)
        replies = [
            self._to_post(wire, post.webtoon_id, post.webtoon_type, post.episode)
            for wire in result.posts
        ]
        return Page(items=replies, cursor=result.pagination.next, page_size=_POST_PAGE_SIZE)

    # ------------------------------------------------------------------
    # Supplementary lookups
    # ------------------------------------------------------------------

    async def fetch_creator(self, profile: str) -> CreatorProfile:
        request = self._request(
            f"{self._base_url}/p/community/{_LANGUAGE}/u/{profile}",
            pass_statuses=frozenset({400}),
        )
        soup, response = await self._fetch_html(request)
        if response.status_code == 400:
            self._logger.debug("creator_profile_disabled", profile=profile)
            return CreatorProfile(platform=self.platform, profile=profile, disabled=True)

        fields = parsers.parse_creator_page(soup, str(response.url))
        return CreatorProfile(platform=self.platform, profile=profile, **fields)

    async def fetch_episode(self, webtoon: Webtoon, number: int) -> Episode | None:
        # The posts API answers 404 for episodes that do not exist, including
        # ones the listing hides; the viewer then tells published from locked.
        page_id = self._page_id(webtoon.type, webtoon.id, number)
        request = self._request(
            f"{self._base_url}/p/api/community/v2/posts",
            params={"pageId": page_id, "pinRepresentation": "none", "prevSize": 0, "nextSize": 1},
            headers=_COMMUNITY_HEADERS,
            pass_statuses=frozenset({404}),
        )
        response = await self._transport.send(request)
        if response.status_code == 404:
            self._logger.debug("episode_not_found", webtoon_id=webtoon.id, number=number)
            return None

        soup, viewer = await self._fetch_html(
            self._viewer_request(webtoon, number, pass_statuses=frozenset({404}))
        )
        viewable = viewer.status_code != 404 and viewer.url.path.endswith("/viewer")
        title = (parsers.parse_viewer_title(soup) if viewable else None) or ""
        return Episode(
            platform=self.platform,
            webtoon_id=webtoon.id,
            webtoon_type=webtoon.type,
            number=number,
            title=title,
            season=extract_season(title, WEBTOONS_SEASON_PATTERNS),
            is_published=viewable,
            webtoon_url=webtoon.url,
        )

    async def fetch_episode_likes(self, episode: Episode) -> int:
        request = self._request(
            f"{self._base_url}/api/v1/like/search/counts",
            params={
                "serviceId": "LINEWEBTOON",
                "contentIds": self._page_id(episode.webtoon_type, episode.webtoon_id, episode.number),
            },
            headers={"Accept": "application/json"},
        )
        payload = await self._fetch_json(request)
        try:
            return WireLikeResponse.model_validate(payload).count
        except ValidationError as exc:
            raise ParseError(
                "Like count response did not match the expected schema",
                provider_name=PROVIDER,
                field="result",
                endpoint=request.url,
            ) from exc

    async def fetch_episode_rating(self, episode: Episode) -> Rating | None:
        # webtoons.com rates series, not episodes.
        return None

    async def fetch_episode_detail(self, webtoon: Webtoon, number: int) -> EpisodeDetail:
        soup, response = await self._fetch_html(self._viewer_request(webtoon, number))
        fields = parsers.parse_viewer(soup, str(response.url))
        return EpisodeDetail(
            platform=self.platform,
            webtoon_id=webtoon.id,
            webtoon_type=webtoon.type,
            number=number,
            title=fields["title"],
            note=fields["note"],
            panels=[Panel(**panel) for panel in fields["panels"]],
        )

    async def fetch_user_info(self) -> UserInfo:
        request = self._request(
            f"{self._base_url}/{_LANGUAGE}/member/userInfo",
            headers={"Accept": "application/json"},
            requires_session=True,
        )
        payload = await self._fetch_json(request)
        try:
            info = WireUserInfo.model_validate(payload)
        except ValidationError as exc:
            raise ParseError(
                "User info response did not match the expected schema",
                provider_name=PROVIDER,
                endpoint=request.url,
            ) from exc
        if not info.login_user or not info.nickname:
            raise UnauthenticatedError("Session was rejected by webtoons.com", provider_name=PROVIDER)
        return UserInfo(
            platform=self.platform,
            username=info.nickname,
            profile=self._last_segment(info.profile_url),
        )
