"""comic.naver.com platform adapter.

Everything except the viewer and creator pages is JSON:

* series metadata -- ``/api/article/list/info``
* episode listings -- ``/api/article/list`` (page-numbered, ascending)
* comments and replies -- the cbox comment API on ``apis.naver.com``,
  JSONP-wrapped and page-numbered
* episode ratings -- ``/api/userAction/info``
* like counts -- ``route-like.naver.com``

Upcoming and paid-preview episodes are listed separately
(``chargeFolderArticleList``) and are only emitted with the final listing
page, so the stream stays in ascending episode order.
"""

from __future__ import annotations

import json
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

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
from toonkit.models.pages import Page, PageNumber, PageToken
from toonkit.providers.naver.schemas import (
    WireArticle,
    WireArticleList,
    WireComment,
    WireCommentResponse,
    WireLikeResponse,
    WireTitleInfo,
    WireUserAction,
)
from toonkit.utils.errors import NotFoundError, ParseError, UnauthenticatedError
from toonkit.utils.logging import get_logger
from toonkit.utils.text import NAVER_SEASON_PATTERNS, collapse_whitespace, extract_season, strip_jsonp

PROVIDER = "naver"
_BASE_URL = "https://comic.naver.com"
_COMMENT_URL = "https://apis.naver.com/commentBox/cbox/web_naver_list_jsonp.json"
_LIKE_URL = "https://route-like.naver.com/v1/search/contents"
_EPISODE_PAGE_SIZE = 20
_COMMENT_PAGE_SIZE = 100

_LEVEL_CODES = {
    "WEBTOON": WebtoonType.ORIGINAL,
    "BEST_CHALLENGE": WebtoonType.BEST_CHALLENGE,
    "CHALLENGE": WebtoonType.CANVAS,
}
_LIST_PATHS = {
    WebtoonType.ORIGINAL: "webtoon",
    WebtoonType.BEST_CHALLENGE: "bestChallenge",
    WebtoonType.CANVAS: "challenge",
}


class NaverAdapter(IPlatformAdapter):
    """JSON-API adapter for comic.naver.com.

    Parameters
    ----------
    transport:
        Transport used for every request; normally the retrying decorator.
    base_url:
        Optional override of ``https://comic.naver.com``.  The comment API
        lives on a separate host and is not affected.
    """

    platform = Platform.NAVER

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
        return HttpRequest(url=url, provider_name=PROVIDER, **kwargs)

    @staticmethod
    def _decode(model: type[BaseModel], payload: object, endpoint: str):
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ParseError(
                f"{model.__name__} did not match the response: {exc.error_count()} errors",
                provider_name=PROVIDER,
                field=model.__name__,
                endpoint=endpoint,
            ) from exc

    async def _fetch_json(self, request: HttpRequest) -> object:
        response = await self._transport.send(request)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError("Response body is not JSON", provider_name=PROVIDER, endpoint=request.url) from exc

    async def _fetch_jsonp(self, request: HttpRequest) -> object:
        response = await self._transport.send(request)
        body = strip_jsonp(response.text)
        if body is None:
            raise ParseError("Response is not JSONP-wrapped", provider_name=PROVIDER, endpoint=request.url)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ParseError("JSONP payload is not JSON", provider_name=PROVIDER, endpoint=request.url) from exc

    async def _fetch_comments(self, params: dict, endpoint_label: str) -> WireCommentResponse:
        request = self._request(
            _COMMENT_URL,
            params={
                "ticket": "comic",
                "pool": "cbox3",
                "lang": "ko",
                "country": "KR",
                "indexSize": 10,
                **params,
            },
            headers={"Referer": f"{_BASE_URL}/"},
        )
        payload = await self._fetch_jsonp(request)
        if not isinstance(payload, dict) or payload.get("success") is not True:
            raise ParseError(
                "Comment API did not report success",
                provider_name=PROVIDER,
                field="success",
                endpoint=endpoint_label,
            )
        return self._decode(WireCommentResponse, payload, endpoint_label)

    @staticmethod
    def _profile_slug(url: str | None) -> str | None:
        if not url or "/community/u/" not in url:
            return None
        return urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1] or None

    def _to_post(self, wire: WireComment, webtoon_id: int, webtoon_type: WebtoonType, episode: int) -> Post:
        return Post(
            platform=self.platform,
            webtoon_id=webtoon_id,
            webtoon_type=webtoon_type,
            episode=episode,
            id=wire.comment_no,
            parent_id=wire.parent_comment_no or wire.comment_no,
            poster=Poster(
                id=wire.poster_id,
                username=wire.user_name or "",
                profile=wire.profile_user_id,
                is_creator=wire.manager,
            ),
            body="" if wire.deleted else (wire.contents or ""),
            upvotes=wire.sympathy_count,
            downvotes=wire.antipathy_count,
            reply_count=wire.reply_count,
            posted=wire.reg_time_gmt,
            deleted=wire.deleted,
            is_top=wire.best,
        )

    def _to_episode(self, webtoon: Webtoon, article: WireArticle, published: bool) -> Episode:
        return Episode(
            platform=self.platform,
            webtoon_id=webtoon.id,
            webtoon_type=webtoon.type,
            number=article.no,
            title=article.subtitle,
            season=extract_season(article.subtitle, NAVER_SEASON_PATTERNS),
            published=article.published if published else None,
            thumbnail=article.thumbnail_url,
            is_published=published,
            webtoon_url=webtoon.url,
            rating=article.star_score,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def fetch_metadata(self, webtoon_id: int, webtoon_type: WebtoonType) -> Webtoon:
        endpoint = f"{self._base_url}/api/article/list/info"
        payload = await self._fetch_json(self._request(endpoint, params={"titleId": webtoon_id}))
        info: WireTitleInfo = self._decode(WireTitleInfo, payload, endpoint)

        actual_type = _LEVEL_CODES.get(info.webtoon_level_code or "", webtoon_type)
        if actual_type is not webtoon_type:
            raise NotFoundError(
                f"Webtoon {webtoon_id} is a {actual_type.value} series, not {webtoon_type.value}",
                provider_name=PROVIDER,
                resource=f"{webtoon_type.value}/{webtoon_id}",
            )

        params = info.gfp_ad_custom_param
        genres = (params.rank_genre_types or params.genre_types) if params is not None else []
        webtoon = Webtoon(
            platform=self.platform,
            id=webtoon_id,
            type=webtoon_type,
            title=info.title_name,
            creators=[
                Creator(
                    platform=self.platform,
                    username=artist.name,
                    profile=self._profile_slug(artist.profile_page_url),
                )
                for artist in info.community_artists
            ],
            genres=list(genres),
            completed=info.finished,
            summary=collapse_whitespace(info.synopsis) if info.synopsis else None,
            subscribers=info.favorite_count,
            schedule=[day.upper() for day in info.publish_day_of_week_list],
            thumbnail=info.thumbnail_url,
            on_hiatus=info.rest,
            url=f"{self._base_url}/{_LIST_PATHS[webtoon_type]}/list?titleId={webtoon_id}",
        )
        self._logger.debug("webtoon_metadata_parsed", webtoon_id=webtoon_id, title=webtoon.title)
        return webtoon

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def first_episode_token(self, webtoon: Webtoon) -> PageToken:
        return PageNumber(1)

    async def fetch_episode_page(self, webtoon: Webtoon, token: PageToken) -> Page[Episode]:
        if not isinstance(token, PageNumber):
            raise TypeError(f"Episode listings are page-numbered, got {token!r}")
        endpoint = f"{self._base_url}/api/article/list"
        payload = await self._fetch_json(
            self._request(endpoint, params={"titleId": webtoon.id, "page": token.number, "sort": "ASC"})
        )
        listing: WireArticleList = self._decode(WireArticleList, payload, endpoint)

        total_pages = listing.page_info.total_pages if listing.page_info else None
        last = (total_pages is not None and token.number >= total_pages) or not listing.article_list
        episodes = [self._to_episode(webtoon, article, True) for article in listing.article_list]
        if last:
            episodes.extend(
                self._to_episode(webtoon, article, False)
                for article in listing.charge_folder_article_list
            )
        return Page(items=episodes, page_size=_EPISODE_PAGE_SIZE, last=last)

    def first_post_token(self) -> PageToken:
        return PageNumber(1)

    async def fetch_post_page(self, episode: Episode, token: PageToken) -> Page[Post]:
        if not isinstance(token, PageNumber):
            raise TypeError(f"Comments are page-numbered, got {token!r}")
        response = await self._fetch_comments(
            {
                "objectId": f"{episode.webtoon_id}_{episode.number}",
                "pageSize": _COMMENT_PAGE_SIZE,
                "page": token.number,
                "sort": "NEW",
            },
            endpoint_label=f"comments:{episode.webtoon_id}_{episode.number}",
        )
        result = response.result
        posts = [
            self._to_post(wire, episode.webtoon_id, episode.webtoon_type, episode.number)
            for wire in result.comment_list
        ]
        last = token.number >= result.page_model.total_pages
        return Page(items=posts, page_size=_COMMENT_PAGE_SIZE, last=last)

    def first_reply_token(self) -> PageToken:
        return PageNumber(1)

    async def fetch_reply_page(self, post: Post, token: PageToken) -> Page[Post]:
        if not isinstance(token, PageNumber):
            raise TypeError(f"Replies are page-numbered, got {token!r}")
        response = await self._fetch_comments(
            {
                "objectId": f"{post.webtoon_id}_{post.episode}",
                "parentCommentNo": post.id,
                "pageSize": _COMMENT_PAGE_SIZE,
                "page": token.number,
                "sort": "NEW",
            },
            endpoint_label=f"replies:{post.id}",
        )
        result = response.result
        # Drop the parent comment if the listing echoes it.
        replies = [
            self._to_post(wire, post.webtoon_id, post.webtoon_type, post.episode)
            for wire in result.comment_list
            if wire.comment_no != post.id
        ]
        last = token.number >= result.page_model.total_pages
        return Page(items=replies, page_size=_COMMENT_PAGE_SIZE, last=last)

    # ------------------------------------------------------------------
    # Supplementary lookups
    # ------------------------------------------------------------------

    async def fetch_creator(self, profile: str) -> CreatorProfile:
        request = self._request(
            f"{self._base_url}/community/u/{profile}",
            pass_statuses=frozenset({400}),
        )
        response = await self._transport.send(request)
        if response.status_code == 400:
            self._logger.debug("creator_profile_disabled", profile=profile)
            return CreatorProfile(platform=self.platform, profile=profile, disabled=True)

        soup = BeautifulSoup(response.text, "html.parser")
        author = soup.select_one('head>meta[name="author"]')
        username = collapse_whitespace(author.get("content", "")) if author is not None else ""
        if not username:
            raise ParseError(
                "Creator page has no author meta tag",
                provider_name=PROVIDER,
                field="creator.username",
                endpoint=str(response.url),
            )
        return CreatorProfile(platform=self.platform, profile=profile, username=username)

    async def fetch_episode(self, webtoon: Webtoon, number: int) -> Episode | None:
        if number < 1:
            return None
        # Ascending listing: episode N sits on page ceil(N / page size).
        token = PageNumber((number - 1) // _EPISODE_PAGE_SIZE + 1)
        page = await self.fetch_episode_page(webtoon, token)
        for episode in page.items:
            if episode.number == number:
                return episode
        self._logger.debug("episode_not_found", webtoon_id=webtoon.id, number=number)
        return None

    async def fetch_episode_likes(self, episode: Episode) -> int:
        request = self._request(
            _LIKE_URL,
            params={"q": f"COMIC[{episode.webtoon_id}_{episode.number}]"},
            headers={"Referer": f"{_BASE_URL}/"},
        )
        payload = await self._fetch_json(request)
        likes: WireLikeResponse = self._decode(WireLikeResponse, payload, request.url)
        return likes.count

    async def fetch_episode_rating(self, episode: Episode) -> Rating | None:
        endpoint = f"{self._base_url}/api/userAction/info"
        request = self._request(
            endpoint,
            params={"titleId": episode.webtoon_id, "no": episode.number},
            pass_statuses=frozenset({404}),
        )
        response = await self._transport.send(request)
        if response.status_code == 404:
            # Paid episodes have no rating endpoint; the listing score is all there is.
            if episode.rating is None:
                return None
            return Rating(score=episode.rating)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError("Response body is not JSON", provider_name=PROVIDER, endpoint=endpoint) from exc
        action: WireUserAction = self._decode(WireUserAction, payload, endpoint)
        return Rating(score=action.star_info.average_star_score, raters=action.star_info.star_score_count)

    async def fetch_episode_detail(self, webtoon: Webtoon, number: int) -> EpisodeDetail:
        # Unavailable episodes redirect instead of returning 404.
        request = self._request(
            f"{self._base_url}/{_LIST_PATHS[webtoon.type]}/detail",
            params={"titleId": webtoon.id, "no": number},
        )
        response: httpx.Response = await self._transport.send(request)
        if response.is_redirect:
            raise NotFoundError(
                f"Episode {number} of {webtoon.id} is not viewable",
                provider_name=PROVIDER,
                resource=f"{webtoon.id}/{number}",
            )

        soup = BeautifulSoup(response.text, "html.parser")
        panels = [
            Panel(url=image["src"], width=_as_int(image.get("width")), height=_as_int(image.get("height")))
            for image in soup.select("div.wt_viewer>img")
            if image.get("src")
        ]
        if not panels:
            raise ParseError(
                "Selector `div.wt_viewer>img` matched nothing",
                provider_name=PROVIDER,
                field="panels",
                endpoint=str(response.url),
            )
        title = soup.select_one('meta[property="og:description"]')
        return EpisodeDetail(
            platform=self.platform,
            webtoon_id=webtoon.id,
            webtoon_type=webtoon.type,
            number=number,
            title=title.get("content") if title is not None else None,
            panels=panels,
        )

    async def fetch_user_info(self) -> UserInfo:
        raise UnauthenticatedError(
            "comic.naver.com session lookups are not supported",
            provider_name=PROVIDER,
        )


def _as_int(value: str | None) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
