"""Unit tests for the comic.naver.com adapter (JSON API + JSONP comments)."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from toonkit.models.entities import Episode, Platform, Post, Rating, Webtoon, WebtoonType
from toonkit.models.pages import PageNumber
from toonkit.providers.naver.adapter import NaverAdapter
from toonkit.providers.naver.schemas import KST
from toonkit.providers.transport.httpx_transport import HttpxTransport
from toonkit.services.pagination import PaginationEngine
from toonkit.utils.errors import NotFoundError, ParseError, UnauthenticatedError

TITLE_ID = 183559

INFO = {
    "titleId": TITLE_ID,
    "titleName": "신의 탑",
    "thumbnailUrl": "https://image-comic.pstatic.net/thumb.jpg",
    "webtoonLevelCode": "WEBTOON",
    "finished": False,
    "rest": True,
    "publishDayOfWeekList": ["sunday"],
    "synopsis": "탑을\n   오르는 이야기",
    "favoriteCount": 1_234_567,
    "communityArtists": [
        {"name": "SIU", "profilePageUrl": "https://comic.naver.com/community/u/_siu"},
        {"name": "Helper"},
    ],
    "gfpAdCustomParam": {"genreTypes": ["FANTASY"], "rankGenreTypes": ["FANTASY", "ACTION"]},
}


def _article(number: int, subtitle: str | None = None) -> dict:
    return {
        "no": number,
        "subtitle": subtitle or f"{number}화",
        "serviceDateDescription": "24.05.05",
        "thumbnailUrl": f"https://image-comic.pstatic.net/{number}.jpg",
        "starScore": 9.9,
    }


def _comment(number: int, parent: int | None = None, **overrides) -> dict:
    comment = {
        "commentNo": number,
        "parentCommentNo": parent or number,
        "contents": f"comment {number}",
        "deleted": False,
        "regTimeGmt": "2024-05-05T12:34:56+0000",
        "replyCount": 0,
        "sympathyCount": 5,
        "antipathyCount": 1,
        "userName": "reader",
        "idNo": "abc",
        "profileUserId": "reader1",
        "manager": False,
        "best": False,
    }
    comment.update(overrides)
    return comment


def _jsonp(payload: dict) -> httpx.Response:
    return httpx.Response(200, text=f"_callback({json.dumps(payload)});")


def _comments(comments: list[dict], total_pages: int = 1, page: int = 1) -> httpx.Response:
    return _jsonp(
        {
            "success": True,
            "result": {"commentList": comments, "pageModel": {"page": page, "totalPages": total_pages}},
        }
    )


# ======================================================================
# Mock site
# ======================================================================


def _site(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    params = request.url.params

    if path == "/api/article/list/info":
        if params.get("titleId") == str(TITLE_ID):
            return httpx.Response(200, json=INFO)
        if params.get("titleId") == "2":
            return httpx.Response(200, json={**INFO, "titleId": 2, "webtoonLevelCode": "CHALLENGE", "rest": False})
        if params.get("titleId") == "3":
            return httpx.Response(200, json={"titleId": 3})
        return httpx.Response(404)

    if path == "/api/article/list":
        if params.get("page") == "1":
            return httpx.Response(
                200,
                json={
                    "articleList": [_article(n) for n in range(1, 21)],
                    "chargeFolderArticleList": [_article(23), _article(24)],
                    "pageInfo": {"page": 1, "totalPages": 2},
                },
            )
        return httpx.Response(
            200,
            json={
                "articleList": [_article(21), _article(22, "2부 1화")],
                "chargeFolderArticleList": [_article(23), _article(24)],
                "pageInfo": {"page": 2, "totalPages": 2},
            },
        )

    if path == "/commentBox/cbox/web_naver_list_jsonp.json":
        parent = params.get("parentCommentNo")
        if parent == "1":
            # The reply listing echoes the parent first.
            return _comments([_comment(1, replyCount=2), _comment(201, parent=1), _comment(202, parent=1)])
        if params.get("objectId") == f"{TITLE_ID}_2":
            page = int(params.get("page", "1"))
            start = (page - 1) * 100
            size = 100 if page == 1 else 7
            return _comments([_comment(start + i + 1) for i in range(size)], total_pages=2, page=page)
        if params.get("objectId") == f"{TITLE_ID}_9":
            return _jsonp({"success": False, "message": "blocked"})
        return _comments(
            [
                _comment(1, replyCount=2, best=True),
                _comment(2, deleted=True, contents="gone"),
            ]
        )

    if path == "/api/userAction/info":
        if params.get("no") == "1":
            return httpx.Response(
                200, json={"starInfo": {"averageStarScore": 9.97, "starScoreCount": 4321, "isStarScored": False}}
            )
        if params.get("no") == "6":
            return httpx.Response(200, json={"starInfo": {}})
        return httpx.Response(404)

    if path == "/v1/search/contents":
        if params.get("q") == f"COMIC[{TITLE_ID}_1]":
            return httpx.Response(200, json={"contents": [{"reactions": [{"count": 77}]}], "parentContents": []})
        return httpx.Response(200, json={"contents": [], "parentContents": []})

    if path == "/community/u/_siu":
        return httpx.Response(200, text='<html><head><meta name="author" content="SIU"></head></html>')
    if path == "/community/u/off":
        return httpx.Response(400)

    if path == "/webtoon/detail":
        if params.get("no") == "1":
            return httpx.Response(
                200,
                text="""
                <html><head><meta property="og:description" content="1화"></head>
                <body><div class="wt_viewer">
                  <img src="https://image-comic.pstatic.net/p1.jpg" width="690" height="1600">
                  <img src="https://image-comic.pstatic.net/p2.jpg" width="690" height="400">
                </div></body></html>
                """,
            )
        return httpx.Response(302, headers={"Location": f"/webtoon/list?titleId={TITLE_ID}"})

    return httpx.Response(404)


@pytest.fixture
def site(mock_http):
    return mock_http(_site)


@pytest.fixture
def adapter(site, fast_settings) -> NaverAdapter:
    client, _ = site
    return NaverAdapter(HttpxTransport(client, fast_settings))


@pytest.fixture
def naver_webtoon() -> Webtoon:
    return Webtoon(
        platform=Platform.NAVER,
        id=TITLE_ID,
        type=WebtoonType.ORIGINAL,
        title="신의 탑",
        url=f"https://comic.naver.com/webtoon/list?titleId={TITLE_ID}",
    )


def _episode(number: int) -> Episode:
    return Episode(
        platform=Platform.NAVER,
        webtoon_id=TITLE_ID,
        webtoon_type=WebtoonType.ORIGINAL,
        number=number,
        title=f"{number}화",
    )


# ======================================================================
# Metadata
# ======================================================================


class TestMetadata:
    @pytest.mark.asyncio
    async def test_fetch_metadata(self, adapter: NaverAdapter) -> None:
        webtoon = await adapter.fetch_metadata(TITLE_ID, WebtoonType.ORIGINAL)

        assert webtoon.platform is Platform.NAVER
        assert webtoon.title == "신의 탑"
        assert webtoon.genres == ["FANTASY", "ACTION"]
        assert webtoon.subscribers == 1_234_567
        assert webtoon.views is None
        assert webtoon.schedule == ["SUNDAY"]
        assert webtoon.summary == "탑을 오르는 이야기"
        assert webtoon.url == f"https://comic.naver.com/webtoon/list?titleId={TITLE_ID}"
        assert webtoon.rss_url is None
        assert [(c.username, c.profile) for c in webtoon.creators] == [("SIU", "_siu"), ("Helper", None)]
        assert webtoon.on_hiatus is True
        assert webtoon.rating is None

    @pytest.mark.asyncio
    async def test_type_mismatch_is_not_found(self, adapter: NaverAdapter) -> None:
        with pytest.raises(NotFoundError):
            await adapter.fetch_metadata(2, WebtoonType.ORIGINAL)

    @pytest.mark.asyncio
    async def test_challenge_maps_to_canvas(self, adapter: NaverAdapter) -> None:
        webtoon = await adapter.fetch_metadata(2, WebtoonType.CANVAS)
        assert webtoon.type is WebtoonType.CANVAS
        assert webtoon.url == "https://comic.naver.com/challenge/list?titleId=2"
        assert webtoon.on_hiatus is False

    @pytest.mark.asyncio
    async def test_missing_title_is_parse_error(self, adapter: NaverAdapter) -> None:
        with pytest.raises(ParseError) as exc_info:
            await adapter.fetch_metadata(3, WebtoonType.ORIGINAL)
        assert exc_info.value.field == "WireTitleInfo"

    @pytest.mark.asyncio
    async def test_unknown_title_is_not_found(self, adapter: NaverAdapter) -> None:
        with pytest.raises(NotFoundError):
            await adapter.fetch_metadata(404, WebtoonType.ORIGINAL)


# ======================================================================
# Episodes
# ======================================================================


class TestEpisodes:
    @pytest.mark.asyncio
    async def test_first_token(self, adapter: NaverAdapter, naver_webtoon: Webtoon) -> None:
        assert await adapter.first_episode_token(naver_webtoon) == PageNumber(1)

    @pytest.mark.asyncio
    async def test_charge_episodes_only_on_last_page(self, adapter: NaverAdapter, naver_webtoon: Webtoon) -> None:
        first = await adapter.fetch_episode_page(naver_webtoon, PageNumber(1))
        assert [e.number for e in first.items] == list(range(1, 21))
        assert first.last is False

        last = await adapter.fetch_episode_page(naver_webtoon, PageNumber(2))
        assert [e.number for e in last.items] == [21, 22, 23, 24]
        assert last.last is True

    @pytest.mark.asyncio
    async def test_episode_stream(self, adapter: NaverAdapter, naver_webtoon: Webtoon, site) -> None:
        episodes = [e async for e in PaginationEngine(adapter).episodes(naver_webtoon)]

        assert [e.number for e in episodes] == list(range(1, 25))
        published, upcoming = episodes[0], episodes[-1]
        assert published.is_published is True
        assert published.published == datetime(2024, 5, 5, tzinfo=KST)
        assert published.rating == 9.9
        assert upcoming.is_published is False
        assert upcoming.published is None
        assert episodes[21].season == 2

        _, handler = site
        sent = [r for r in handler.requests if r.url.path == "/api/article/list"]
        assert [r.url.params["page"] for r in sent] == ["1", "2"]
        assert all(r.url.params["sort"] == "ASC" for r in sent)


# ======================================================================
# Comments
# ======================================================================


class TestComments:
    @pytest.mark.asyncio
    async def test_post_page(self, adapter: NaverAdapter, site) -> None:
        page = await adapter.fetch_post_page(_episode(1), PageNumber(1))
        first, deleted = page.items

        assert first.id == "1"
        assert first.is_comment is True
        assert first.upvotes == 5
        assert first.downvotes == 1
        assert first.reply_count == 2
        assert first.is_top is True
        assert first.poster.id == "abc"
        assert first.posted == datetime(2024, 5, 5, 12, 34, 56, tzinfo=timezone.utc)
        assert deleted.deleted is True
        assert deleted.body == ""
        assert page.last is True

        _, handler = site
        sent = handler.requests[-1]
        assert sent.url.params["objectId"] == f"{TITLE_ID}_1"
        assert sent.url.params["ticket"] == "comic"
        assert sent.headers["Referer"] == "https://comic.naver.com/"

    @pytest.mark.asyncio
    async def test_posts_span_pages(self, adapter: NaverAdapter) -> None:
        posts = [p async for p in PaginationEngine(adapter).posts(_episode(2))]
        assert len(posts) == 107
        assert len({p.id for p in posts}) == 107

    @pytest.mark.asyncio
    async def test_replies_drop_parent_echo(self, adapter: NaverAdapter) -> None:
        engine = PaginationEngine(adapter)
        parent = [p async for p in engine.posts(_episode(1))][0]

        replies = [r async for r in engine.replies(parent)]

        assert [r.id for r in replies] == ["201", "202"]
        assert all(r.parent_id == "1" and r.is_reply for r in replies)

    @pytest.mark.asyncio
    async def test_reply_request_carries_parent(self, adapter: NaverAdapter, site) -> None:
        parent = Post(
            platform=Platform.NAVER,
            webtoon_id=TITLE_ID,
            webtoon_type=WebtoonType.ORIGINAL,
            episode=1,
            id="1",
            parent_id="1",
            reply_count=2,
        )
        await adapter.fetch_reply_page(parent, PageNumber(1))
        _, handler = site
        assert handler.requests[-1].url.params["parentCommentNo"] == "1"

    @pytest.mark.asyncio
    async def test_unsuccessful_response_is_parse_error(self, adapter: NaverAdapter) -> None:
        with pytest.raises(ParseError) as exc_info:
            await adapter.fetch_post_page(_episode(9), PageNumber(1))
        assert exc_info.value.field == "success"

    @pytest.mark.asyncio
    async def test_non_jsonp_body_is_parse_error(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        adapter = NaverAdapter(HttpxTransport(client, fast_settings))
        with pytest.raises(ParseError):
            await adapter.fetch_post_page(_episode(1), PageNumber(1))


# ======================================================================
# Supplementary lookups
# ======================================================================


class TestSupplementary:
    @pytest.mark.asyncio
    async def test_creator(self, adapter: NaverAdapter) -> None:
        profile = await adapter.fetch_creator("_siu")
        assert profile.username == "SIU"
        assert profile.disabled is False

    @pytest.mark.asyncio
    async def test_disabled_creator(self, adapter: NaverAdapter) -> None:
        profile = await adapter.fetch_creator("off")
        assert profile.disabled is True

    @pytest.mark.asyncio
    async def test_episode_detail(self, adapter: NaverAdapter, naver_webtoon: Webtoon) -> None:
        detail = await adapter.fetch_episode_detail(naver_webtoon, 1)
        assert detail.title == "1화"
        assert [p.height for p in detail.panels] == [1600, 400]
        assert detail.length == 2000

    @pytest.mark.asyncio
    async def test_unviewable_episode_is_not_found(self, adapter: NaverAdapter, naver_webtoon: Webtoon) -> None:
        with pytest.raises(NotFoundError):
            await adapter.fetch_episode_detail(naver_webtoon, 99)

    @pytest.mark.asyncio
    async def test_user_info_unsupported(self, site, settings_factory) -> None:
        client, handler = site
        adapter = NaverAdapter(HttpxTransport(client, settings_factory(session_token="tok")))
        with pytest.raises(UnauthenticatedError):
            await adapter.fetch_user_info()
        assert handler.calls == 0


# ======================================================================
# Single episodes, likes, ratings
# ======================================================================


class TestEpisodeLookups:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(("number", "page"), [(5, "1"), (20, "1"), (22, "2")])
    async def test_episode_fetches_only_its_listing_page(
        self, adapter: NaverAdapter, naver_webtoon: Webtoon, site, number: int, page: str
    ) -> None:
        episode = await adapter.fetch_episode(naver_webtoon, number)

        assert episode is not None
        assert episode.number == number
        _, handler = site
        assert [r.url.params["page"] for r in handler.requests] == [page]

    @pytest.mark.asyncio
    async def test_paid_episode_found_with_last_page(self, adapter: NaverAdapter, naver_webtoon: Webtoon) -> None:
        episode = await adapter.fetch_episode(naver_webtoon, 24)
        assert episode is not None
        assert episode.is_published is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("number", [0, 30])
    async def test_missing_episode_is_none(self, adapter: NaverAdapter, naver_webtoon: Webtoon, number: int) -> None:
        assert await adapter.fetch_episode(naver_webtoon, number) is None

    @pytest.mark.asyncio
    async def test_rating_with_raters(self, adapter: NaverAdapter, site) -> None:
        rating = await adapter.fetch_episode_rating(_episode(1))

        assert rating == Rating(score=9.97, raters=4321)
        _, handler = site
        assert handler.requests[-1].url.params["titleId"] == str(TITLE_ID)

    @pytest.mark.asyncio
    async def test_paid_episode_rating_falls_back_to_listing_score(self, adapter: NaverAdapter) -> None:
        paid = _episode(24).model_copy(update={"rating": 9.5})
        assert await adapter.fetch_episode_rating(paid) == Rating(score=9.5)
        assert await adapter.fetch_episode_rating(_episode(24)) is None

    @pytest.mark.asyncio
    async def test_malformed_rating_is_parse_error(self, adapter: NaverAdapter) -> None:
        with pytest.raises(ParseError) as exc_info:
            await adapter.fetch_episode_rating(_episode(6))
        assert exc_info.value.field == "WireUserAction"

    @pytest.mark.asyncio
    async def test_likes(self, adapter: NaverAdapter, site) -> None:
        assert await adapter.fetch_episode_likes(_episode(1)) == 77
        assert await adapter.fetch_episode_likes(_episode(2)) == 0

        _, handler = site
        assert handler.requests[0].url.host == "route-like.naver.com"
        assert handler.requests[0].url.params["q"] == f"COMIC[{TITLE_ID}_1]"
