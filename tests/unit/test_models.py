"""Unit tests for the toonkit domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toonkit.models.entities import (
    Creator,
    Episode,
    EpisodeDetail,
    Panel,
    Platform,
    Post,
    Rating,
    Webtoon,
    WebtoonType,
)
from toonkit.models.pages import Cursor, Page, PageNumber
from toonkit.utils.errors import ConfigurationError


class TestWebtoon:
    def test_frozen(self, sample_webtoon: Webtoon) -> None:
        with pytest.raises(ValidationError):
            sample_webtoon.title = "Other"

    def test_rss_url_on_webtoons(self, sample_webtoon: Webtoon) -> None:
        assert sample_webtoon.rss_url == "https://www.webtoons.com/en/fantasy/tower-of-god/rss?title_no=95"

    def test_rss_url_absent_on_naver(self) -> None:
        webtoon = Webtoon(
            platform=Platform.NAVER,
            id=1,
            type=WebtoonType.ORIGINAL,
            title="t",
            url="https://comic.naver.com/webtoon/list?titleId=1",
        )
        assert webtoon.rss_url is None

    def test_unbound_navigation_raises(self, sample_webtoon: Webtoon) -> None:
        with pytest.raises(ConfigurationError):
            sample_webtoon.episodes()

    @pytest.mark.asyncio
    async def test_unbound_lookups_raise(self, sample_webtoon: Webtoon, sample_episode: Episode) -> None:
        with pytest.raises(ConfigurationError):
            await sample_webtoon.episode(1)
        with pytest.raises(ConfigurationError):
            await sample_webtoon.likes()
        with pytest.raises(ConfigurationError):
            await sample_episode.rating_details()

    def test_ratings_default_to_unknown(self, sample_webtoon: Webtoon, sample_episode: Episode) -> None:
        assert sample_webtoon.rating is None
        assert sample_webtoon.on_hiatus is None
        assert sample_episode.rating is None
        assert Rating(score=9.5).raters is None

    def test_bind_leaves_fields_untouched(self, sample_webtoon: Webtoon) -> None:
        before = sample_webtoon.model_dump()
        assert sample_webtoon.bind(object()) is sample_webtoon
        assert sample_webtoon.model_dump() == before
        assert "_client" not in before


class TestCreator:
    @pytest.mark.asyncio
    async def test_profile_page_without_profile_is_none(self) -> None:
        creator = Creator(platform=Platform.WEBTOONS, username="SIU")
        assert creator.has_profile is False
        assert await creator.profile_page() is None

    @pytest.mark.asyncio
    async def test_profile_page_unbound_raises(self) -> None:
        creator = Creator(platform=Platform.WEBTOONS, username="SIU", profile="siu")
        with pytest.raises(ConfigurationError):
            await creator.profile_page()


class TestPost:
    def test_comment_and_reply(self, sample_post: Post) -> None:
        assert sample_post.is_comment is True
        reply = sample_post.model_copy(update={"id": "r-1"})
        assert reply.is_reply is True
        assert reply.is_comment is False


class TestEpisodeDetail:
    def _detail(self, heights: list[int | None]) -> EpisodeDetail:
        return EpisodeDetail(
            platform=Platform.WEBTOONS,
            webtoon_id=95,
            webtoon_type=WebtoonType.ORIGINAL,
            number=1,
            panels=[Panel(url=f"https://img/{i}.jpg", height=h) for i, h in enumerate(heights)],
        )

    def test_length_sums_heights(self) -> None:
        assert self._detail([800, 1200, 500]).length == 2500

    def test_length_unknown_with_missing_height(self) -> None:
        assert self._detail([800, None]).length is None

    def test_length_unknown_without_panels(self) -> None:
        assert self._detail([]).length is None


class TestPageTokens:
    def test_page_number_next(self) -> None:
        assert PageNumber(3, step=-1, stop=1).next() == PageNumber(2, step=-1, stop=1)

    def test_at_stop(self) -> None:
        assert PageNumber(1, step=-1, stop=1).at_stop is True
        assert PageNumber(2, step=-1, stop=1).at_stop is False
        assert PageNumber(5).at_stop is False

    def test_cursor_default_is_first_page(self) -> None:
        assert Cursor().value is None

    def test_page_defaults(self) -> None:
        page = Page()
        assert page.items == []
        assert page.cursor is None
        assert page.last is False
