"""Wire schemas for the comic.naver.com JSON endpoints.

Optional keys default to ``None`` (or an empty list) so that the platform
omitting a field degrades that field instead of failing the response.
Structural keys (``titleName``, ``articleList``, ``result.commentList``)
are required; their absence raises ``pydantic.ValidationError``, which
the adapter converts into ``ParseError``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

KST = timezone(timedelta(hours=9))


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# /api/article/list/info
# ---------------------------------------------------------------------------

class WireArtist(_Wire):
    name: str
    profile_page_url: str | None = None


class WireAdParam(_Wire):
    genre_types: list[str] = Field(default_factory=list)
    rank_genre_types: list[str] = Field(default_factory=list)


class WireTitleInfo(_Wire):
    title_name: str
    thumbnail_url: str | None = None
    webtoon_level_code: str | None = None  # WEBTOON, BEST_CHALLENGE, CHALLENGE
    finished: bool = False
    rest: bool = False  # on hiatus
    publish_day_of_week_list: list[str] = Field(default_factory=list)
    synopsis: str | None = None
    favorite_count: int | None = None
    community_artists: list[WireArtist] = Field(default_factory=list)
    gfp_ad_custom_param: WireAdParam | None = None


# ---------------------------------------------------------------------------
# /api/article/list
# ---------------------------------------------------------------------------

class WireArticle(_Wire):
    no: int
    subtitle: str
    service_date_description: str | None = None  # "yy.mm.dd", KST
    thumbnail_url: str | None = None
    star_score: float | None = None

    @property
    def published(self) -> datetime | None:
        if not self.service_date_description:
            return None
        try:
            day = datetime.strptime(self.service_date_description.strip(), "%y.%m.%d")
        except ValueError:
            return None
        return day.replace(tzinfo=KST)


class WirePageInfo(_Wire):
    total_pages: int | None = None


class WireArticleList(_Wire):
    article_list: list[WireArticle]
    charge_folder_article_list: list[WireArticle] = Field(default_factory=list)
    page_info: WirePageInfo | None = None


# ---------------------------------------------------------------------------
# cbox comment API (JSONP)
# ---------------------------------------------------------------------------

class WireComment(_Wire):
    comment_no: str
    parent_comment_no: str | None = None
    contents: str | None = None
    deleted: bool = False
    reg_time_gmt: datetime | None = None
    reply_count: int = 0
    sympathy_count: int = 0
    antipathy_count: int = 0
    user_name: str | None = None
    id_no: str | None = None
    user_id_no: str | None = None
    profile_user_id: str | None = None
    manager: bool = False
    best: bool = False

    @field_validator("comment_no", "parent_comment_no", mode="before")
    @classmethod
    def _stringify_ids(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("reg_time_gmt", mode="before")
    @classmethod
    def _parse_gmt(cls, value):
        # "2024-05-05T12:34:56+0000"
        if isinstance(value, str):
            try:
                return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
            except ValueError:
                return None
        return value

    @property
    def poster_id(self) -> str | None:
        return self.id_no or self.user_id_no or self.profile_user_id


class WirePageModel(_Wire):
    total_pages: int = 0


class WireCommentResult(_Wire):
    comment_list: list[WireComment]
    page_model: WirePageModel = Field(default_factory=WirePageModel)


class WireCommentResponse(_Wire):
    success: bool
    result: WireCommentResult


# ---------------------------------------------------------------------------
# route-like.naver.com /v1/search/contents
# ---------------------------------------------------------------------------

class WireLikeReaction(_Wire):
    count: int = 0


class WireLikeContent(_Wire):
    reactions: list[WireLikeReaction] = Field(default_factory=list)


class WireLikeResponse(_Wire):
    contents: list[WireLikeContent]

    @property
    def count(self) -> int:
        if not self.contents or not self.contents[0].reactions:
            return 0
        return self.contents[0].reactions[0].count


# ---------------------------------------------------------------------------
# /api/userAction/info
# ---------------------------------------------------------------------------

class WireStarInfo(_Wire):
    average_star_score: float
    star_score_count: int | None = None


class WireUserAction(_Wire):
    star_info: WireStarInfo
