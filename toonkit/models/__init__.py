"""Domain models and page containers."""

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
    Reply,
    UserInfo,
    Webtoon,
    WebtoonType,
)
from toonkit.models.pages import Cursor, Page, PageNumber, PageToken

__all__ = [
    "Creator",
    "CreatorProfile",
    "Cursor",
    "Episode",
    "EpisodeDetail",
    "Page",
    "PageNumber",
    "PageToken",
    "Panel",
    "Platform",
    "Post",
    "Poster",
    "Rating",
    "Reply",
    "UserInfo",
    "Webtoon",
    "WebtoonType",
]
