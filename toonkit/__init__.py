"""toonkit -- async read-only access to webtoons.com and comic.naver.com.

The :class:`~toonkit.client.Client` is the entry point; everything it
returns is a frozen pydantic model that can navigate to related data
(episodes, posts, replies, creator profiles) through the same client.
"""

from toonkit.client import Client
from toonkit.config import ClientSettings, load_settings
from toonkit.models import (
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
from toonkit.utils import (
    ConfigurationError,
    HttpStatusError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitedError,
    ToonkitError,
    UnauthenticatedError,
    configure_logging,
)

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientSettings",
    "ConfigurationError",
    "Creator",
    "CreatorProfile",
    "Episode",
    "EpisodeDetail",
    "HttpStatusError",
    "NetworkError",
    "NotFoundError",
    "Panel",
    "ParseError",
    "Platform",
    "Post",
    "Poster",
    "RateLimitedError",
    "Rating",
    "Reply",
    "ToonkitError",
    "UnauthenticatedError",
    "UserInfo",
    "Webtoon",
    "WebtoonType",
    "configure_logging",
    "load_settings",
]
