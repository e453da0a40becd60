"""Wire schemas for the webtoons.com community and member JSON APIs.

Only the fields toonkit reads are declared; unknown keys are ignored.
Optional keys default to ``None`` so an omitted field never fails the
whole response, while a missing structural key (``result``, ``posts``)
raises ``pydantic.ValidationError``, which the adapter turns into a
``ParseError``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class WireEmotion(_Wire):
    emotion_id: str
    count: int = 0


class WireReaction(_Wire):
    emotions: list[WireEmotion] = Field(default_factory=list)


class WireAuthor(_Wire):
    id: str | None = None
    name: str = ""
    profile_url: str | None = None
    is_creator: bool = False


class WirePost(_Wire):
    id: str
    root_id: str | None = None
    body: str | None = None
    child_post_count: int = 0
    created_at: int | None = None  # epoch milliseconds
    created_by: WireAuthor | None = None
    reactions: list[WireReaction] = Field(default_factory=list)
    status: str | None = None  # "SERVICE", "DELETE", ...
    is_pinned: bool = False

    def emotion_count(self, emotion_id: str) -> int:
        for reaction in self.reactions:
            for emotion in reaction.emotions:
                if emotion.emotion_id == emotion_id:
                    return emotion.count
        return 0


class WirePagination(_Wire):
    next: str | None = None


class WirePostsResult(_Wire):
    posts: list[WirePost]
    pagination: WirePagination = Field(default_factory=WirePagination)


class WirePostsResponse(_Wire):
    status: str
    result: WirePostsResult


class WireUserInfo(_Wire):
    login_user: bool = False
    nickname: str | None = None
    profile_url: str | None = None


# ---------------------------------------------------------------------------
# /api/v1/like/search/counts
# ---------------------------------------------------------------------------

class WireLikeReaction(_Wire):
    count: int = 0


class WireLikeContent(_Wire):
    reactions: list[WireLikeReaction] = Field(default_factory=list)


class WireLikeResult(_Wire):
    contents: list[WireLikeContent]


class WireLikeResponse(_Wire):
    result: WireLikeResult

    @property
    def count(self) -> int:
        """Likes of the first requested content id; 0 before anyone reacts."""
        if not self.result.contents or not self.result.contents[0].reactions:
            return 0
        return self.result.contents[0].reactions[0].count
