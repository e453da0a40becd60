"""Shared pytest fixtures for the toonkit test suite."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from toonkit.config.settings import ClientSettings
from toonkit.models.entities import Episode, Platform, Post, Webtoon, WebtoonType

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> ClientSettings:
    """Build ClientSettings with no cadence delay and no backoff sleep."""
    defaults: dict[str, Any] = {
        "session_token": "",
        "min_request_interval": 0.0,
        "max_attempts": 3,
        "backoff_base": 0.0,
        "backoff_max": 0.0,
        "app_env": "test",
    }
    defaults.update(overrides)
    return ClientSettings(**defaults)


@pytest.fixture
def fast_settings() -> ClientSettings:
    """ClientSettings tuned so tests never wait on real timers."""
    return make_settings()


@pytest.fixture
def settings_factory() -> Callable[..., ClientSettings]:
    return make_settings


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class RecordingHandler:
    """``httpx.MockTransport`` handler that records every request.

    *route* receives the request and returns the response to send back.
    """

    def __init__(self, route: Callable[[httpx.Request], httpx.Response]) -> None:
        self._route = route
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._route(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], tuple[httpx.AsyncClient, RecordingHandler]]:
    """Return a factory building an AsyncClient over a recording MockTransport."""

    def _factory(route: Callable[[httpx.Request], httpx.Response]) -> tuple[httpx.AsyncClient, RecordingHandler]:
        handler = RecordingHandler(route)
        return httpx.AsyncClient(transport=httpx.MockTransport(handler)), handler

    return _factory


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_webtoon() -> Webtoon:
    return Webtoon(
        platform=Platform.WEBTOONS,
        id=95,
        type=WebtoonType.ORIGINAL,
        title="Tower of God",
        genres=["Fantasy"],
        url="https://www.webtoons.com/en/fantasy/tower-of-god/list?title_no=95",
        episode_pages=2,
    )


@pytest.fixture
def sample_episode() -> Episode:
    return Episode(
        platform=Platform.WEBTOONS,
        webtoon_id=95,
        webtoon_type=WebtoonType.ORIGINAL,
        number=1,
        title="Ep. 1",
    )


@pytest.fixture
def sample_post() -> Post:
    return Post(
        platform=Platform.WEBTOONS,
        webtoon_id=95,
        webtoon_type=WebtoonType.ORIGINAL,
        episode=1,
        id="p-1",
        parent_id="p-1",
        body="first",
        reply_count=2,
    )
