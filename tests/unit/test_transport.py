"""Unit tests for HttpxTransport: session gate, headers, cadence and classification."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from toonkit.interfaces.transport import HttpRequest
from toonkit.providers.transport.httpx_transport import HttpxTransport
from toonkit.utils.errors import (
    HttpStatusError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthenticatedError,
)

URL = "https://example.test/api"


def _status(code: int, **kwargs):
    return lambda request: httpx.Response(code, **kwargs)


# ======================================================================
# Classification
# ======================================================================


class TestClassification:
    @pytest.mark.asyncio
    async def test_success_returns_response(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(200, text="ok"))
        transport = HttpxTransport(client, fast_settings)
        response = await transport.send(HttpRequest(url=URL))
        assert response.status_code == 200
        assert response.text == "ok"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(404))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(NotFoundError) as exc_info:
            await transport.send(HttpRequest(url=URL, provider_name="webtoons"))
        assert exc_info.value.provider_name == "webtoons"
        assert exc_info.value.resource == URL

    @pytest.mark.asyncio
    async def test_429_is_rate_limited_with_retry_after(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(429, headers={"Retry-After": "7"}))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(RateLimitedError) as exc_info:
            await transport.send(HttpRequest(url=URL))
        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_429_without_retry_after(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(429))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(RateLimitedError) as exc_info:
            await transport.send(HttpRequest(url=URL))
        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [401, 403])
    async def test_auth_statuses(self, mock_http, fast_settings, code: int) -> None:
        client, _ = mock_http(_status(code))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(UnauthenticatedError):
            await transport.send(HttpRequest(url=URL))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [500, 502, 503])
    async def test_server_errors_are_network_errors(self, mock_http, fast_settings, code: int) -> None:
        client, _ = mock_http(_status(code))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(NetworkError):
            await transport.send(HttpRequest(url=URL))

    @pytest.mark.asyncio
    async def test_other_client_error(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(418))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(HttpStatusError) as exc_info:
            await transport.send(HttpRequest(url=URL))
        assert exc_info.value.status_code == 418

    @pytest.mark.asyncio
    async def test_pass_statuses_are_returned(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(400))
        transport = HttpxTransport(client, fast_settings)
        response = await transport.send(HttpRequest(url=URL, pass_statuses=frozenset({400})))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_error(self, mock_http, fast_settings) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = mock_http(route)
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(NetworkError):
            await transport.send(HttpRequest(url=URL))


class TestParseRetryAfter:
    def test_delta_seconds(self) -> None:
        assert HttpxTransport._parse_retry_after("120") == 120.0

    def test_past_http_date_clamps_to_zero(self) -> None:
        assert HttpxTransport._parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    def test_garbage(self) -> None:
        assert HttpxTransport._parse_retry_after("soon") is None
        assert HttpxTransport._parse_retry_after(None) is None


# ======================================================================
# Session gate and headers
# ======================================================================


class TestSession:
    @pytest.mark.asyncio
    async def test_session_required_without_token_makes_no_request(self, mock_http, fast_settings) -> None:
        client, handler = mock_http(_status(200))
        transport = HttpxTransport(client, fast_settings)
        with pytest.raises(UnauthenticatedError):
            await transport.send(HttpRequest(url=URL, requires_session=True))
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_session_cookie_sent_when_configured(self, mock_http, settings_factory) -> None:
        client, handler = mock_http(_status(200))
        transport = HttpxTransport(client, settings_factory(session_token="secret"))
        assert transport.has_session is True

        await transport.send(HttpRequest(url=URL, requires_session=True, session_cookie="NEO_SES"))

        assert handler.requests[0].headers["Cookie"] == "NEO_SES=secret"

    @pytest.mark.asyncio
    async def test_no_cookie_without_cookie_name(self, mock_http, settings_factory) -> None:
        client, handler = mock_http(_status(200))
        transport = HttpxTransport(client, settings_factory(session_token="secret"))
        await transport.send(HttpRequest(url=URL))
        assert "Cookie" not in handler.requests[0].headers

    @pytest.mark.asyncio
    async def test_user_agent_and_extra_headers(self, mock_http, settings_factory) -> None:
        client, handler = mock_http(_status(200))
        transport = HttpxTransport(client, settings_factory(user_agent="toonkit-tests"))
        await transport.send(HttpRequest(url=URL, headers={"Referer": "https://comic.naver.com/"}))
        sent = handler.requests[0]
        assert sent.headers["User-Agent"] == "toonkit-tests"
        assert sent.headers["Referer"] == "https://comic.naver.com/"

    @pytest.mark.asyncio
    async def test_query_params_sent(self, mock_http, fast_settings) -> None:
        client, handler = mock_http(_status(200))
        transport = HttpxTransport(client, fast_settings)
        await transport.send(HttpRequest(url=URL, params={"title_no": 95, "page": 2}))
        sent = handler.requests[0]
        assert sent.url.params["title_no"] == "95"
        assert sent.url.params["page"] == "2"


# ======================================================================
# Cadence and admission
# ======================================================================


class TestCadence:
    @pytest.mark.asyncio
    async def test_spaces_request_starts(self, mock_http, settings_factory) -> None:
        now = [100.0]
        sleeps: list[float] = []

        async def fake_sleep(delay: float) -> None:
            sleeps.append(delay)
            now[0] += delay

        client, handler = mock_http(_status(200))
        transport = HttpxTransport(
            client,
            settings_factory(min_request_interval=0.5),
            clock=lambda: now[0],
            sleep=fake_sleep,
        )

        await transport.send(HttpRequest(url=URL))
        await transport.send(HttpRequest(url=URL))
        now[0] += 2.0
        await transport.send(HttpRequest(url=URL))

        assert sleeps == [0.5]
        assert handler.calls == 3

    @pytest.mark.asyncio
    async def test_admission_limit(self, settings_factory) -> None:
        active = 0
        peak = 0

        async def route(request: httpx.Request) -> httpx.Response:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(route))
        transport = HttpxTransport(client, settings_factory(max_concurrent_requests=2))

        await asyncio.gather(*(transport.send(HttpRequest(url=URL)) for _ in range(6)))

        assert peak == 2

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self, mock_http, fast_settings) -> None:
        client, _ = mock_http(_status(200))
        transport = HttpxTransport(client, fast_settings)
        await transport.aclose()
        assert client.is_closed
