from __future__ import annotations

from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from geoguard.cache import HttpLocationProvider, LocationCache, StaticLocationProvider
from geoguard.exceptions import LocationUnavailableError
from geoguard.models import LocationSource


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def read(self) -> bytes:
        return self._text.encode("utf-8")

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, *responses: _FakeResponse | Exception) -> None:
        self._responses = list(responses)
        self.urls: list[str] = []

    def get(self, url: str) -> _FakeResponse:
        self.urls.append(url)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.mark.asyncio
async def test_http_provider_parses_ip_api_payload(clock) -> None:
    session = _FakeSession(_FakeResponse(200, '{"status": "success", "lat": 3.139, "lon": 101.6869}'))
    provider = HttpLocationProvider(session, url="http://geo.test/json", clock=clock)  # type: ignore[arg-type]

    fix = await provider.get_position(maximum_age=30)

    assert (fix.latitude, fix.longitude) == (3.139, 101.6869)
    assert fix.accuracy is None
    assert session.urls == ["http://geo.test/json"]


@pytest.mark.asyncio
async def test_http_provider_reuses_recent_fix(clock) -> None:
    session = _FakeSession(
        _FakeResponse(200, '{"latitude": 1.0, "longitude": 2.0, "accuracy": 50}'),
        _FakeResponse(200, '{"latitude": 5.0, "longitude": 6.0, "accuracy": 50}'),
    )
    provider = HttpLocationProvider(session, clock=clock)  # type: ignore[arg-type]

    first = await provider.get_position(maximum_age=30)
    clock.advance(seconds=30)
    reused = await provider.get_position(maximum_age=30)
    clock.advance(seconds=1)
    fresh = await provider.get_position(maximum_age=30)

    assert reused is first
    assert fresh.latitude == 5.0
    assert len(session.urls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse(503, "busy"),
        _FakeResponse(200, "<html>"),
        _FakeResponse(200, "[1, 2]"),
        _FakeResponse(200, '{"status": "fail", "message": "reserved range"}'),
        aiohttp.ClientConnectionError("connection refused"),
    ],
)
async def test_http_provider_failures_raise_unavailable(clock, response: Any) -> None:
    provider = HttpLocationProvider(_FakeSession(response), clock=clock)  # type: ignore[arg-type]

    with pytest.raises(LocationUnavailableError) as excinfo:
        await provider.get_position(maximum_age=30)

    assert excinfo.value.provider == "http"


@pytest.mark.asyncio
async def test_static_provider_without_fix_raises() -> None:
    with pytest.raises(LocationUnavailableError):
        await StaticLocationProvider().get_position(maximum_age=30)


@pytest.mark.asyncio
async def test_http_provider_rejects_undecodable_body(clock) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(body=b'{"lat": 3.1, "lon": \xff\xfe}', content_type="application/json")

    app = web.Application()
    app.router.add_get("/json", handler)

    async with TestServer(app) as server, aiohttp.ClientSession() as session:
        provider = HttpLocationProvider(session, url=str(server.make_url("/json")), clock=clock)

        with pytest.raises(LocationUnavailableError) as excinfo:
            await provider.get_position(maximum_age=30)

    assert "not UTF-8" in str(excinfo.value)


@pytest.mark.asyncio
async def test_undecodable_body_falls_back_to_default(clock) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(body=b"\xff\xfe\xfd", content_type="application/json")

    app = web.Application()
    app.router.add_get("/json", handler)

    async with TestServer(app) as server, aiohttp.ClientSession() as session:
        provider = HttpLocationProvider(session, url=str(server.make_url("/json")), clock=clock)
        cache = LocationCache(provider=provider, clock=clock)

        location = await cache.get_current_location()

    assert location.source is LocationSource.DEFAULT
