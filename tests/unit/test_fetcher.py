"""HTTP feed fetcher tests."""

import asyncio

import httpx
import pytest

from burkinawatch.modules.feeds.domain.exceptions import (
    SourceHTTPError,
    SourceTimeout,
    SourceUnreachable,
)
from burkinawatch.modules.feeds.infrastructure.fetchers import HttpFeedFetcher
from tests.conftest import make_source, rss_payload

pytestmark = pytest.mark.anyio

PAYLOAD = rss_payload([{"title": "Hello", "link": "https://feeds.example.bf/1"}])


async def test_success_returns_payload_and_sends_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=PAYLOAD)

    fetcher = HttpFeedFetcher(
        timeout_sec=1, user_agent="TestAgent/1.0", transport=httpx.MockTransport(handler)
    )
    result = await fetcher.fetch(make_source())

    assert result.is_success
    assert result.payload == PAYLOAD
    assert result.endpoint == "https://feeds.example.bf/rss"
    assert seen[0].headers["User-Agent"] == "TestAgent/1.0"
    assert "application/rss+xml" in seen[0].headers["Accept"]


async def test_non_2xx_is_http_error():
    fetcher = HttpFeedFetcher(
        timeout_sec=1,
        transport=httpx.MockTransport(lambda request: httpx.Response(404)),
    )
    result = await fetcher.fetch(make_source())

    assert not result.is_success
    assert isinstance(result.error, SourceHTTPError)
    assert result.error.status_code == 404


async def test_transport_timeout_is_source_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher = HttpFeedFetcher(timeout_sec=1, transport=httpx.MockTransport(handler))
    result = await fetcher.fetch(make_source())

    assert isinstance(result.error, SourceTimeout)


async def test_slow_upstream_is_cut_at_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, content=PAYLOAD)

    fetcher = HttpFeedFetcher(timeout_sec=0.1, transport=httpx.MockTransport(handler))

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await fetcher.fetch(make_source())
    elapsed = loop.time() - started

    assert isinstance(result.error, SourceTimeout)
    assert elapsed < 1


async def test_connection_error_is_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    fetcher = HttpFeedFetcher(timeout_sec=1, transport=httpx.MockTransport(handler))
    result = await fetcher.fetch(make_source(name="Down"))

    assert isinstance(result.error, SourceUnreachable)
    assert result.error.source_name == "Down"


async def test_fallback_endpoint_tried_once_after_primary_fails():
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        if request.url.host == "primary.example.bf":
            return httpx.Response(503)
        return httpx.Response(200, content=PAYLOAD)

    source = make_source(
        endpoint="https://primary.example.bf/feed",
        fallback_endpoint="https://backup.example.bf/feed",
    )
    fetcher = HttpFeedFetcher(timeout_sec=1, transport=httpx.MockTransport(handler))
    result = await fetcher.fetch(source)

    assert result.is_success
    assert result.endpoint == "https://backup.example.bf/feed"
    assert calls == ["https://primary.example.bf/feed", "https://backup.example.bf/feed"]


async def test_fallback_failure_reports_fallback_error():
    fetcher = HttpFeedFetcher(
        timeout_sec=1,
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    source = make_source(fallback_endpoint="https://backup.example.bf/feed")
    result = await fetcher.fetch(source)

    assert isinstance(result.error, SourceHTTPError)
    assert result.endpoint == "https://backup.example.bf/feed"


async def test_no_fallback_when_primary_succeeds():
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        return httpx.Response(200, content=PAYLOAD)

    source = make_source(fallback_endpoint="https://backup.example.bf/feed")
    fetcher = HttpFeedFetcher(timeout_sec=1, transport=httpx.MockTransport(handler))
    await fetcher.fetch(source)

    assert calls == ["feeds.example.bf"]


async def test_primary_and_fallback_share_one_timeout():
    hosts: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        await asyncio.sleep(5)
        return httpx.Response(200, content=PAYLOAD)

    source = make_source(
        endpoint="https://primary.example.bf/feed",
        fallback_endpoint="https://backup.example.bf/feed",
    )
    fetcher = HttpFeedFetcher(timeout_sec=0.2, transport=httpx.MockTransport(handler))

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await fetcher.fetch(source)
    elapsed = loop.time() - started

    assert isinstance(result.error, SourceTimeout)
    assert elapsed < 0.35
    assert hosts == ["primary.example.bf"]


async def test_fallback_bounded_by_remaining_window():
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "primary.example.bf":
            await asyncio.sleep(0.15)
            return httpx.Response(503)
        await asyncio.sleep(5)
        return httpx.Response(200, content=PAYLOAD)

    source = make_source(
        endpoint="https://primary.example.bf/feed",
        fallback_endpoint="https://backup.example.bf/feed",
    )
    fetcher = HttpFeedFetcher(timeout_sec=0.3, transport=httpx.MockTransport(handler))

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await fetcher.fetch(source)
    elapsed = loop.time() - started

    assert isinstance(result.error, SourceTimeout)
    assert result.endpoint == "https://backup.example.bf/feed"
    assert elapsed < 0.5
