"""
pytest configuration and shared fixtures.

Test layout:
- unit/: no network access; upstream HTTP is served by httpx.MockTransport
  and the API is exercised in-process through httpx.ASGITransport.

Usage:
    pytest
    pytest tests/unit/test_aggregator.py
"""

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import httpx
import pytest

from burkinawatch.modules.feeds.domain.entities import (
    EventType,
    ExtractedEvent,
    NormalizedItem,
    SourceCategory,
    SourceDescriptor,
)
from burkinawatch.modules.feeds.domain.exceptions import (
    ClassificationUnavailable,
    SourceUnreachable,
)
from burkinawatch.modules.feeds.domain.fetcher import RawFetchResult

OUAGA = ZoneInfo("Africa/Ouagadougou")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ============================================
# Clock
# ============================================


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 10, 9, 0, tzinfo=OUAGA))


# ============================================
# Sources and payloads
# ============================================


def make_source(
    name: str = "Test Source",
    endpoint: str = "https://feeds.example.bf/rss",
    category: SourceCategory = SourceCategory.MEDIA,
    fallback_endpoint: str | None = None,
) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        endpoint=endpoint,
        category=category,
        fallback_endpoint=fallback_endpoint,
    )


def rss_payload(entries: list[dict[str, str]], title: str = "Test feed") -> bytes:
    """Build an RSS 2.0 document from (title, link, pubDate, description) dicts."""
    items = []
    for entry in entries:
        parts = []
        for tag in ("title", "link", "pubDate", "description"):
            if tag in entry:
                parts.append(f"<{tag}>{entry[tag]}</{tag}>")
        items.append(f"<item>{''.join(parts)}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://feeds.example.bf/</link>"
        f"{''.join(items)}"
        "</channel></rss>"
    ).encode()


class StubFetcher:
    """FeedFetcher answering from a per-source table.

    Values may be bytes (success), an exception instance (returned as a
    failure) or a callable producing either, possibly async.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def fetch(self, source: SourceDescriptor) -> RawFetchResult:
        self.calls.append(source.name)
        response = self.responses.get(source.name)
        if callable(response):
            response = response()
            if hasattr(response, "__await__"):
                response = await response
        if isinstance(response, bytes):
            return RawFetchResult.success(source, response, source.endpoint)
        if isinstance(response, SourceUnreachable):
            return RawFetchResult.failed(source, response, source.endpoint)
        if isinstance(response, BaseException):
            raise response
        return RawFetchResult.failed(
            source, SourceUnreachable(source.name, "no stub response")
        )


class StubClassifier:
    """Maps article titles to event dates (None means "not an event")."""

    def __init__(self, dates: dict[str, date | None], fail: set[str] | None = None):
        self.dates = dates
        self.fail = fail or set()
        self.calls: list[str] = []
        self.available = True

    def ensure_available(self) -> None:
        if not self.available:
            raise ClassificationUnavailable("disabled")

    async def classify(self, item: NormalizedItem, today: date) -> ExtractedEvent | None:
        self.calls.append(item.title)
        if item.title in self.fail:
            raise RuntimeError("classifier bug")
        event_date = self.dates.get(item.title)
        if event_date is None:
            return None
        return ExtractedEvent(
            id=f"event:{item.id}",
            name=item.title,
            type=EventType.CULTURAL,
            date=event_date,
            venue="Ouagadougou",
            city="Ouagadougou",
            official_link=item.link,
        )


@pytest.fixture
def make_item(clock: FakeClock) -> Callable[..., NormalizedItem]:
    def _make(
        title: str = "Article",
        link: str = "https://feeds.example.bf/a",
        source_name: str = "Test Source",
        published_at: datetime | None = None,
        body_snippet: str = "",
        image: str | None = None,
    ) -> NormalizedItem:
        return NormalizedItem(
            id=f"{source_name}:{link}",
            source_name=source_name,
            title=title,
            body_snippet=body_snippet,
            link=link,
            published_at=published_at or clock(),
            category=SourceCategory.MEDIA.value,
            image=image,
        )

    return _make


# ============================================
# Mock services
# ============================================


@pytest.fixture
def mock_openai_client() -> MagicMock:
    """Mock OpenAI client answering a non-event."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=MagicMock(
            choices=[MagicMock(message=MagicMock(content='{"isEvent": false}'))]
        )
    )
    return client


def chat_response(content: str) -> MagicMock:
    return MagicMock(choices=[MagicMock(message=MagicMock(content=content))])


# ============================================
# HTTP client
# ============================================


@pytest.fixture
async def async_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """In-process API client; app state is set by each test."""
    from main import app

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
