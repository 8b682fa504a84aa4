"""Feed normalizer tests.

Coverage:
- RSS 2.0, Atom and JSON Feed payloads
- field defaults (title, link, date, description)
- per-source cap and malformed payloads
"""

import json
from datetime import UTC, datetime

import pytest

from burkinawatch.modules.feeds.domain.entities import SourceCategory
from burkinawatch.modules.feeds.domain.exceptions import SourceTimeout
from burkinawatch.modules.feeds.domain.fetcher import RawFetchResult
from burkinawatch.modules.feeds.infrastructure.normalizer import (
    UNTITLED,
    FeedNormalizer,
)
from tests.conftest import make_source, rss_payload

SOURCE = make_source(name="Lefaso.net", category=SourceCategory.MEDIA)


def _ok(payload: bytes, source=SOURCE) -> RawFetchResult:
    return RawFetchResult.success(source, payload, source.endpoint)


class TestRss:
    def test_maps_fields(self, clock):
        payload = rss_payload(
            [
                {
                    "title": "Conseil des ministres",
                    "link": "https://lefaso.net/a1",
                    "pubDate": "Mon, 10 Mar 2025 08:00:00 GMT",
                    "description": "&lt;p&gt;Compte rendu &lt;b&gt;officiel&lt;/b&gt;&lt;/p&gt;",
                }
            ]
        )

        items = FeedNormalizer().normalize(_ok(payload), limit=5, now=clock())

        assert len(items) == 1
        item = items[0]
        assert item.title == "Conseil des ministres"
        assert item.link == "https://lefaso.net/a1"
        assert item.published_at == datetime(2025, 3, 10, 8, 0, tzinfo=UTC)
        assert item.body_snippet == "Compte rendu officiel"
        assert item.source_name == "Lefaso.net"
        assert item.category == "Média"

    def test_defaults_for_missing_fields(self, clock):
        payload = rss_payload([{"description": "Sans titre ni lien"}])

        items = FeedNormalizer().normalize(_ok(payload), limit=5, now=clock())

        assert items[0].title == UNTITLED
        assert items[0].link == SOURCE.endpoint
        assert items[0].published_at == clock()

    def test_missing_description_is_empty(self, clock):
        payload = rss_payload([{"title": "T", "link": "https://lefaso.net/t"}])

        items = FeedNormalizer().normalize(_ok(payload), limit=5, now=clock())

        assert items[0].body_snippet == ""

    def test_respects_limit_and_feed_order(self, clock):
        payload = rss_payload(
            [{"title": f"Item {i}", "link": f"https://lefaso.net/{i}"} for i in range(8)]
        )

        items = FeedNormalizer().normalize(_ok(payload), limit=3, now=clock())

        assert [i.title for i in items] == ["Item 0", "Item 1", "Item 2"]

    def test_snippet_truncated(self, clock):
        payload = rss_payload([{"title": "Long", "description": "x" * 80}])

        items = FeedNormalizer(snippet_max_length=20).normalize(
            _ok(payload), limit=5, now=clock()
        )

        assert len(items[0].body_snippet) == 20
        assert items[0].body_snippet.endswith("...")

    def test_ids_stable_across_runs(self, clock):
        payload = rss_payload([{"title": "Stable", "link": "https://lefaso.net/s"}])
        normalizer = FeedNormalizer()

        first = normalizer.normalize(_ok(payload), limit=5, now=clock())
        clock.advance(hours=1)
        second = normalizer.normalize(_ok(payload), limit=5, now=clock())

        assert first[0].id == second[0].id


class TestAtom:
    def test_atom_entry(self, clock):
        payload = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom test</title>
  <id>urn:test</id>
  <updated>2025-03-09T12:00:00Z</updated>
  <entry>
    <title>Festival des masques</title>
    <link rel="alternate" href="https://example.bf/fesmasques"/>
    <id>urn:test:1</id>
    <updated>2025-03-09T12:00:00Z</updated>
    <summary>Ouverture samedi a Dedougou</summary>
  </entry>
</feed>"""

        items = FeedNormalizer().normalize(_ok(payload), limit=5, now=clock())

        assert len(items) == 1
        assert items[0].title == "Festival des masques"
        assert items[0].link == "https://example.bf/fesmasques"
        assert items[0].published_at == datetime(2025, 3, 9, 12, 0, tzinfo=UTC)
        assert items[0].body_snippet == "Ouverture samedi a Dedougou"


class TestJsonFeed:
    def test_json_feed_items(self, clock):
        payload = json.dumps(
            {
                "version": "https://jsonfeed.org/version/1.1",
                "title": "JSON test",
                "items": [
                    {
                        "id": "1",
                        "url": "https://example.bf/j1",
                        "title": "Premier",
                        "date_published": "2025-03-08T10:00:00Z",
                        "content_text": "Texte complet",
                        "image": "https://example.bf/img.jpg",
                    },
                    {"id": "2", "title": "Second"},
                ],
            }
        ).encode()

        items = FeedNormalizer().normalize(_ok(payload), limit=5, now=clock())

        assert [i.title for i in items] == ["Premier", "Second"]
        assert items[0].published_at == datetime(2025, 3, 8, 10, 0, tzinfo=UTC)
        assert items[0].body_snippet == "Texte complet"
        assert items[0].image == "https://example.bf/img.jpg"
        assert items[1].link == SOURCE.endpoint
        assert items[1].published_at == clock()

    def test_invalid_json_yields_nothing(self, clock):
        items = FeedNormalizer().normalize(_ok(b"{not json"), limit=5, now=clock())
        assert items == []


class TestFailures:
    def test_failed_fetch_yields_nothing(self, clock):
        result = RawFetchResult.failed(SOURCE, SourceTimeout(SOURCE.name, "slow"))
        assert FeedNormalizer().normalize(result, limit=5, now=clock()) == []

    def test_garbage_payload_yields_nothing(self, clock):
        items = FeedNormalizer().normalize(
            _ok(b"\x00\x01 this is not a feed <<<"), limit=5, now=clock()
        )
        assert items == []

    def test_empty_feed(self, clock):
        items = FeedNormalizer().normalize(_ok(rss_payload([])), limit=5, now=clock())
        assert items == []
