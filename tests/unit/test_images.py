"""Image extraction and enrichment tests."""

from datetime import date

import httpx
import pytest

from burkinawatch.modules.feeds.domain.entities import EventType, ExtractedEvent
from burkinawatch.modules.feeds.infrastructure.images import (
    OgImageEnricher,
    extract_entry_image,
    find_page_image,
    is_low_quality_image,
    upgrade_image_url,
)

pytestmark = pytest.mark.anyio


def _event(
    slug: str,
    image: str | None = None,
    with_link: bool = True,
) -> ExtractedEvent:
    return ExtractedEvent(
        id=f"event:{slug}",
        name=slug,
        type=EventType.CULTURAL,
        date=date(2025, 3, 20),
        venue="Ouagadougou",
        city="Ouagadougou",
        official_link=f"https://example.bf/{slug}" if with_link else None,
        image=image,
    )


class TestUpgradeImageUrl:
    def test_spip_thumbnail(self):
        url = "https://lefaso.net/local/cache-vignettes/L150xH100/photo.jpg"
        assert upgrade_image_url(url) == "https://lefaso.net/local/cache-gd2/photo.jpg"

    def test_wordpress_size_suffix(self):
        url = "https://burkina24.com/wp-content/uploads/photo-300x200.jpg"
        assert upgrade_image_url(url) == (
            "https://burkina24.com/wp-content/uploads/photo-scaled.jpg"
        )

    def test_plain_url_unchanged(self):
        url = "https://example.bf/photo.jpg"
        assert upgrade_image_url(url) == url


class TestExtractEntryImage:
    def test_media_content_first(self):
        entry = {
            "media_content": [{"url": "https://example.bf/media.jpg"}],
            "enclosures": [{"type": "image/jpeg", "href": "https://example.bf/enc.jpg"}],
        }
        assert extract_entry_image(entry) == "https://example.bf/media.jpg"

    def test_image_enclosure(self):
        entry = {
            "enclosures": [
                {"type": "audio/mpeg", "href": "https://example.bf/a.mp3"},
                {"type": "image/png", "href": "https://example.bf/enc.png"},
            ]
        }
        assert extract_entry_image(entry) == "https://example.bf/enc.png"

    def test_inline_img_in_summary(self):
        entry = {"summary": '<p><img src="https://example.bf/inline.jpg" /> texte</p>'}
        assert extract_entry_image(entry) == "https://example.bf/inline.jpg"

    def test_nothing(self):
        assert extract_entry_image({"summary": "texte"}) is None


class TestFindPageImage:
    def test_og_image(self):
        html = '<head><meta property="og:image" content="/img/cover.jpg"></head>'
        assert find_page_image(html, "https://example.bf/article/1") == (
            "https://example.bf/img/cover.jpg"
        )

    def test_content_before_property(self):
        html = '<meta content="https://cdn.example.bf/c.jpg" name="twitter:image">'
        assert find_page_image(html, "https://example.bf/a") == "https://cdn.example.bf/c.jpg"

    def test_first_large_non_logo_img(self):
        html = (
            '<img src="/static/logo.png">'
            '<img src="/thumb.jpg" width="80">'
            '<img src="/script.js">'
            '<img src="/photos/main.jpg" width="640">'
        )
        assert find_page_image(html, "https://example.bf/a") == (
            "https://example.bf/photos/main.jpg"
        )

    def test_no_image(self):
        assert find_page_image("<p>rien</p>", "https://example.bf/a") is None


class TestOgImageEnricher:
    async def test_fills_missing_images_only(self, make_item):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(
                200,
                text='<meta property="og:image" content="https://example.bf/og.jpg">',
            )

        items = [
            make_item(link="https://example.bf/1"),
            make_item(link="https://example.bf/2", image="https://example.bf/own.jpg"),
        ]
        enricher = OgImageEnricher(transport=httpx.MockTransport(handler))

        result = await enricher.enrich(items)

        assert result[0].image == "https://example.bf/og.jpg"
        assert result[1].image == "https://example.bf/own.jpg"
        assert requested == ["https://example.bf/1"]
        assert items[0].image is None

    async def test_failures_leave_items_untouched(self, make_item):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/down":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(404)

        items = [
            make_item(link="https://example.bf/down"),
            make_item(link="https://example.bf/missing"),
        ]
        enricher = OgImageEnricher(transport=httpx.MockTransport(handler))

        result = await enricher.enrich(items)

        assert [i.image for i in result] == [None, None]

    async def test_caps_lookups_and_memoizes(self, make_item):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(200, text="<p>no image</p>")

        items = [make_item(link=f"https://example.bf/{i}") for i in range(7)]
        enricher = OgImageEnricher(
            max_items=4, batch_size=2, transport=httpx.MockTransport(handler)
        )

        await enricher.enrich(items)
        await enricher.enrich(items)

        assert sorted(requested) == ["/0", "/1", "/2", "/3"]

    async def test_events_with_thumbnails_or_no_image_are_enriched(self):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(
                200,
                text='<meta property="og:image" content="https://example.bf/affiche.jpg">',
            )

        events = [
            _event("none", image=None),
            _event("vignette", image="https://example.bf/local/cache-vignettes/L150xH100/a.jpg"),
            _event("good", image="https://example.bf/poster.jpg"),
            _event("nolink", with_link=False),
        ]
        enricher = OgImageEnricher(transport=httpx.MockTransport(handler))

        result = await enricher.enrich_events(events)

        assert [e.image for e in result] == [
            "https://example.bf/affiche.jpg",
            "https://example.bf/affiche.jpg",
            "https://example.bf/poster.jpg",
            None,
        ]
        assert requested == ["/none", "/vignette"]

    async def test_event_lookups_capped(self):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(404)

        events = [_event(str(i)) for i in range(6)]
        enricher = OgImageEnricher(
            event_max_items=3, transport=httpx.MockTransport(handler)
        )

        await enricher.enrich_events(events)

        assert sorted(requested) == ["/0", "/1", "/2"]

    async def test_memo_is_bounded(self, make_item):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(200, text="<p>no image</p>")

        enricher = OgImageEnricher(memo_size=2, transport=httpx.MockTransport(handler))

        for i in range(3):
            await enricher.enrich([make_item(link=f"https://example.bf/{i}")])
        await enricher.enrich([make_item(link="https://example.bf/0")])

        assert len(enricher._memo) == 2
        assert requested == ["/0", "/1", "/2", "/0"]


class TestLowQualityImage:
    def test_markers(self):
        assert is_low_quality_image(None)
        assert is_low_quality_image("https://x.bf/local/cache-vignettes/L150xH100/a.jpg")
        assert is_low_quality_image("https://x.bf/IMG/L150x100_a.jpg")
        assert not is_low_quality_image("https://x.bf/IMG/jpg/affiche.jpg")
