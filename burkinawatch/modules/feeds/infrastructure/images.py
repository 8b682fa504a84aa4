"""Illustration lookup for feed entries.

Two stages:
- ``extract_entry_image`` reads what the feed itself carries (media tags,
  enclosures, inline <img>).
- ``OgImageEnricher`` fetches article pages for bulletins that still have no
  image, and events with no image or only a thumbnail, and reads their Open
  Graph / Twitter card metadata.
"""

import asyncio
import re
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import Any, TypeVar
from urllib.parse import urljoin

import httpx
from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.modules.feeds.domain.entities import ExtractedEvent, NormalizedItem

R = TypeVar("R", NormalizedItem, ExtractedEvent)

_IMG_SRC_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
_IMG_TAG_RE = re.compile(r"<img[^>]+>", re.IGNORECASE)
_WIDTH_RE = re.compile(r"width=[\"']?(\d+)", re.IGNORECASE)

_META_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for prop in ("og:image", "twitter:image")
    for pattern in (
        rf"<meta\s+(?:property|name)=[\"']{prop}[\"']\s+content=[\"']([^\"']+)[\"']",
        rf"<meta\s+content=[\"']([^\"']+)[\"']\s+(?:property|name)=[\"']{prop}[\"']",
    )
)

_SKIP_MARKERS = ("logo", "icon", "avatar", "favicon", "sprite")
_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")
_LOW_QUALITY_MARKERS = ("cache-vignettes", "L150x")


def upgrade_image_url(url: str) -> str:
    """Swap a CMS thumbnail URL for its full-size variant when recognisable."""
    if not url:
        return url
    # SPIP: /local/cache-vignettes/L150xH100/foo.jpg -> /local/cache-gd2/foo.jpg
    upgraded = re.sub(r"cache-vignettes/L\d+xH\d+/", "cache-gd2/", url, flags=re.I)
    if upgraded == url:
        # WordPress: foo-300x200.jpg -> foo-scaled.jpg
        upgraded = re.sub(r"(-)\d+x\d+(\.\w+)$", r"\1scaled\2", url)
    if upgraded == url:
        upgraded = re.sub(r"\?w=\d+(&h=\d+)?", "", url)
        upgraded = re.sub(r"&w=\d+(&h=\d+)?", "", upgraded)
    return upgraded


def extract_entry_image(entry: Any) -> str | None:
    """Pick the best image reference carried by a feedparser entry."""
    url: str | None = None

    for field in ("media_content", "media_thumbnail"):
        for media in entry.get(field) or []:
            if media.get("url"):
                url = media["url"]
                break
        if url:
            break

    if not url:
        for enclosure in entry.get("enclosures") or []:
            if str(enclosure.get("type", "")).startswith("image") and enclosure.get(
                "href"
            ):
                url = enclosure["href"]
                break

    if not url:
        html_parts = [c.get("value", "") for c in entry.get("content") or []]
        html_parts.append(entry.get("summary", "") or "")
        for html in html_parts:
            match = _IMG_SRC_RE.search(html)
            if match:
                url = match.group(1)
                break

    return upgrade_image_url(url) if url else None


def find_page_image(html: str, page_url: str) -> str | None:
    """Read og:image / twitter:image, else the first plausible large <img>."""
    image: str | None = None
    for pattern in _META_PATTERNS:
        match = pattern.search(html)
        if match:
            image = match.group(1)
            break

    if image is None:
        for tag in _IMG_TAG_RE.findall(html):
            width = _WIDTH_RE.search(tag)
            if width and 0 < int(width.group(1)) < 200:
                continue
            src = _IMG_SRC_RE.search(tag)
            if not src:
                continue
            candidate = src.group(1)
            lowered = candidate.lower()
            if any(marker in lowered for marker in _SKIP_MARKERS):
                continue
            if not lowered.split("?")[0].endswith(_IMAGE_EXTENSIONS):
                continue
            image = candidate
            break

    if image is None:
        return None
    return urljoin(page_url, image)


def is_low_quality_image(url: str | None) -> bool:
    """True for a missing image or a CMS thumbnail too small to display."""
    if not url:
        return True
    return any(marker in url for marker in _LOW_QUALITY_MARKERS)


class OgImageEnricher:
    """Fill missing or thumbnail-only images from article page metadata.

    Lookups (including misses) are memoized per URL in a bounded LRU shared
    by every domain using this enricher.
    """

    def __init__(
        self,
        timeout_sec: float | None = None,
        max_items: int | None = None,
        event_max_items: int | None = None,
        batch_size: int | None = None,
        memo_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec or settings.IMAGE_FETCH_TIMEOUT_SEC
        self.max_items = max_items or settings.IMAGE_ENRICH_MAX_ITEMS
        self.event_max_items = event_max_items or settings.EVENT_IMAGE_ENRICH_MAX_ITEMS
        self.batch_size = batch_size or settings.IMAGE_ENRICH_BATCH_SIZE
        self.memo_size = memo_size or settings.IMAGE_MEMO_MAX_ENTRIES
        self._transport = transport
        self._memo: OrderedDict[str, str | None] = OrderedDict()

    async def enrich(self, items: Sequence[NormalizedItem]) -> list[NormalizedItem]:
        """Bulletins without an image, looked up on their article link."""
        pending = [i for i, item in enumerate(items) if not item.image and item.link]
        return await self._fill(items, pending[: self.max_items], lambda i: i.link)

    async def enrich_events(
        self, events: Sequence[ExtractedEvent]
    ) -> list[ExtractedEvent]:
        """Events with no image or a thumbnail, looked up on their official link."""
        pending = [
            i
            for i, event in enumerate(events)
            if event.official_link and is_low_quality_image(event.image)
        ]
        return await self._fill(
            events, pending[: self.event_max_items], lambda e: e.official_link
        )

    async def _fill(
        self,
        records: Sequence[R],
        pending: list[int],
        link_of: Callable[[R], str | None],
    ) -> list[R]:
        enriched = list(records)
        if not pending:
            return enriched

        async with httpx.AsyncClient(
            timeout=self.timeout_sec,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for start in range(0, len(pending), self.batch_size):
                batch = pending[start : start + self.batch_size]
                images = await asyncio.gather(
                    *(self._lookup(client, link_of(records[i])) for i in batch),
                    return_exceptions=True,
                )
                for index, image in zip(batch, images, strict=True):
                    if isinstance(image, str):
                        enriched[index] = records[index].model_copy(
                            update={"image": image}
                        )

        found = sum(1 for i in pending if enriched[i] is not records[i])
        logger.debug(f"Image enrichment: {found}/{len(pending)} images found")
        return enriched

    async def _lookup(self, client: httpx.AsyncClient, url: str) -> str | None:
        if url in self._memo:
            self._memo.move_to_end(url)
            return self._memo[url]

        image: str | None = None
        try:
            response = await client.get(
                url, headers={"User-Agent": settings.FETCHER_USER_AGENT}
            )
            if response.is_success:
                image = find_page_image(response.text, url)
        except httpx.HTTPError as e:
            logger.debug(f"Image lookup failed for {url}: {e!r}")

        self._memo[url] = image
        while len(self._memo) > self.memo_size:
            self._memo.popitem(last=False)
        return image
