"""Feed payload normalizer.

Parses RSS 2.0 / RSS 1.0 / Atom (via feedparser) and JSON Feed payloads into
NormalizedItem. Field mapping, first non-empty value wins:

- title: native title, else "untitled"
- link: native link, else the source endpoint
- date: published / updated / created, else normalization time
- description: snippet, else full content, else description, else ""
"""

import html
import json
import re
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import feedparser
from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.modules.feeds.domain.entities import (
    NormalizedItem,
    SourceDescriptor,
    stable_item_id,
)
from burkinawatch.modules.feeds.domain.exceptions import MalformedPayload
from burkinawatch.modules.feeds.domain.fetcher import RawFetchResult
from burkinawatch.modules.feeds.infrastructure.images import (
    extract_entry_image,
    upgrade_image_url,
)

UNTITLED = "untitled"

_TAG_RE = re.compile(r"<[^>]+>")


class FeedNormalizer:
    """Turn raw payloads into capped lists of NormalizedItem."""

    def __init__(self, snippet_max_length: int | None = None) -> None:
        self.snippet_max_length = snippet_max_length or settings.SNIPPET_MAX_LENGTH

    def normalize(
        self,
        result: RawFetchResult,
        limit: int,
        now: datetime,
    ) -> list[NormalizedItem]:
        """Normalize one successful fetch.

        Args:
            result: fetch outcome; failed results yield an empty list
            limit: maximum number of items kept for this source
            now: timestamp used for entries without a date

        Returns:
            list[NormalizedItem]: at most ``limit`` items, feed order preserved
        """
        if not result.is_success or result.payload is None:
            return []

        try:
            entries = self._parse(result.source, result.payload)
        except MalformedPayload as e:
            logger.warning(e.message)
            return []

        items: list[NormalizedItem] = []
        for entry in entries:
            if len(items) >= limit:
                break
            try:
                items.append(self._to_item(result.source, entry, now))
            except Exception as e:
                logger.debug(f"Skipping malformed entry from {result.source.name}: {e}")
                continue
        return items

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse(self, source: SourceDescriptor, payload: bytes) -> list[dict[str, Any]]:
        stripped = payload.lstrip()
        if stripped[:1] in (b"{", b"["):
            return self._parse_json_feed(source, stripped)

        feed = feedparser.parse(payload)
        if not feed.entries:
            if feed.get("bozo"):
                raise MalformedPayload(
                    source.name, str(feed.get("bozo_exception") or "unparseable")
                )
            return []
        return [self._from_feedparser(entry) for entry in feed.entries]

    def _parse_json_feed(
        self, source: SourceDescriptor, payload: bytes
    ) -> list[dict[str, Any]]:
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedPayload(source.name, f"invalid JSON: {e}") from e

        raw_items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(raw_items, list):
            raise MalformedPayload(source.name, "JSON payload has no item list")

        entries: list[dict[str, Any]] = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            image = raw.get("image") or raw.get("banner_image")
            entries.append(
                {
                    "title": raw.get("title"),
                    "link": raw.get("url") or raw.get("external_url") or raw.get("link"),
                    "date": self._parse_date_string(
                        raw.get("date_published")
                        or raw.get("date_modified")
                        or raw.get("pubDate")
                    ),
                    "snippet": raw.get("summary"),
                    "content": raw.get("content_text") or raw.get("content_html"),
                    "description": raw.get("description"),
                    "image": upgrade_image_url(image) if isinstance(image, str) else None,
                }
            )
        return entries

    def _from_feedparser(self, entry: Any) -> dict[str, Any]:
        link = entry.get("link", "")
        if not link:
            for candidate in entry.get("links", []):
                if candidate.get("rel") in ("alternate", None):
                    link = candidate.get("href", "")
                    break

        content = entry.get("content") or []
        return {
            "title": entry.get("title"),
            "link": link,
            "date": self._parse_feed_date(entry),
            "snippet": entry.get("summary"),
            "content": content[0].get("value") if content else None,
            "description": entry.get("description"),
            "image": extract_entry_image(entry),
        }

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _to_item(
        self, source: SourceDescriptor, entry: dict[str, Any], now: datetime
    ) -> NormalizedItem:
        title = self._clean_title(entry.get("title")) or UNTITLED
        link = (entry.get("link") or "").strip() or source.endpoint
        published_at = entry.get("date") or now

        description = ""
        for field in ("snippet", "content", "description"):
            text = self._strip_html(entry.get(field) or "")
            if text:
                description = text
                break

        return NormalizedItem(
            id=stable_item_id(source.name, link, title),
            source_name=source.name,
            title=title,
            body_snippet=self._truncate_snippet(description),
            link=link,
            published_at=published_at,
            category=source.category.value,
            image=entry.get("image"),
        )

    def _parse_feed_date(self, entry: Any) -> datetime | None:
        # feedparser normalizes dates to UTC struct_time
        for field in ("published_parsed", "updated_parsed", "created_parsed"):
            parsed = entry.get(field)
            if parsed:
                try:
                    return datetime(*parsed[:6], tzinfo=UTC)
                except (TypeError, ValueError) as e:
                    logger.debug(f"Failed to parse {field}: {e}")

        for field in ("published", "updated", "created"):
            parsed = self._parse_date_string(entry.get(field))
            if parsed:
                return parsed
        return None

    @staticmethod
    def _parse_date_string(value: Any) -> datetime | None:
        if not isinstance(value, str) or not value.strip():
            return None
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    def _truncate_snippet(self, text: str) -> str:
        if len(text) <= self.snippet_max_length:
            return text
        return text[: self.snippet_max_length - 3] + "..."

    @staticmethod
    def _clean_title(title: Any) -> str:
        if not isinstance(title, str):
            return ""
        cleaned = html.unescape(_TAG_RE.sub("", title))
        return " ".join(cleaned.split())

    @staticmethod
    def _strip_html(text: str) -> str:
        text = _TAG_RE.sub(" ", text)
        text = html.unescape(text)
        return " ".join(text.split())
