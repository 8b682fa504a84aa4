"""Domain aggregators.

Each aggregator owns one domain's cache and refresh protocol:

1. fetch every registered source concurrently (settle-all join)
2. normalize successful payloads (events: classify them, also settle-all)
3. concatenate in registry order, de-duplicate, sort, truncate
4. swap the result into the domain cache

``read()`` serves fresh cache hits directly and otherwise refreshes, with a
per-domain single-flight guard so concurrent misses share one refresh.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Generic, TypeVar

from loguru import logger

from burkinawatch.core.application.concurrency import settle_all
from burkinawatch.core.infrastructure.cache import TTLCache
from burkinawatch.core.infrastructure.clock import Clock, local_now
from burkinawatch.core.infrastructure.logging import BusinessEvents
from burkinawatch.modules.feeds.domain.entities import (
    ExtractedEvent,
    FeedDomain,
    NormalizedItem,
    SourceDescriptor,
)
from burkinawatch.modules.feeds.domain.exceptions import (
    ClassificationUnavailable,
    SourceUnreachable,
)
from burkinawatch.modules.feeds.domain.fetcher import (
    EventClassifier,
    FeedFetcher,
    RawFetchResult,
)
from burkinawatch.modules.feeds.infrastructure.images import OgImageEnricher
from burkinawatch.modules.feeds.infrastructure.normalizer import FeedNormalizer

T = TypeVar("T", NormalizedItem, ExtractedEvent)


@dataclass(frozen=True)
class DomainPolicy:
    """Per-domain refresh and caching rules."""

    domain: FeedDomain
    ttl: timedelta
    per_source_limit: int
    max_results: int | None = None
    # Keep serving the previous collection when every source failed.
    keep_stale_on_failure: bool = True


@dataclass
class RefreshStats:
    """Summary of the last completed refresh."""

    finished_at: datetime
    item_count: int
    failed_sources: int
    total_sources: int
    duration_ms: int
    served: str  # "fresh" | "fallback" | "stale" | "empty"


class Aggregator(ABC, Generic[T]):
    """Cache-fronted fan-out aggregation for one domain."""

    def __init__(
        self,
        policy: DomainPolicy,
        sources: Sequence[SourceDescriptor],
        fetcher: FeedFetcher,
        normalizer: FeedNormalizer,
        cache: TTLCache[T] | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.policy = policy
        self.sources = tuple(sources)
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.cache: TTLCache[T] = (
            cache
            if cache is not None
            else TTLCache(policy.domain.value, policy.ttl, clock=clock)
        )
        self._clock = clock
        self._lock = asyncio.Lock()
        self.last_refresh: RefreshStats | None = None
        self._logger = logger.bind(domain=policy.domain.value)

    @property
    def domain(self) -> FeedDomain:
        return self.policy.domain

    @property
    def cache_key(self) -> str:
        return self.policy.domain.value

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def read(self) -> list[T]:
        """Return the domain collection, refreshing it when stale or absent."""
        lookup = self.cache.get(self.cache_key)
        if lookup is not None and lookup.fresh:
            return self._visible(lookup.collection)

        if lookup is not None and self._lock.locked():
            # A refresh is already running; serve what we have.
            return self._visible(lookup.collection)

        async with self._lock:
            lookup = self.cache.get(self.cache_key)
            if lookup is not None and lookup.fresh:
                return self._visible(lookup.collection)
            collection = await self._refresh_locked()
        return self._visible(collection)

    async def refresh(self) -> list[T]:
        """Rebuild the collection from upstream unconditionally."""
        async with self._lock:
            collection = await self._refresh_locked()
        return self._visible(collection)

    def clear_cache(self) -> None:
        """Manual invalidation hook."""
        self.cache.invalidate(self.cache_key)
        self._logger.info(f"Cache cleared for {self.domain.value}")

    def status(self) -> dict[str, object]:
        stats = self.cache.stats()
        stats["refreshing"] = self._lock.locked()
        stats["sources"] = len(self.sources)
        if self.last_refresh is not None:
            stats["last_refresh"] = {
                "finished_at": self.last_refresh.finished_at.isoformat(),
                "item_count": self.last_refresh.item_count,
                "failed_sources": self.last_refresh.failed_sources,
                "duration_ms": self.last_refresh.duration_ms,
                "served": self.last_refresh.served,
            }
        return stats

    # ------------------------------------------------------------------
    # Refresh pipeline
    # ------------------------------------------------------------------

    async def _refresh_locked(self) -> tuple[T, ...]:
        start_time = time.time()
        now = self._clock()
        self._logger.info(
            f"Refreshing {self.domain.value} from {len(self.sources)} sources"
        )

        fetched = await self._fetch_all()
        succeeded = [r for r in fetched if r.is_success]
        failed_count = len(fetched) - len(succeeded)

        items = await self._build(succeeded, now)
        items = self._sort(self._dedupe(items))
        if self.policy.max_results is not None:
            items = items[: self.policy.max_results]
        items = await self._post_process(items)

        served = "fresh"
        previous = self.cache.get(self.cache_key)
        if not items:
            fallback = self._fallback(now)
            if fallback:
                items = self._sort(fallback)
                served = "fallback"
            elif (
                self.policy.keep_stale_on_failure
                and failed_count == len(self.sources)
                and previous is not None
                and previous.collection
            ):
                items = list(previous.collection)
                served = "stale"
            else:
                served = "empty"

        entry = self.cache.put(self.cache_key, items)

        duration_ms = int((time.time() - start_time) * 1000)
        self.last_refresh = RefreshStats(
            finished_at=entry.fetched_at,
            item_count=len(entry.collection),
            failed_sources=failed_count,
            total_sources=len(self.sources),
            duration_ms=duration_ms,
            served=served,
        )
        if served in ("fallback", "stale"):
            BusinessEvents.fallback_served(
                domain=self.domain.value,
                reason="no items from any source",
                item_count=len(entry.collection),
                served=served,
            )
        BusinessEvents.domain_refreshed(
            domain=self.domain.value,
            item_count=len(entry.collection),
            duration_ms=duration_ms,
            failed_sources=failed_count,
            served=served,
        )
        return entry.collection

    async def _fetch_all(self) -> list[RawFetchResult]:
        outcomes = await settle_all(self.fetcher.fetch(s) for s in self.sources)

        results: list[RawFetchResult] = []
        for source, outcome in zip(self.sources, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                # Fetchers return failures as values; this is a bug path.
                self._logger.opt(exception=outcome).error(
                    f"Fetcher raised for {source.name}"
                )
                outcome = RawFetchResult.failed(
                    source, SourceUnreachable(source.name, repr(outcome))
                )
            if not outcome.is_success and outcome.error is not None:
                BusinessEvents.source_fetch_failed(
                    domain=self.domain.value,
                    source=source.name,
                    error=outcome.error.message,
                    error_code=outcome.error.error_code,
                )
            results.append(outcome)
        return results

    def _normalize_all(
        self, results: Sequence[RawFetchResult], now: datetime
    ) -> list[NormalizedItem]:
        items: list[NormalizedItem] = []
        for result in results:
            items.extend(
                self.normalizer.normalize(
                    result, limit=self.policy.per_source_limit, now=now
                )
            )
        return items

    def _dedupe(self, items: list[T]) -> list[T]:
        seen: set[str] = set()
        unique: list[T] = []
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            unique.append(item)
        return unique

    def _visible(self, collection: tuple[T, ...]) -> list[T]:
        return list(collection)

    async def _post_process(self, items: list[T]) -> list[T]:
        return items

    def _fallback(self, now: datetime) -> list[T] | None:
        return None

    @abstractmethod
    async def _build(self, results: Sequence[RawFetchResult], now: datetime) -> list[T]:
        """Produce the unsorted domain items from successful fetches."""

    @abstractmethod
    def _sort(self, items: list[T]) -> list[T]:
        """Order items; must be stable so ties keep source encounter order."""


class FeedAggregator(Aggregator[NormalizedItem]):
    """News and bulletin aggregation: most recent first."""

    def __init__(
        self,
        policy: DomainPolicy,
        sources: Sequence[SourceDescriptor],
        fetcher: FeedFetcher,
        normalizer: FeedNormalizer,
        cache: TTLCache[NormalizedItem] | None = None,
        clock: Clock = local_now,
        fallback: Callable[[datetime], list[NormalizedItem]] | None = None,
        image_enricher: OgImageEnricher | None = None,
    ) -> None:
        super().__init__(policy, sources, fetcher, normalizer, cache, clock)
        self._fallback_factory = fallback
        self.image_enricher = image_enricher

    async def _build(
        self, results: Sequence[RawFetchResult], now: datetime
    ) -> list[NormalizedItem]:
        return self._normalize_all(results, now)

    def _sort(self, items: list[NormalizedItem]) -> list[NormalizedItem]:
        return sorted(items, key=lambda item: item.published_at, reverse=True)

    async def _post_process(self, items: list[NormalizedItem]) -> list[NormalizedItem]:
        if self.image_enricher is None or not items:
            return items
        try:
            return await self.image_enricher.enrich(items)
        except Exception as e:
            self._logger.warning(f"Image enrichment skipped: {e!r}")
            return items

    def _fallback(self, now: datetime) -> list[NormalizedItem] | None:
        if self._fallback_factory is None:
            return None
        return self._fallback_factory(now)


class EventAggregator(Aggregator[ExtractedEvent]):
    """Upcoming events: classifier-extracted, soonest first, never past-dated."""

    TITLE_KEY_LENGTH = 60

    def __init__(
        self,
        policy: DomainPolicy,
        sources: Sequence[SourceDescriptor],
        fetcher: FeedFetcher,
        normalizer: FeedNormalizer,
        classifier: EventClassifier,
        cache: TTLCache[ExtractedEvent] | None = None,
        clock: Clock = local_now,
        image_enricher: OgImageEnricher | None = None,
    ) -> None:
        super().__init__(policy, sources, fetcher, normalizer, cache, clock)
        self.classifier = classifier
        self.image_enricher = image_enricher

    def _today(self) -> date:
        return self._clock().date()

    async def _build(
        self, results: Sequence[RawFetchResult], now: datetime
    ) -> list[ExtractedEvent]:
        candidates = self._normalize_all(results, now)
        if not candidates:
            return []

        ensure_available = getattr(self.classifier, "ensure_available", None)
        if ensure_available is not None:
            try:
                ensure_available()
            except ClassificationUnavailable as e:
                BusinessEvents.feature_degraded(
                    feature="event_classification",
                    reason=e.message,
                    candidates=len(candidates),
                )
                return []

        today = now.date()
        outcomes = await settle_all(
            self.classifier.classify(item, today) for item in candidates
        )

        events: list[ExtractedEvent] = []
        for item, outcome in zip(candidates, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                self._logger.warning(f"Classification failed for '{item.title}': {outcome!r}")
                continue
            if outcome is not None and outcome.date >= today:
                events.append(outcome)

        self._logger.info(
            f"{len(events)} events extracted from {len(candidates)} articles"
        )
        return events

    def _dedupe(self, items: list[ExtractedEvent]) -> list[ExtractedEvent]:
        seen_titles: set[str] = set()
        unique: list[ExtractedEvent] = []
        for event in super()._dedupe(items):
            key = event.name.lower()[: self.TITLE_KEY_LENGTH]
            if key in seen_titles:
                continue
            seen_titles.add(key)
            unique.append(event)
        return unique

    def _sort(self, items: list[ExtractedEvent]) -> list[ExtractedEvent]:
        return sorted(items, key=lambda event: event.date)

    async def _post_process(self, items: list[ExtractedEvent]) -> list[ExtractedEvent]:
        if self.image_enricher is None or not items:
            return items
        try:
            return await self.image_enricher.enrich_events(items)
        except Exception as e:
            self._logger.warning(f"Event image enrichment skipped: {e!r}")
            return items

    def _visible(self, collection: tuple[ExtractedEvent, ...]) -> list[ExtractedEvent]:
        today = self._today()
        return [event for event in collection if event.date >= today]
