"""Feed module wiring."""

from datetime import timedelta

from fastapi import Request

from burkinawatch.core.config import settings
from burkinawatch.core.infrastructure.clock import Clock, local_now
from burkinawatch.modules.feeds.application.aggregator import (
    DomainPolicy,
    EventAggregator,
    FeedAggregator,
)
from burkinawatch.modules.feeds.application.fallback import fallback_news
from burkinawatch.modules.feeds.application.scheduler import RefreshScheduler
from burkinawatch.modules.feeds.application.services import FeedHub
from burkinawatch.modules.feeds.domain.entities import FeedDomain
from burkinawatch.modules.feeds.domain.fetcher import EventClassifier, FeedFetcher
from burkinawatch.modules.feeds.domain.registry import sources_for
from burkinawatch.modules.feeds.infrastructure.classifier import OpenAIEventClassifier
from burkinawatch.modules.feeds.infrastructure.fetchers.http import HttpFeedFetcher
from burkinawatch.modules.feeds.infrastructure.images import OgImageEnricher
from burkinawatch.modules.feeds.infrastructure.normalizer import FeedNormalizer


def news_policy() -> DomainPolicy:
    return DomainPolicy(
        domain=FeedDomain.NEWS,
        ttl=timedelta(seconds=settings.NEWS_CACHE_TTL_SEC),
        per_source_limit=settings.NEWS_ITEMS_PER_SOURCE,
        max_results=settings.NEWS_MAX_RESULTS,
        keep_stale_on_failure=False,
    )


def bulletin_policy() -> DomainPolicy:
    return DomainPolicy(
        domain=FeedDomain.BULLETINS,
        ttl=timedelta(seconds=settings.BULLETIN_CACHE_TTL_SEC),
        per_source_limit=settings.BULLETIN_ITEMS_PER_SOURCE,
    )


def event_policy() -> DomainPolicy:
    return DomainPolicy(
        domain=FeedDomain.EVENTS,
        ttl=timedelta(seconds=settings.EVENT_CACHE_TTL_SEC),
        per_source_limit=settings.EVENT_ITEMS_PER_SOURCE,
    )


def build_feed_hub(
    fetcher: FeedFetcher | None = None,
    classifier: EventClassifier | None = None,
    image_enricher: OgImageEnricher | None = None,
    clock: Clock = local_now,
) -> FeedHub:
    """Construct every domain aggregator with its own cache."""
    fetcher = fetcher or HttpFeedFetcher()
    normalizer = FeedNormalizer()
    if image_enricher is None and settings.IMAGE_ENRICHMENT_ENABLED:
        image_enricher = OgImageEnricher()

    return FeedHub(
        news=FeedAggregator(
            news_policy(),
            sources_for(FeedDomain.NEWS),
            fetcher,
            normalizer,
            clock=clock,
            fallback=fallback_news,
        ),
        bulletins=FeedAggregator(
            bulletin_policy(),
            sources_for(FeedDomain.BULLETINS),
            fetcher,
            normalizer,
            clock=clock,
            image_enricher=image_enricher,
        ),
        events=EventAggregator(
            event_policy(),
            sources_for(FeedDomain.EVENTS),
            fetcher,
            normalizer,
            classifier=classifier or OpenAIEventClassifier(),
            clock=clock,
            image_enricher=image_enricher,
        ),
    )


def build_scheduler(hub: FeedHub, clock: Clock = local_now) -> RefreshScheduler:
    return RefreshScheduler(
        events=hub.events,
        interval_refreshes=[
            (hub.news, settings.NEWS_REFRESH_INTERVAL_SEC),
            (hub.bulletins, settings.BULLETIN_REFRESH_INTERVAL_SEC),
        ],
        clock=clock,
    )


def get_feed_hub(request: Request) -> FeedHub:
    """FeedHub built by the application lifespan."""
    return request.app.state.feed_hub
