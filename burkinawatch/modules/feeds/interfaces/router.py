"""Feed API routes.

Each domain exposes a parameterless read returning a JSON array, a refresh
action and a cache invalidation hook.
"""

from fastapi import APIRouter, Depends, Query

from burkinawatch.modules.feeds.application.dependencies import get_feed_hub
from burkinawatch.modules.feeds.application.services import FeedHub
from burkinawatch.modules.feeds.domain.entities import (
    ExtractedEvent,
    FeedDomain,
    NormalizedItem,
    SourceCategory,
)
from burkinawatch.modules.feeds.interfaces.schemas import (
    CacheClearedResponse,
    RefreshResponse,
)

router = APIRouter(tags=["feeds"])


@router.get(
    "/news",
    response_model=list[NormalizedItem],
    summary="Official news",
    description="Latest items from government and national sources, most recent first",
)
async def list_news(hub: FeedHub = Depends(get_feed_hub)) -> list[NormalizedItem]:
    return await hub.news.read()


@router.get(
    "/bulletins",
    response_model=list[NormalizedItem],
    summary="Citizen bulletin",
    description="Items from national, regional and international media, most recent first",
)
async def list_bulletins(
    category: SourceCategory | None = Query(None, description="Category filter"),
    hub: FeedHub = Depends(get_feed_hub),
) -> list[NormalizedItem]:
    items = await hub.bulletins.read()
    if category is None:
        return items
    return [item for item in items if item.category == category.value]


@router.get(
    "/events",
    response_model=list[ExtractedEvent],
    summary="Upcoming events",
    description="Events dated today or later, soonest first",
)
async def list_events(hub: FeedHub = Depends(get_feed_hub)) -> list[ExtractedEvent]:
    return await hub.events.read()


@router.post(
    "/{domain}/refresh",
    response_model=RefreshResponse,
    summary="Refresh a domain",
    description="Clear the domain cache and rebuild it from upstream",
)
async def refresh_domain(
    domain: FeedDomain,
    hub: FeedHub = Depends(get_feed_hub),
) -> RefreshResponse:
    aggregator = hub.get(domain)
    aggregator.clear_cache()
    items = await aggregator.read()
    return RefreshResponse(message="Cache refreshed", count=len(items))


@router.delete(
    "/{domain}/cache",
    response_model=CacheClearedResponse,
    summary="Clear a domain cache",
)
async def clear_domain_cache(
    domain: FeedDomain,
    hub: FeedHub = Depends(get_feed_hub),
) -> CacheClearedResponse:
    hub.get(domain).clear_cache()
    return CacheClearedResponse(message="Cache cleared", domain=domain.value)
