"""Feed hub: the per-process set of domain aggregators."""

from dataclasses import dataclass

from burkinawatch.modules.feeds.application.aggregator import (
    Aggregator,
    EventAggregator,
    FeedAggregator,
)
from burkinawatch.modules.feeds.domain.entities import FeedDomain


@dataclass
class FeedHub:
    """Handles to every aggregation domain, built once at startup."""

    news: FeedAggregator
    bulletins: FeedAggregator
    events: EventAggregator

    def get(self, domain: FeedDomain) -> Aggregator:
        return {
            FeedDomain.NEWS: self.news,
            FeedDomain.BULLETINS: self.bulletins,
            FeedDomain.EVENTS: self.events,
        }[domain]

    def all(self) -> list[Aggregator]:
        return [self.news, self.bulletins, self.events]

    def status(self) -> dict[str, dict[str, object]]:
        return {a.domain.value: a.status() for a in self.all()}
