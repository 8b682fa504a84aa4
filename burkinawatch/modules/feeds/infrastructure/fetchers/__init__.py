"""Feed fetchers."""

from burkinawatch.modules.feeds.infrastructure.fetchers.http import HttpFeedFetcher

__all__ = ["HttpFeedFetcher"]
