"""Fetcher and classifier ports."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from burkinawatch.modules.feeds.domain.entities import (
    ExtractedEvent,
    NormalizedItem,
    SourceDescriptor,
)
from burkinawatch.modules.feeds.domain.exceptions import SourceFetchError


@dataclass
class RawFetchResult:
    """Outcome of one fetch attempt. Discarded after normalization."""

    source: SourceDescriptor
    payload: bytes | None = None
    error: SourceFetchError | None = None
    endpoint: str | None = None
    duration_ms: int = 0

    @property
    def is_success(self) -> bool:
        return self.error is None and self.payload is not None

    @classmethod
    def success(
        cls,
        source: SourceDescriptor,
        payload: bytes,
        endpoint: str,
        duration_ms: int = 0,
    ) -> "RawFetchResult":
        return cls(
            source=source,
            payload=payload,
            endpoint=endpoint,
            duration_ms=duration_ms,
        )

    @classmethod
    def failed(
        cls,
        source: SourceDescriptor,
        error: SourceFetchError,
        endpoint: str | None = None,
        duration_ms: int = 0,
    ) -> "RawFetchResult":
        return cls(
            source=source,
            error=error,
            endpoint=endpoint,
            duration_ms=duration_ms,
        )


class FeedFetcher(Protocol):
    async def fetch(self, source: SourceDescriptor) -> RawFetchResult: ...


class EventClassifier(Protocol):
    async def classify(
        self, item: NormalizedItem, today: date
    ) -> ExtractedEvent | None: ...
