"""In-process TTL cache.

One instance per aggregation domain. Entries are immutable and swapped
whole, so a reader sees either the previous collection or the new one.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from burkinawatch.core.infrastructure.clock import Clock, local_now

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached collection with its fetch timestamp."""

    key: str
    collection: tuple[T, ...]
    fetched_at: datetime
    ttl: timedelta | None

    def is_fresh(self, now: datetime) -> bool:
        if self.ttl is None:
            return True
        return now - self.fetched_at < self.ttl


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    """Result of a cache read."""

    collection: tuple[T, ...]
    fresh: bool
    fetched_at: datetime


class TTLCache(Generic[T]):
    """Memory store with a single freshness window.

    ``ttl=None`` means entries never go stale.
    """

    def __init__(
        self,
        name: str,
        ttl: timedelta | None,
        clock: Clock = local_now,
    ) -> None:
        self.name = name
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheLookup[T] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return CacheLookup(
            collection=entry.collection,
            fresh=entry.is_fresh(self._clock()),
            fetched_at=entry.fetched_at,
        )

    def put(self, key: str, collection: list[T] | tuple[T, ...]) -> CacheEntry[T]:
        entry = CacheEntry(
            key=key,
            collection=tuple(collection),
            fetched_at=self._clock(),
            ttl=self.ttl,
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or every key when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, object]:
        now = self._clock()
        entries = list(self._entries.values())
        return {
            "name": self.name,
            "ttl_sec": int(self.ttl.total_seconds()) if self.ttl else None,
            "entries": len(entries),
            "fresh": sum(1 for e in entries if e.is_fresh(now)),
        }
