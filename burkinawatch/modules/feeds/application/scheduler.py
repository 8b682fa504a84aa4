"""Background refresh scheduler.

- events: warm-up shortly after start, then a one-shot timer aligned to the
  next local midnight, re-armed every 24 hours (invalidate + refresh), so the
  "today or later" filter is re-evaluated each calendar day without traffic.
- news / bulletins: optional fixed-interval refresh (0 disables it); lazy TTL
  expiry on read still applies.
"""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.core.infrastructure.clock import (
    Clock,
    local_now,
    seconds_until_next_midnight,
)
from burkinawatch.modules.feeds.application.aggregator import Aggregator

DAY_SECONDS = 24 * 60 * 60

Sleep = Callable[[float], Awaitable[None]]


class RefreshScheduler:
    """Owns the asyncio timer tasks for proactive cache refreshes."""

    def __init__(
        self,
        events: Aggregator,
        interval_refreshes: list[tuple[Aggregator, float]] | None = None,
        warmup_delay_sec: float | None = None,
        clock: Clock = local_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.events = events
        self.interval_refreshes = [
            (aggregator, interval)
            for aggregator, interval in (interval_refreshes or [])
            if interval > 0
        ]
        self.warmup_delay_sec = (
            settings.EVENTS_WARMUP_DELAY_SEC
            if warmup_delay_sec is None
            else warmup_delay_sec
        )
        self._clock = clock
        self._sleep = sleep
        self._tasks: list[asyncio.Task[None]] = []
        self._logger = logger.bind(service="RefreshScheduler")

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._warmup(), name="events-warmup"),
            asyncio.create_task(self._midnight_loop(), name="events-midnight"),
        ]
        for aggregator, interval in self.interval_refreshes:
            self._tasks.append(
                asyncio.create_task(
                    self._interval_loop(aggregator, interval),
                    name=f"{aggregator.domain.value}-interval",
                )
            )
        self._logger.info(f"Scheduler started with {len(self._tasks)} timers")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._logger.info("Scheduler stopped")

    async def _warmup(self) -> None:
        await self._sleep(self.warmup_delay_sec)
        await self._run(self.events, invalidate=False)

    async def _midnight_loop(self) -> None:
        delay = seconds_until_next_midnight(self._clock())
        self._logger.info(f"Next events rollover in {delay:.0f}s")
        await self._sleep(delay)
        while True:
            await self._run(self.events, invalidate=True)
            await self._sleep(DAY_SECONDS)

    async def _interval_loop(self, aggregator: Aggregator, interval: float) -> None:
        while True:
            await self._sleep(interval)
            await self._run(aggregator, invalidate=False)

    async def _run(self, aggregator: Aggregator, invalidate: bool) -> None:
        try:
            if invalidate:
                aggregator.clear_cache()
            await aggregator.refresh()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._logger.exception(
                f"Scheduled refresh of {aggregator.domain.value} failed: {e}"
            )
