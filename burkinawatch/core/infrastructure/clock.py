"""Local wall-clock helpers."""

from collections.abc import Callable
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from burkinawatch.core.config import settings

Clock = Callable[[], datetime]


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def local_now() -> datetime:
    """Current time in the configured local timezone (tz-aware)."""
    return datetime.now(local_tz())


def seconds_until_next_midnight(now: datetime) -> float:
    """Seconds from ``now`` to the next midnight in ``now``'s timezone."""
    tomorrow = (now + timedelta(days=1)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return max((tomorrow - now).total_seconds(), 0.0)
