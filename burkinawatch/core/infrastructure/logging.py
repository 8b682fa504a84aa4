"""Logging configuration with structlog integration.

Two logging channels:
1. loguru: general operational / debug logs
2. structlog: structured business events (refreshes, degradations, fallbacks)
"""

import sys
from typing import Any

import structlog
from loguru import logger

from burkinawatch.core.config import settings


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    _configure_structlog()
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def _configure_structlog() -> None:
    """Configure the structlog processor chain."""
    if settings.ENVIRONMENT == "local":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """Configure loguru."""
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/burkinawatch_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# Business event logger
# ============================================================================


class BusinessEvents:
    """Structured business event helper.

    Usage:
        from burkinawatch.core.infrastructure.logging import BusinessEvents

        BusinessEvents.domain_refreshed(domain="news", item_count=10, duration_ms=812)
        BusinessEvents.source_fetch_failed(domain="news", source="SIG", error="HTTP 503")
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def domain_refreshed(
        cls,
        domain: str,
        item_count: int,
        duration_ms: int,
        failed_sources: int = 0,
        **extra: Any,
    ) -> None:
        """Record a completed domain refresh."""
        cls._log.info(
            "domain_refreshed",
            event_type="refresh",
            domain=domain,
            item_count=item_count,
            duration_ms=duration_ms,
            failed_sources=failed_sources,
            **extra,
        )

    @classmethod
    def source_fetch_failed(
        cls,
        domain: str,
        source: str,
        error: str,
        **extra: Any,
    ) -> None:
        """Record a failed source fetch."""
        cls._log.warning(
            "source_fetch_failed",
            event_type="fetch_error",
            domain=domain,
            source=source,
            error=error,
            **extra,
        )

    @classmethod
    def fallback_served(
        cls,
        domain: str,
        reason: str,
        item_count: int,
        **extra: Any,
    ) -> None:
        """Record that a fallback or stale collection replaced a refresh result."""
        cls._log.warning(
            "fallback_served",
            event_type="fallback",
            domain=domain,
            reason=reason,
            item_count=item_count,
            **extra,
        )

    @classmethod
    def geocode_resolved(
        cls,
        source: str,
        cached: bool,
        **extra: Any,
    ) -> None:
        """Record a reverse-geocoding resolution."""
        cls._log.info(
            "geocode_resolved",
            event_type="geocode",
            source=source,
            cached=cached,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """Record a feature running in degraded mode."""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
