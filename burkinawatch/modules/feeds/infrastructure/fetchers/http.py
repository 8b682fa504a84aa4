"""HTTP feed fetcher.

One bounded-time GET per source. Every failure is turned into a typed value on
the returned RawFetchResult so that sibling fetches are never aborted.
"""

import asyncio
import time

import httpx
from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.modules.feeds.domain.entities import SourceDescriptor
from burkinawatch.modules.feeds.domain.exceptions import (
    SourceFetchError,
    SourceHTTPError,
    SourceTimeout,
    SourceUnreachable,
)
from burkinawatch.modules.feeds.domain.fetcher import RawFetchResult


class HttpFeedFetcher:
    """Fetch raw feed payloads over HTTP.

    The timeout bounds the whole request (connect, headers and body), not
    only the gap between two reads. A fallback endpoint only gets what is
    left of that window.
    """

    ACCEPT = (
        "application/rss+xml, application/atom+xml, application/xml, "
        "text/xml, application/feed+json, application/json;q=0.9, */*;q=0.8"
    )

    def __init__(
        self,
        timeout_sec: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec or settings.FETCH_TIMEOUT_SEC
        self.user_agent = user_agent or settings.FETCHER_USER_AGENT
        self._transport = transport

    async def fetch(self, source: SourceDescriptor) -> RawFetchResult:
        """Primary then fallback endpoint, both within one timeout window."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_sec

        result = await self._fetch_endpoint(source, source.endpoint, self.timeout_sec)
        if result.is_success or not source.fallback_endpoint:
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.info(
                f"No time left for the fallback endpoint of {source.name}"
            )
            return result

        logger.info(
            f"Primary endpoint failed for {source.name}, trying fallback: "
            f"{source.fallback_endpoint}"
        )
        return await self._fetch_endpoint(source, source.fallback_endpoint, remaining)

    async def _fetch_endpoint(
        self, source: SourceDescriptor, url: str, timeout_sec: float
    ) -> RawFetchResult:
        start_time = time.time()

        try:
            payload = await asyncio.wait_for(
                self._get(url, timeout_sec), timeout=timeout_sec
            )
            return RawFetchResult.success(
                source=source,
                payload=payload,
                endpoint=url,
                duration_ms=self._elapsed_ms(start_time),
            )
        except (TimeoutError, httpx.TimeoutException) as e:
            error: SourceFetchError = SourceTimeout(
                source.name, f"no response within {self.timeout_sec:g}s"
            )
            logger.warning(f"Feed fetch timeout for {url}: {e!r}")
        except httpx.HTTPStatusError as e:
            error = SourceHTTPError(source.name, e.response.status_code)
            logger.warning(f"Feed fetch HTTP error for {url}: {e.response.status_code}")
        except httpx.HTTPError as e:
            error = SourceUnreachable(source.name, str(e) or type(e).__name__)
            logger.warning(f"Feed fetch error for {url}: {e!r}")

        return RawFetchResult.failed(
            source=source,
            error=error,
            endpoint=url,
            duration_ms=self._elapsed_ms(start_time),
        )

    async def _get(self, url: str, timeout_sec: float) -> bytes:
        async with httpx.AsyncClient(
            timeout=timeout_sec,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(
                url,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": self.ACCEPT,
                },
            )
            response.raise_for_status()
            return response.content

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)
