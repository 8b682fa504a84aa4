"""Concurrency helpers."""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def settle_all(aws: Iterable[Awaitable[T]]) -> list[T | BaseException]:
    """Run awaitables concurrently and wait for every one of them.

    Unlike a fail-fast join, an exception in one awaitable never cancels or
    discards its siblings: it is returned in that awaitable's slot. Result
    order matches input order, not completion order.
    """
    return await asyncio.gather(*aws, return_exceptions=True)
