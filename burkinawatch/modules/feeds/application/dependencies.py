"""Feed module application dependencies."""

from typing import NoReturn

from burkinawatch.modules.feeds.application.services import FeedHub


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_feed_hub() -> FeedHub:
    _missing_dependency("FeedHub")
