"""Geocoding module application dependencies."""

from typing import NoReturn

from burkinawatch.modules.geocoding.application.resolver import GeocodeResolver


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_geocode_resolver() -> GeocodeResolver:
    _missing_dependency("GeocodeResolver")
