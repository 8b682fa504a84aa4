"""Reverse-geocode resolution chain.

validate -> cache -> primary -> secondary -> coordinate string.
Only provider answers are cached; the coordinate fallback is recomputed
on every call so a later request can still get a real address.
"""

import math
from collections.abc import Sequence

from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.core.infrastructure.cache import TTLCache
from burkinawatch.core.infrastructure.logging import BusinessEvents
from burkinawatch.modules.geocoding.domain.entities import (
    GeocodeResult,
    GeocodeSource,
    coordinate_key,
    coordinate_label,
)
from burkinawatch.modules.geocoding.domain.exceptions import (
    GeocodeProviderError,
    InvalidCoordinates,
)
from burkinawatch.modules.geocoding.domain.provider import ReverseGeocoder


def validate_coordinates(lat: float, lng: float) -> None:
    if not (isinstance(lat, int | float) and isinstance(lng, int | float)):
        raise InvalidCoordinates(lat, lng)
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidCoordinates(lat, lng)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidCoordinates(lat, lng)


class GeocodeResolver:
    """Resolve coordinates to an address through ordered provider tiers.

    ``providers`` is (primary, secondary); a tier that is not configured is
    skipped without a network call.
    """

    TIER_SOURCES = (GeocodeSource.PRIMARY, GeocodeSource.SECONDARY)

    def __init__(
        self,
        providers: Sequence[ReverseGeocoder],
        cache: TTLCache[GeocodeResult] | None = None,
        precision: int | None = None,
    ) -> None:
        self.providers = tuple(providers)[: len(self.TIER_SOURCES)]
        self.cache: TTLCache[GeocodeResult] = (
            cache if cache is not None else TTLCache("geocode", ttl=None)
        )
        self.precision = precision or settings.GEOCODE_PRECISION

    async def resolve(self, lat: float, lng: float) -> GeocodeResult:
        try:
            validate_coordinates(lat, lng)
        except InvalidCoordinates as e:
            logger.info(e.message)
            BusinessEvents.geocode_resolved(
                source=GeocodeSource.FALLBACK_COORDINATES.value,
                cached=False,
                reason="invalid_coordinates",
            )
            return self._fallback(lat, lng)

        key = coordinate_key(lat, lng, self.precision)
        lookup = self.cache.get(key)
        if lookup is not None and lookup.collection:
            result = lookup.collection[0]
            BusinessEvents.geocode_resolved(source=result.source.value, cached=True)
            return result

        for provider, source in zip(self.providers, self.TIER_SOURCES, strict=False):
            if not provider.configured:
                continue
            try:
                address = await provider.reverse(lat, lng)
            except GeocodeProviderError as e:
                logger.warning(f"Geocoding tier {provider.name} failed: {e.detail}")
                continue

            result = GeocodeResult(address=address, source=source)
            self.cache.put(key, (result,))
            BusinessEvents.geocode_resolved(
                source=source.value, cached=False, provider=provider.name
            )
            return result

        BusinessEvents.geocode_resolved(
            source=GeocodeSource.FALLBACK_COORDINATES.value, cached=False
        )
        return self._fallback(lat, lng)

    def clear_cache(self) -> None:
        self.cache.invalidate()

    def status(self) -> dict[str, object]:
        return self.cache.stats()

    def _fallback(self, lat: float, lng: float) -> GeocodeResult:
        try:
            address = coordinate_label(lat, lng, self.precision)
        except (TypeError, ValueError):
            address = f"{lat}, {lng}"
        return GeocodeResult(
            address=address, source=GeocodeSource.FALLBACK_COORDINATES
        )
