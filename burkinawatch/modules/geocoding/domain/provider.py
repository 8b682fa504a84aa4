"""Reverse-geocoding provider port."""

from typing import Protocol


class ReverseGeocoder(Protocol):
    """One provider tier.

    ``reverse`` returns the address, or raises GeocodeProviderError when
    the provider fails or has no result for the coordinates.
    """

    name: str

    @property
    def configured(self) -> bool: ...

    async def reverse(self, lat: float, lng: float) -> str: ...
