"""Geocoding module wiring."""

import httpx
from fastapi import Request

from burkinawatch.modules.geocoding.application.resolver import GeocodeResolver
from burkinawatch.modules.geocoding.infrastructure.providers import (
    GoogleReverseGeocoder,
    NominatimReverseGeocoder,
)


def build_geocode_resolver(
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeocodeResolver:
    return GeocodeResolver(
        providers=[
            GoogleReverseGeocoder(transport=transport),
            NominatimReverseGeocoder(transport=transport),
        ]
    )


def get_geocode_resolver(request: Request) -> GeocodeResolver:
    """GeocodeResolver built by the application lifespan."""
    return request.app.state.geocode_resolver
