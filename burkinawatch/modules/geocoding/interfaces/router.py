"""Geocoding API routes."""

from fastapi import APIRouter, Depends, Query

from burkinawatch.modules.geocoding.application.dependencies import (
    get_geocode_resolver,
)
from burkinawatch.modules.geocoding.application.resolver import GeocodeResolver
from burkinawatch.modules.geocoding.domain.entities import GeocodeResult

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.get(
    "/reverse",
    response_model=GeocodeResult,
    summary="Reverse geocode",
    description=(
        "Address for a coordinate pair. Out-of-range coordinates get the "
        "coordinate-string fallback instead of an error."
    ),
)
async def reverse_geocode(
    lat: float = Query(..., description="Latitude"),
    lng: float = Query(..., description="Longitude"),
    resolver: GeocodeResolver = Depends(get_geocode_resolver),
) -> GeocodeResult:
    return await resolver.resolve(lat, lng)
