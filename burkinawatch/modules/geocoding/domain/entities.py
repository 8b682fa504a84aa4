"""Geocoding domain entities."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class GeocodeSource(StrEnum):
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    FALLBACK_COORDINATES = "FallbackCoordinates"


class GeocodeResult(BaseModel):
    """Human-readable address for a coordinate pair."""

    model_config = ConfigDict(frozen=True)

    address: str
    source: GeocodeSource


def coordinate_key(lat: float, lng: float, precision: int = 6) -> str:
    """Cache key: both coordinates rounded to ``precision`` decimals."""
    return f"{lat:.{precision}f},{lng:.{precision}f}"


def coordinate_label(lat: float, lng: float, precision: int = 6) -> str:
    return f"{lat:.{precision}f}, {lng:.{precision}f}"
