"""Geocoding domain exceptions."""

from fastapi import status

from burkinawatch.core.domain.exceptions import DomainException


class InvalidCoordinates(DomainException):
    """Latitude or longitude is not a finite in-range number."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_COORDINATES"

    def __init__(self, lat: float, lng: float):
        self.lat = lat
        self.lng = lng
        super().__init__(f"Invalid coordinates: {lat}, {lng}")


class GeocodeProviderError(DomainException):
    """A provider tier failed or returned no address."""

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "GEOCODE_PROVIDER_ERROR"

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")
