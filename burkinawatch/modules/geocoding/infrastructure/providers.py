"""Reverse-geocoding providers.

Google Geocoding (keyed) is the primary tier and Nominatim the keyless
secondary. Each provider makes a single bounded request per call.
"""

from typing import Any

import httpx
from loguru import logger

from burkinawatch.core.config import settings
from burkinawatch.modules.geocoding.domain.exceptions import GeocodeProviderError


class _HttpGeocoder:
    name = "http"

    def __init__(
        self,
        timeout_sec: float | None = None,
        user_agent: str | None = None,
        language: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec or settings.GEOCODE_TIMEOUT_SEC
        self.user_agent = user_agent or settings.FETCHER_USER_AGENT
        self.language = language or settings.GEOCODE_LANGUAGE
        self._transport = transport

    @property
    def configured(self) -> bool:
        return True

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_sec,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    url,
                    params=params,
                    headers={"User-Agent": self.user_agent},
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise GeocodeProviderError(
                self.name, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise GeocodeProviderError(self.name, repr(e)) from e
        except ValueError as e:
            raise GeocodeProviderError(self.name, "invalid JSON response") from e


class GoogleReverseGeocoder(_HttpGeocoder):
    """Google Geocoding API, used only when an API key is configured."""

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
        self.url = url or settings.GOOGLE_GEOCODE_URL

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def reverse(self, lat: float, lng: float) -> str:
        data = await self._get_json(
            self.url,
            {
                "latlng": f"{lat},{lng}",
                "key": self.api_key,
                "language": self.language,
            },
        )
        status = data.get("status") if isinstance(data, dict) else None
        results = data.get("results") if isinstance(data, dict) else None
        if status != "OK" or not results:
            logger.warning(f"Google geocoding returned status {status}")
            raise GeocodeProviderError(self.name, f"status {status}")

        address = results[0].get("formatted_address")
        if not address:
            raise GeocodeProviderError(self.name, "no formatted_address")
        return address


class NominatimReverseGeocoder(_HttpGeocoder):
    """OpenStreetMap Nominatim. Requires an identifying User-Agent."""

    name = "nominatim"

    def __init__(self, url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url or settings.NOMINATIM_REVERSE_URL

    async def reverse(self, lat: float, lng: float) -> str:
        data = await self._get_json(
            self.url,
            {
                "format": "json",
                "lat": lat,
                "lon": lng,
                "accept-language": self.language,
            },
        )
        address = data.get("display_name") if isinstance(data, dict) else None
        if not address:
            logger.warning("Nominatim returned no results")
            raise GeocodeProviderError(self.name, "no display_name")
        return address
