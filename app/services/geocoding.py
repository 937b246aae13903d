"""
Address geocoding through the Google Geocoding API.

No retries and no explicit timeout: a slow upstream blocks the request until
the HTTP client's default timeout fires.
"""

import logging
from typing import Dict, Optional

import httpx

from app.config import get_settings
from app.exceptions import GeocodingError

logger = logging.getLogger(__name__)


def format_address(
    address1: str,
    city: str,
    country: str,
    address2: Optional[str] = None,
    state: Optional[str] = None,
    postal_code: Optional[str] = None,
) -> str:
    """Single-line address in the form the geocoder expects."""
    line2 = f"{address2}, " if address2 else ""
    return f"{address1}, {line2}{city}, {state or ''}, {postal_code or ''}, {country}"


class GoogleGeocoder:
    """Resolves addresses to {"lat", "lng"}."""

    def __init__(
        self,
        api_key: str,
        url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.transport = transport

    async def geocode(self, address: str) -> Optional[Dict[str, float]]:
        """
        Look up an address.

        Returns:
            {"lat": ..., "lng": ...} for the best match, or None when the API
            finds nothing usable

        Raises:
            GeocodingError: If the API call itself fails
        """
        logger.info(f"Geocoding address: {address}")
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(
                    self.url, params={"address": address, "key": self.api_key}
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Geocoding request failed: {e}")
            raise GeocodingError(f"Geocoding failed: {e}")

        if data.get("status") != "OK" or not data.get("results"):
            logger.warning(f"No geocoding match ({data.get('status')}) for {address}")
            return None

        location = data["results"][0]["geometry"]["location"]
        logger.info(f"Geocoded location: {location}")
        return {"lat": location["lat"], "lng": location["lng"]}


def get_geocoder() -> GoogleGeocoder:
    """Dependency returning the configured geocoder."""
    settings = get_settings()
    return GoogleGeocoder(settings.google_maps_api_key, settings.geocode_url)
