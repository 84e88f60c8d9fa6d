"""
Address to coordinate resolution.

``GoogleGeocoder`` calls the Google Geocoding HTTP API and takes the first
result. Any transport, HTTP or payload problem is reported as
``GeocodeError``.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from src.config import get_settings
from src.kernel.errors import GeocodeError
from src.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


class Geocoder(Protocol):
    async def resolve(self, address: str) -> Coordinates:
        ...


class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.client = client
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self.url = url or settings.geocoder_url
        self.timeout = timeout or settings.geocoder_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip())

    async def resolve(self, address: str) -> Coordinates:
        if not self.configured:
            raise GeocodeError("Geocoding is not configured on this server")

        params = {"address": address, "key": self.api_key}
        try:
            resp = await self.client.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geocoding request failed: %s", exc, extra={"address": address})
            raise GeocodeError() from exc

        results = data.get("results") or []
        if data.get("status") == "ZERO_RESULTS" or not results:
            raise GeocodeError()

        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Unexpected geocoding payload", extra={"address": address})
            raise GeocodeError() from exc
