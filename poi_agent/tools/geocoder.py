"""
Google Geocoding - one free-form address per call.

resolve() never raises: every failure is encoded in the returned
GeocodeResult so a batch of listings keeps going when one address fails.
Results are not cached.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from poi_agent.settings import Settings

LOGGER = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


@dataclass(frozen=True)
class GeocodeResult:
    input: str
    latitude: Optional[float]
    longitude: Optional[float]
    formatted_address: Optional[str]
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def failure(cls, address: str, status: str, error: str) -> "GeocodeResult":
        return cls(
            input=address,
            latitude=None,
            longitude=None,
            formatted_address=None,
            status=status,
            error=error,
        )


class Geocoder:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    async def resolve(self, address: str) -> GeocodeResult:
        """Geocodes one address; failures come back as status/error, not exceptions."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                headers={"User-Agent": self.settings.user_agent},
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    GEOCODE_URL,
                    params={"address": address, "key": self.settings.google_maps_api_key},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.warning("Geocoding request for %r failed: %s", address, exc)
            return GeocodeResult.failure(address, "ERROR", str(exc) or exc.__class__.__name__)

        if not isinstance(data, dict):
            LOGGER.warning("Geocoding response for %r is not a JSON object", address)
            return GeocodeResult.failure(address, "ERROR", "Malformed response")

        status = data.get("status") or "UNKNOWN_ERROR"
        results = data.get("results") or []
        if status == "OK" and results:
            try:
                first = results[0]
                loc = first["geometry"]["location"]
                return GeocodeResult(
                    input=address,
                    latitude=float(loc["lat"]),
                    longitude=float(loc["lng"]),
                    formatted_address=first.get("formatted_address"),
                    status="OK",
                )
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Malformed geocoding result for %r: %s", address, exc)
                return GeocodeResult.failure(address, "ERROR", f"Malformed result: {exc}")

        error = data.get("error_message") or "No results found"
        LOGGER.info("Geocoding %r returned %s: %s", address, status, error)
        return GeocodeResult.failure(address, status, error)
