"""
Google Places text search - clinics and elementary schools per city
===================================================================
Two public entry points on PlacesClient:
  search(query_text, location, category)  - paginated text search
  get_pois(location)                      - schools + clinics, cache-backed

Pagination protocol:
  A response carrying next_page_token has more results, but the token only
  becomes usable after a short delay. We wait page_delay_seconds before each
  follow-up request and stop after max_pages requests in total (3 by default),
  whatever the provider still reports.

Degradation:
  - status other than OK / ZERO_RESULTS → stop, return what we have
  - transport error on a follow-up page → stop, return what we have
  - transport error on the first page  → PlacesSearchError
  - a body that is not a JSON object counts as a transport error

POI category comes from the query that produced the record ("school" or
"clinic"), never from the provider's own type metadata.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

import httpx

from poi_agent.settings import Settings
from poi_agent.tools.cache_store import CacheStore, cache_key

LOGGER = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

SCHOOL = "school"
CLINIC = "clinic"
SCHOOL_QUERY = "elementary school"
CLINIC_QUERY = "קופת חולים"  # kupat holim - Israeli health-fund clinic

POI_CACHE_NAMESPACE = "pois_"
_ACCEPTED_STATUSES = {"OK", "ZERO_RESULTS"}


class PlacesSearchError(Exception):
    """The first page of a text search could not be fetched."""


@dataclass(frozen=True)
class POI:
    name: str
    address: str
    latitude: float
    longitude: float
    category: str
    place_id: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "POI":
        return cls(
            name=str(data["name"]),
            address=str(data.get("address") or ""),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            category=str(data["category"]),
            place_id=str(data.get("place_id") or ""),
        )


@dataclass
class PoiSet:
    """Schools and clinics for one location, as cached on disk."""

    schools: list[POI] = field(default_factory=list)
    clinics: list[POI] = field(default_factory=list)

    def select(self, poi_type: str) -> list[POI]:
        """school → schools, clinic → clinics, both → clinics then schools."""
        if poi_type == SCHOOL:
            return list(self.schools)
        if poi_type == CLINIC:
            return list(self.clinics)
        if poi_type == "both":
            return [*self.clinics, *self.schools]
        raise ValueError(f"Unknown POI type: {poi_type!r}")

    def is_empty(self) -> bool:
        return not self.schools and not self.clinics

    def to_dict(self) -> dict:
        return {
            "schools": [p.to_dict() for p in self.schools],
            "clinics": [p.to_dict() for p in self.clinics],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PoiSet":
        return cls(
            schools=[POI.from_dict(p) for p in data["schools"]],
            clinics=[POI.from_dict(p) for p in data["clinics"]],
        )


def _to_poi(raw: dict, category: str) -> Optional[POI]:
    try:
        loc = raw["geometry"]["location"]
        return POI(
            name=raw.get("name") or "",
            address=raw.get("formatted_address") or "",
            latitude=float(loc["lat"]),
            longitude=float(loc["lng"]),
            category=category,
            place_id=raw.get("place_id") or "",
        )
    except (KeyError, TypeError, ValueError):
        LOGGER.debug("Skipping place without usable geometry: %s", raw.get("place_id"))
        return None


class PlacesClient:
    """Text search against Google Places, with results cached per location."""

    def __init__(
        self,
        settings: Settings,
        cache: Optional[CacheStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.cache = cache or CacheStore(settings.cache_dir, settings.cache_ttl_seconds)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            headers={"User-Agent": self.settings.user_agent},
            transport=self._transport,
        )

    async def search(self, query_text: str, location: str, category: str) -> list[POI]:
        """
        Runs a paginated text search for '<query_text> in <location>'.

        Returns:
            POIs in provider order, tagged with category.

        Raises:
            PlacesSearchError: the first page failed at the transport level.
        """
        raw_results: list[dict] = []
        page_token: Optional[str] = None
        max_pages = self.settings.max_pages

        async with self._client() as client:
            for page in range(max_pages):
                params = {"query": f"{query_text} in {location}", "key": self.settings.google_maps_api_key}
                if page_token:
                    params["pagetoken"] = page_token
                try:
                    resp = await client.get(TEXT_SEARCH_URL, params=params)
                    resp.raise_for_status()
                    data = resp.json()
                    if not isinstance(data, dict):
                        raise ValueError("response body is not a JSON object")
                except (httpx.HTTPError, ValueError) as exc:
                    if page == 0:
                        raise PlacesSearchError(
                            f"Places search for '{query_text}' in {location} failed: {exc}"
                        ) from exc
                    LOGGER.warning(
                        "Places page %d for '%s' failed, keeping %d results: %s",
                        page + 1, query_text, len(raw_results), exc,
                    )
                    break

                status = data.get("status")
                if status not in _ACCEPTED_STATUSES:
                    LOGGER.warning(
                        "Places search '%s' in %s returned %s: %s",
                        query_text, location, status, data.get("error_message", "-"),
                    )
                    break

                results = data.get("results")
                if isinstance(results, list):
                    raw_results.extend(r for r in results if isinstance(r, dict))
                page_token = data.get("next_page_token")
                if not page_token or page + 1 >= max_pages:
                    break
                await asyncio.sleep(self.settings.page_delay_seconds)

        pois = [p for p in (_to_poi(r, category) for r in raw_results) if p is not None]
        LOGGER.info("Places search '%s' in %s: %d results", query_text, location, len(pois))
        return pois

    async def get_pois(self, location: str) -> PoiSet:
        """
        Schools and clinics for a location, from cache when fresh.

        On a miss both searches run concurrently and the combined set is
        written back. If either search raises, the other is cancelled.
        Cache write failures are logged, not raised.
        """
        key = cache_key(POI_CACHE_NAMESPACE, location)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                pois = PoiSet.from_dict(cached)
                LOGGER.info("POI cache hit for %s", location)
                return pois
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Discarding malformed POI cache entry %s: %s", key, exc)

        tasks = [
            asyncio.create_task(self.search(SCHOOL_QUERY, location, SCHOOL)),
            asyncio.create_task(self.search(CLINIC_QUERY, location, CLINIC)),
        ]
        try:
            schools, clinics = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        pois = PoiSet(schools=schools, clinics=clinics)

        if pois.is_empty():
            LOGGER.warning("No POIs found for %s; not caching", location)
            return pois
        try:
            await self.cache.set(key, pois.to_dict())
        except OSError as exc:
            LOGGER.warning("Could not write POI cache entry %s: %s", key, exc)
        return pois
