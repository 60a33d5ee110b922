"""
Enrichment and top-N selection.

Each listing is geocoded and, if that worked, matched to its nearest POI.
The outcome is an explicit EnrichedListing per record; failures keep their
place with sentinel POI fields and an infinite distance, and selection is a
plain filter + stable sort over those results.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from poi_agent.tools.distance import nearest
from poi_agent.tools.geocoder import Geocoder, GeocodeResult
from poi_agent.tools.listings import NormalizedListing
from poi_agent.tools.places import CLINIC, POI, SCHOOL

LOGGER = logging.getLogger(__name__)

SENTINEL = "-"
DEFAULT_TOP_N = 3
MIN_TOP_N = 1
MAX_TOP_N = 20

_CATEGORY_LABELS = {SCHOOL: "School", CLINIC: "Clinic"}


def category_label(category: str) -> str:
    return _CATEGORY_LABELS.get(category, category)


def clamp_top_n(top_n: Optional[int]) -> int:
    if top_n is None:
        return DEFAULT_TOP_N
    return max(MIN_TOP_N, min(MAX_TOP_N, int(top_n)))


@dataclass(frozen=True)
class EnrichedListing:
    listing: NormalizedListing
    geocode: GeocodeResult
    poi: Optional[POI] = None
    distance_km: float = math.inf

    @property
    def matched(self) -> bool:
        return self.poi is not None and math.isfinite(self.distance_km)

    @property
    def poi_name(self) -> str:
        return self.poi.name if self.poi else SENTINEL

    @property
    def poi_address(self) -> str:
        return self.poi.address if self.poi else SENTINEL

    @property
    def poi_type(self) -> str:
        return category_label(self.poi.category) if self.poi else SENTINEL

    @property
    def geocode_error(self) -> str:
        return self.geocode.error or SENTINEL


def match_listing(listing: NormalizedListing, geocode: GeocodeResult, pois: Sequence[POI]) -> EnrichedListing:
    if not geocode.ok:
        return EnrichedListing(listing=listing, geocode=geocode)
    found = nearest(geocode.latitude, geocode.longitude, pois)
    if found is None:
        return EnrichedListing(listing=listing, geocode=geocode)
    poi, km = found
    return EnrichedListing(listing=listing, geocode=geocode, poi=poi, distance_km=km)


async def enrich_listings(
    listings: Sequence[NormalizedListing],
    pois: Sequence[POI],
    geocoder: Geocoder,
    concurrency: int = 1,
) -> list[EnrichedListing]:
    """
    Geocodes every listing and attaches its nearest POI.

    At most `concurrency` geocoding calls are in flight at once; 1 keeps
    the calls strictly sequential. Output order matches input order.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _enrich(listing: NormalizedListing) -> EnrichedListing:
        async with semaphore:
            geocode = await geocoder.resolve(listing.address)
        enriched = match_listing(listing, geocode, pois)
        if not enriched.matched:
            LOGGER.info("Listing %r not ranked: %s (%s)", listing.address, geocode.status, enriched.geocode_error)
        return enriched

    return list(await asyncio.gather(*[_enrich(listing) for listing in listings]))


def select_top(enriched: Sequence[EnrichedListing], top_n: int) -> list[EnrichedListing]:
    """Drops unmatched records, sorts ascending by distance (stable), keeps top_n."""
    ranked = sorted((e for e in enriched if e.matched), key=lambda e: e.distance_km)
    return ranked[: clamp_top_n(top_n)]
