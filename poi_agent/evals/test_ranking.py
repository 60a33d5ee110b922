"""
Unit tests for enrichment and top-N selection.
"""

import math

import pytest

from poi_agent.tools.geocoder import GeocodeResult
from poi_agent.tools.listings import NormalizedListing
from poi_agent.tools.ranking import (
    SENTINEL,
    EnrichedListing,
    category_label,
    clamp_top_n,
    enrich_listings,
    select_top,
)
from fakes import FakeGeocoder, clinic, school


def _listing(street: str) -> NormalizedListing:
    return NormalizedListing(
        street=street, city="Haifa", neighbourhood="", address=f"{street}, Haifa",
        price=1_000_000.0, rooms=4.0,
    )


def _ranked(street: str, km: float) -> EnrichedListing:
    geocode = GeocodeResult(input=street, latitude=32.8, longitude=35.0, formatted_address=street, status="OK")
    return EnrichedListing(listing=_listing(street), geocode=geocode, poi=clinic("c", 32.8, 35.0), distance_km=km)


def test_select_top_is_stable_for_equal_distances():
    """
    GIVEN  five listings at distances [5.0, 1.0, 3.0, 1.0, 4.0]
    WHEN   the top 3 are selected
    THEN   both 1.0 listings come first in input order, then the 3.0 one.
    """
    enriched = [_ranked(name, km) for name, km in
                [("A", 5.0), ("B", 1.0), ("C", 3.0), ("D", 1.0), ("E", 4.0)]]

    top = select_top(enriched, 3)

    assert [e.listing.street for e in top] == ["B", "D", "C"]
    assert [e.distance_km for e in top] == [1.0, 1.0, 3.0]


def test_select_top_drops_unmatched():
    failed = EnrichedListing(
        listing=_listing("X"),
        geocode=GeocodeResult.failure("X, Haifa", "ZERO_RESULTS", "No results found"),
    )
    top = select_top([failed, _ranked("Y", 2.0)], 3)
    assert [e.listing.street for e in top] == ["Y"]
    assert select_top([failed], 3) == []


@pytest.mark.parametrize("requested, expected", [(None, 3), (0, 1), (-4, 1), (1, 1), (20, 20), (50, 20), (7, 7)])
def test_clamp_top_n(requested, expected):
    assert clamp_top_n(requested) == expected


def test_category_label():
    assert category_label("school") == "School"
    assert category_label("clinic") == "Clinic"
    assert category_label("pharmacy") == "pharmacy"


def test_failed_listing_sentinels():
    failed = EnrichedListing(
        listing=_listing("X"),
        geocode=GeocodeResult.failure("X, Haifa", "REQUEST_DENIED", "bad key"),
    )
    assert not failed.matched
    assert failed.poi_name == SENTINEL
    assert failed.poi_address == SENTINEL
    assert failed.poi_type == SENTINEL
    assert failed.distance_km == math.inf
    assert failed.geocode_error == "bad key"


@pytest.mark.asyncio
async def test_enrich_listings_keeps_failures_in_place():
    geocoder = FakeGeocoder({"A, Haifa": (32.8, 35.0), "C, Haifa": (32.9, 35.0)})
    pois = [clinic("Clalit", 32.81, 35.0), school("Ort", 32.9, 35.0)]

    enriched = await enrich_listings([_listing("A"), _listing("B"), _listing("C")], pois, geocoder)

    assert [e.listing.street for e in enriched] == ["A", "B", "C"]
    a, b, c = enriched
    assert a.poi_name == "Clalit" and a.poi_type == "Clinic"
    assert a.distance_km == pytest.approx(1.112, abs=0.01)
    assert not b.matched and b.distance_km == math.inf and b.poi_name == SENTINEL
    assert b.geocode.status == "ZERO_RESULTS"
    assert c.poi_name == "Ort" and c.poi_type == "School" and c.distance_km == 0.0


@pytest.mark.asyncio
async def test_enrich_listings_sequential_calls_in_input_order():
    geocoder = FakeGeocoder({})
    listings = [_listing(s) for s in ("A", "B", "C", "D")]
    await enrich_listings(listings, [clinic("c", 0, 0)], geocoder, concurrency=1)
    assert geocoder.calls == ["A, Haifa", "B, Haifa", "C, Haifa", "D, Haifa"]


@pytest.mark.asyncio
async def test_enrich_listings_bounded_concurrency():
    import asyncio

    in_flight = 0
    peak = 0

    class _SlowGeocoder:
        async def resolve(self, address):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return GeocodeResult(address, 32.8, 35.0, address, "OK")

    listings = [_listing(str(i)) for i in range(8)]
    enriched = await enrich_listings(listings, [clinic("c", 32.8, 35.0)], _SlowGeocoder(), concurrency=3)

    assert peak == 3
    assert [e.listing.street for e in enriched] == [str(i) for i in range(8)]
