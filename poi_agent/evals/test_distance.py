"""
Unit tests for the haversine distance and nearest-POI scan.
"""

import math

import pytest

from poi_agent.tools.distance import distance_km, nearest
from fakes import clinic, school


@pytest.mark.parametrize("a, b", [
    ((32.8, 35.0), (32.81, 35.0)),
    ((0.0, 0.0), (1.0, 1.0)),
    ((-33.9, 151.2), (51.5, -0.12)),
    ((89.9, 10.0), (-89.9, -170.0)),
])
def test_distance_is_symmetric(a, b):
    assert distance_km(*a, *b) == pytest.approx(distance_km(*b, *a))


def test_distance_to_self_is_zero():
    assert distance_km(32.794, 34.989, 32.794, 34.989) == 0.0


def test_one_degree_latitude_at_equator():
    """1° of latitude on a 6371 km sphere is ~111.19 km."""
    assert distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.2, abs=0.5)


def test_nearest_picks_minimum_distance():
    pois = [clinic("far", 33.5, 35.0), clinic("near", 32.81, 35.0), clinic("mid", 32.9, 35.0)]
    poi, km = nearest(32.8, 35.0, pois)
    assert poi.name == "near"
    assert km == pytest.approx(1.112, abs=0.01)


def test_nearest_tie_goes_to_first_in_iteration_order():
    first = clinic("first", 32.81, 35.0)
    second = school("second", 32.81, 35.0)
    poi, _ = nearest(32.8, 35.0, [first, second])
    assert poi is first
    poi, _ = nearest(32.8, 35.0, [second, first])
    assert poi is second


def test_nearest_empty_returns_none():
    assert nearest(32.8, 35.0, []) is None


def test_nearest_single_poi_at_same_point():
    poi, km = nearest(32.8, 35.0, [clinic("here", 32.8, 35.0)])
    assert poi.name == "here"
    assert km == 0.0
    assert math.isfinite(km)
