"""Great-circle distance and nearest-POI lookup."""

import math
from typing import Iterable, Optional

from poi_agent.tools.places import POI

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lon points, in kilometers."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest(latitude: float, longitude: float, pois: Iterable[POI]) -> Optional[tuple[POI, float]]:
    """
    Returns (poi, km) for the closest POI, or None when pois is empty.

    Linear scan; on equal distances the first POI in iteration order wins.
    """
    best: Optional[POI] = None
    best_km = math.inf
    for poi in pois:
        km = distance_km(latitude, longitude, poi.latitude, poi.longitude)
        if best is None or km < best_km:
            best, best_km = poi, km
    if best is None:
        return None
    return best, best_km
