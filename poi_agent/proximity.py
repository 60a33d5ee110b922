"""
top-listings-by-poi-proximity - the tool entry point
====================================================
Reads the uploaded listings file, runs the ranking graph and wraps the
outcome in the standard tool result envelope:

  {tool_name, success, tool_result_id, timestamp, result}        - ranked
      table or a named no-match status (NO_MATCHING_LISTINGS, NO_POIS,
      NO_GEOCODED_LISTINGS, POI_SEARCH_FAILED)
  {tool_name, success, tool_result_id, error: {code, message}}   - the
      listings file could not be used, or the pipeline failed unexpectedly
      (POI_PIPELINE_FAILED)

Either way the text the host shows is tool_text(envelope).
"""

import logging
import time
from datetime import datetime
from typing import Optional

from poi_agent.graph import STATUS_OK, build_graph, initial_state
from poi_agent.settings import Settings, load_settings
from poi_agent.tools.cache_store import CacheStore
from poi_agent.tools.geocoder import Geocoder
from poi_agent.tools.listings_file import ListingsFileError, UnsupportedListingsFile, read_listings
from poi_agent.tools.places import PlacesClient

LOGGER = logging.getLogger(__name__)

TOOL_NAME = "top-listings-by-poi-proximity"
POI_TYPES = ("clinic", "school", "both")


# ---------------------------------------------------------------------------
# Invocation logging  (in-memory, bounded)
# ---------------------------------------------------------------------------

_invocation_log: list[dict] = []
_MAX_LOG_ENTRIES = 500


def _log_invocation(location: str, poi_type: str, status: str, duration_ms: float, success: bool) -> None:
    _invocation_log.append({
        "timestamp": datetime.utcnow().isoformat(),
        "location": location[:80],
        "poi_type": poi_type,
        "status": status,
        "duration_ms": round(duration_ms, 1),
        "success": success,
    })
    if len(_invocation_log) > _MAX_LOG_ENTRIES:
        del _invocation_log[: len(_invocation_log) - _MAX_LOG_ENTRIES]


def get_invocation_log() -> list[dict]:
    """Returns a copy of the invocation log. Served by GET /tools/log."""
    return list(_invocation_log)


def clear_invocation_log() -> None:
    _invocation_log.clear()


# ---------------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------------

def _error(tool_result_id: str, code: str, message: str) -> dict:
    return {
        "tool_name": TOOL_NAME,
        "success": False,
        "tool_result_id": tool_result_id,
        "error": {"code": code, "message": message},
    }


def _listing_row(item) -> dict:
    listing = item.listing
    return {
        "address": listing.address,
        "street": listing.street,
        "city": listing.city,
        "neighbourhood": listing.neighbourhood,
        "price": listing.price,
        "rooms": listing.rooms,
        "latitude": item.geocode.latitude,
        "longitude": item.geocode.longitude,
        "formatted_address": item.geocode.formatted_address,
        "closest_name": item.poi_name,
        "closest_address": item.poi_address,
        "closest_type": item.poi_type,
        "distance_km": round(item.distance_km, 3),
        "extras": dict(listing.extras),
    }


def tool_text(envelope: dict) -> str:
    """The single text block shown to the host for any envelope."""
    if envelope.get("success"):
        return envelope["result"]["text"]
    return envelope["error"]["message"]


# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------

async def top_listings_by_poi_proximity(
    file: dict,
    location: str = "Haifa",
    max_price: float = 2_000_000,
    min_rooms: float = 3,
    poi_type: str = "clinic",
    top_n: int = 3,
    settings: Optional[Settings] = None,
    places: Optional[PlacesClient] = None,
    geocoder: Optional[Geocoder] = None,
) -> dict:
    """
    Ranks the uploaded listings by distance to the nearest clinic/school.

    Args:
        file: {"path", "originalname", "mimetype"} of the uploaded CSV/XLSX.
        location: City whose POIs are searched.
        max_price: Listings priced above this are dropped before geocoding.
        min_rooms: Listings with fewer rooms are dropped before geocoding.
        poi_type: "clinic", "school" or "both".
        top_n: How many listings to return, clamped to 1–20.
        settings / places / geocoder: Overrides, mainly for tests.

    Returns:
        Tool result envelope (see module docstring).
    """
    start = time.time()
    tool_result_id = f"poi_proximity_{int(datetime.utcnow().timestamp())}"

    if poi_type not in POI_TYPES:
        _log_invocation(location, poi_type, "INVALID_POI_TYPE", (time.time() - start) * 1000, False)
        return _error(
            tool_result_id,
            "INVALID_POI_TYPE",
            f"Unknown poiType '{poi_type}'. Use one of: {', '.join(POI_TYPES)}.",
        )

    original_name = file.get("originalname") or file.get("path") or ""
    try:
        records = read_listings(file["path"], original_name)
    except UnsupportedListingsFile:
        _log_invocation(location, poi_type, "UNSUPPORTED_FILE", (time.time() - start) * 1000, False)
        return _error(tool_result_id, "LISTINGS_FILE_UNSUPPORTED", "Unsupported file format. Upload CSV or XLSX.")
    except (ListingsFileError, KeyError) as exc:
        LOGGER.warning("Could not read listings file %s: %s", original_name, exc)
        _log_invocation(location, poi_type, "UNREADABLE_FILE", (time.time() - start) * 1000, False)
        return _error(tool_result_id, "LISTINGS_FILE_UNREADABLE", f"Failed to parse file: {exc}")

    if places is None or geocoder is None:
        settings = settings or load_settings()
        places = places or PlacesClient(
            settings, cache=CacheStore(settings.cache_dir, settings.cache_ttl_seconds)
        )
        geocoder = geocoder or Geocoder(settings)
    concurrency = settings.geocode_concurrency if settings else 1

    graph = build_graph(places, geocoder, geocode_concurrency=concurrency)
    try:
        state = await graph.ainvoke(
            initial_state(records, location, max_price, min_rooms, poi_type, top_n)
        )
    except Exception as exc:
        LOGGER.exception("%s pipeline failed for %s", TOOL_NAME, location)
        _log_invocation(location, poi_type, "PIPELINE_FAILED", (time.time() - start) * 1000, False)
        return _error(tool_result_id, "POI_PIPELINE_FAILED", f"Failed to rank listings for {location}: {exc}")

    status = state["status"]
    elapsed_ms = (time.time() - start) * 1000
    _log_invocation(location, poi_type, status, elapsed_ms, True)
    LOGGER.info("%s finished with %s in %.0f ms", TOOL_NAME, status, elapsed_ms)

    return {
        "tool_name": TOOL_NAME,
        "success": True,
        "tool_result_id": tool_result_id,
        "timestamp": datetime.utcnow().isoformat(),
        "result": {
            "status": status,
            "text": state["text"],
            "listings": [_listing_row(item) for item in state.get("selected", [])] if status == STATUS_OK else [],
            "filters_applied": {
                "location": location,
                "max_price": max_price,
                "min_rooms": min_rooms,
                "poi_type": poi_type,
                "top_n": state["top_n"],
            },
            "counts": {
                "rows": len(records),
                "filtered": len(state.get("listings", [])),
                "pois": len(state.get("pois", [])),
                "geocoded": sum(1 for e in state.get("enriched", []) if e.geocode.ok),
            },
        },
    }
