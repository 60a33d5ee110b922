"""
Ranking pipeline as a LangGraph state machine.

  normalize → pois → enrich → select → present → END

Phases run strictly in order. normalize, pois and select can end the run
early by setting a terminal status; the router then jumps straight to
present, which renders either the ranked table or the one-line message.
"""

import logging

from langgraph.graph import StateGraph, END

from poi_agent.state import RankingState
from poi_agent.tools.geocoder import Geocoder
from poi_agent.tools.listings import filter_listings
from poi_agent.tools.places import PlacesClient, PlacesSearchError
from poi_agent.tools.ranking import clamp_top_n, enrich_listings, select_top
from poi_agent.tools.report import render_report

LOGGER = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_NO_MATCHING_LISTINGS = "NO_MATCHING_LISTINGS"
STATUS_NO_POIS = "NO_POIS"
STATUS_NO_GEOCODED_LISTINGS = "NO_GEOCODED_LISTINGS"
STATUS_POI_SEARCH_FAILED = "POI_SEARCH_FAILED"


def _route(next_node: str):
    def route(state: RankingState) -> str:
        return "present" if state.get("status") else next_node
    return route


def build_graph(places: PlacesClient, geocoder: Geocoder, geocode_concurrency: int = 1):
    """Builds and compiles the ranking state machine around the given provider clients."""

    async def normalize_node(state: RankingState) -> RankingState:
        listings = filter_listings(state.get("records", []), state["max_price"], state["min_rooms"])
        LOGGER.info(
            "%d of %d listings pass price <= %s and rooms >= %s",
            len(listings), len(state.get("records", [])), state["max_price"], state["min_rooms"],
        )
        if not listings:
            return {
                **state,
                "listings": [],
                "status": STATUS_NO_MATCHING_LISTINGS,
                "message": "No listings match price and room filters.",
            }
        return {**state, "listings": listings}

    async def pois_node(state: RankingState) -> RankingState:
        location, poi_type = state["location"], state["poi_type"]
        try:
            poi_set = await places.get_pois(location)
        except PlacesSearchError as exc:
            LOGGER.error("POI search failed for %s: %s", location, exc)
            return {
                **state,
                "pois": [],
                "status": STATUS_POI_SEARCH_FAILED,
                "message": f"POI search failed for {location}: {exc}",
            }
        pois = poi_set.select(poi_type)
        if not pois:
            return {
                **state,
                "pois": [],
                "status": STATUS_NO_POIS,
                "message": f"No POIs found for type '{poi_type}' in {location}.",
            }
        return {**state, "pois": pois}

    async def enrich_node(state: RankingState) -> RankingState:
        enriched = await enrich_listings(
            state["listings"], state["pois"], geocoder, concurrency=geocode_concurrency
        )
        return {**state, "enriched": enriched}

    async def select_node(state: RankingState) -> RankingState:
        selected = select_top(state["enriched"], state["top_n"])
        if not selected:
            return {
                **state,
                "selected": [],
                "status": STATUS_NO_GEOCODED_LISTINGS,
                "message": "No listings could be geocoded.",
            }
        return {**state, "selected": selected, "status": STATUS_OK}

    async def present_node(state: RankingState) -> RankingState:
        if state.get("status") != STATUS_OK:
            return {**state, "text": state.get("message", "")}
        text = render_report(state["selected"], state["top_n"], state["location"], state["poi_type"])
        return {**state, "text": text}

    g = StateGraph(RankingState)

    g.add_node("normalize", normalize_node)
    g.add_node("pois", pois_node)
    g.add_node("enrich", enrich_node)
    g.add_node("select", select_node)
    g.add_node("present", present_node)

    g.set_entry_point("normalize")

    g.add_conditional_edges("normalize", _route("pois"), {"pois": "pois", "present": "present"})
    g.add_conditional_edges("pois", _route("enrich"), {"enrich": "enrich", "present": "present"})
    g.add_edge("enrich", "select")
    g.add_edge("select", "present")
    g.add_edge("present", END)

    return g.compile()


def initial_state(
    records: list[dict],
    location: str,
    max_price: float,
    min_rooms: float,
    poi_type: str,
    top_n: int,
) -> RankingState:
    return {
        "records": records,
        "location": location,
        "max_price": max_price,
        "min_rooms": min_rooms,
        "poi_type": poi_type,
        "top_n": clamp_top_n(top_n),
        "listings": [],
        "pois": [],
        "enriched": [],
        "selected": [],
        "status": None,
        "message": None,
        "text": None,
    }
