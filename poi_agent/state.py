from typing import Any, Optional, TypedDict

from poi_agent.tools.listings import NormalizedListing
from poi_agent.tools.places import POI
from poi_agent.tools.ranking import EnrichedListing


class RankingState(TypedDict, total=False):
    # Request
    records: list[dict[str, Any]]
    location: str
    max_price: float
    min_rooms: float
    poi_type: str
    top_n: int

    # Filtered before any provider call
    listings: list[NormalizedListing]

    # POI subset selected by poi_type
    pois: list[POI]

    # One entry per filtered listing, failures included
    enriched: list[EnrichedListing]

    # Ranked and truncated
    selected: list[EnrichedListing]

    # Terminal status: OK or one of the no-match / failure codes.
    # Set by the phase that ends the run; present_node renders it.
    status: Optional[str]
    message: Optional[str]
    text: Optional[str]
