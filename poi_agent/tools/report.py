"""Markdown rendering of ranked listings. Pure functions, no I/O."""

from typing import Any, Sequence

from poi_agent.tools.ranking import EnrichedListing

_POI_HEADINGS = {"clinic": "Clinic", "school": "School", "both": "Closest POI"}

COLUMNS = (
    "Street", "City", "Neighbourhood", "Price (NIS)", "Rooms",
    "Closest POI", "POI Address", "POI Type", "Distance (km)",
    "Seller", "Floors", "Area", "Type", "Balconies", "Elevator", "Parking",
)


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _cell(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return _number(value)
    return str(value).replace("|", "\\|").replace("\n", " ").strip()


def _row(item: EnrichedListing) -> list[str]:
    listing = item.listing
    return [
        _cell(listing.street),
        _cell(listing.city),
        _cell(listing.neighbourhood),
        _number(listing.price),
        _number(listing.rooms),
        _cell(item.poi_name),
        _cell(item.poi_address),
        _cell(item.poi_type),
        f"{item.distance_km:.2f}" if item.matched else "-",
        _cell(listing.extra("seller_type")),
        _cell(listing.extra("property_floors")),
        _cell(listing.extra("property_builded_area")),
        _cell(listing.extra("property_type")),
        _cell(listing.extra("bulletin_has_balconies")),
        _cell(listing.extra("bulletin_has_elevator")),
        _cell(listing.extra("bulletin_has_parking")),
    ]


def render_table(items: Sequence[EnrichedListing]) -> str:
    lines = [
        "| " + " | ".join(COLUMNS) + " |",
        "|" + "|".join("-" * (len(c) + 2) for c in COLUMNS) + "|",
    ]
    lines.extend("| " + " | ".join(_row(item)) + " |" for item in items)
    return "\n".join(lines)


def render_header(top_n: int, location: str, poi_type: str) -> str:
    target = _POI_HEADINGS.get(poi_type, poi_type)
    return f"**Top {top_n} Listings in {location}, Filtered & Sorted by Distance to {target}**"


def render_report(items: Sequence[EnrichedListing], top_n: int, location: str, poi_type: str) -> str:
    return f"{render_header(top_n, location, poi_type)}\n\n{render_table(items)}"
