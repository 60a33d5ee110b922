"""
Listing records - normalization and price/room filtering.

Raw rows come from the listings file reader as plain dicts. Only the
address, price and room fields are typed; everything else is kept as a
display-safe passthrough mapping (extras) and never used for ranking.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Union

DisplayValue = Union[str, int, float, bool]

CORE_FIELDS = ("street", "city", "neighbourhood", "property_price", "property_rooms")
DISPLAY_FIELDS = (
    "seller_type",
    "property_floors",
    "property_builded_area",
    "property_type",
    "bulletin_has_balconies",
    "bulletin_has_elevator",
    "bulletin_has_parking",
)

_NON_NUMERIC = re.compile(r"[^0-9.]")


@dataclass(frozen=True)
class NormalizedListing:
    street: str
    city: str
    neighbourhood: str
    address: str
    price: float
    rooms: float
    extras: dict[str, DisplayValue] = field(default_factory=dict)

    def extra(self, name: str) -> Optional[DisplayValue]:
        return self.extras.get(name)


def parse_number(value: Any) -> float:
    """
    Strips every character except digits and '.' and parses the rest.

    "₪1,800,000" → 1800000.0, "4 rooms" → 4.0. Returns NaN when nothing
    numeric is left or the remainder is not a number (e.g. "1.2.3").
    """
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return math.nan
    try:
        return float(cleaned)
    except ValueError:
        return math.nan


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _display_safe(value: Any) -> DisplayValue:
    if value is None:
        return ""
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return "" if math.isnan(value) else value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def compose_address(street: str, city: str) -> str:
    return ", ".join(part for part in (street, city) if part)


def normalize_record(record: Mapping[str, Any]) -> Optional[NormalizedListing]:
    """Returns the normalized listing, or None when the record is not eligible."""
    street = _text(record.get("street"))
    city = _text(record.get("city"))
    address = compose_address(street, city)
    price = parse_number(record.get("property_price"))
    rooms = parse_number(record.get("property_rooms"))
    if not address or not math.isfinite(price) or not math.isfinite(rooms):
        return None

    extras = {
        str(name): _display_safe(value)
        for name, value in record.items()
        if name is not None and name not in CORE_FIELDS
    }
    return NormalizedListing(
        street=street,
        city=city,
        neighbourhood=_text(record.get("neighbourhood")),
        address=address,
        price=price,
        rooms=rooms,
        extras=extras,
    )


def filter_listings(
    records: Iterable[Mapping[str, Any]],
    max_price: float,
    min_rooms: float,
) -> list[NormalizedListing]:
    """Normalizes records and keeps those with price <= max_price and rooms >= min_rooms."""
    kept = []
    for record in records:
        listing = normalize_record(record)
        if listing is None:
            continue
        if listing.price <= max_price and listing.rooms >= min_rooms:
            kept.append(listing)
    return kept
