"""Provider doubles shared by the pipeline tests."""

import csv
from pathlib import Path
from typing import Optional

from poi_agent.tools.geocoder import GeocodeResult
from poi_agent.tools.places import CLINIC, POI, SCHOOL, PoiSet

LISTING_COLUMNS = [
    "street", "city", "neighbourhood", "property_price", "property_rooms",
    "seller_type", "property_floors", "property_builded_area", "property_type",
    "bulletin_has_balconies", "bulletin_has_elevator", "bulletin_has_parking",
]


def clinic(name: str, lat: float, lng: float) -> POI:
    return POI(name=name, address=f"{name} address", latitude=lat, longitude=lng, category=CLINIC, place_id=name)


def school(name: str, lat: float, lng: float) -> POI:
    return POI(name=name, address=f"{name} address", latitude=lat, longitude=lng, category=SCHOOL, place_id=name)


class FakeGeocoder:
    """Resolves only the addresses it was given coordinates for."""

    def __init__(self, coords: dict[str, tuple[float, float]]):
        self.coords = coords
        self.calls: list[str] = []

    async def resolve(self, address: str) -> GeocodeResult:
        self.calls.append(address)
        if address in self.coords:
            lat, lng = self.coords[address]
            return GeocodeResult(
                input=address, latitude=lat, longitude=lng,
                formatted_address=f"{address}, Israel", status="OK",
            )
        return GeocodeResult.failure(address, "ZERO_RESULTS", "No results found")


class FakePlaces:
    def __init__(self, pois: Optional[PoiSet] = None, error: Optional[Exception] = None):
        self.pois = pois or PoiSet()
        self.error = error
        self.calls: list[str] = []

    async def get_pois(self, location: str) -> PoiSet:
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        return self.pois


def listing_row(street: str, city: str = "Haifa", price="1800000", rooms="4", **extra) -> dict:
    row = {column: "" for column in LISTING_COLUMNS}
    row.update({"street": street, "city": city, "property_price": price, "property_rooms": rooms})
    row.update(extra)
    return row


def write_csv(path: Path, rows: list[dict]) -> Path:
    columns = list(LISTING_COLUMNS)
    for row in rows:
        columns.extend(k for k in row if k not in columns)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)
    return path


def upload(path: Path) -> dict:
    return {"path": str(path), "originalname": path.name, "mimetype": "text/csv"}
