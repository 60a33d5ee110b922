TOOL_REGISTRY = {
    "top-listings-by-poi-proximity": {
        "name": "top-listings-by-poi-proximity",
        "description": (
            "Given a listings file (CSV/XLSX with headers: publish_date, seller_type, "
            "property_rooms, property_price, property_floors, property_builded_area, city, "
            "neighbourhood, street, property_type, bulletin_has_balconies, "
            "bulletin_has_elevator, bulletin_has_parking), returns the top N listings "
            "matching the price/room filter with minimal distance to a POI "
            "(clinic, school, or both) in the specified city."
        ),
        "parameters": {
            "file": "{path, originalname, mimetype} of the uploaded listings file (CSV or XLSX)",
            "location": "city or area for the POI search (default 'Haifa')",
            "maxPrice": "maximum price in NIS (default 2000000)",
            "minRooms": "minimum number of rooms (default 3)",
            "poiType": "clinic | school | both (default clinic)",
            "topN": "how many listings to return, 1–20 (default 3)",
        },
        "returns": (
            "Markdown table of the closest listings: street, city, price, rooms, "
            "closest POI name/address/type, distance in km, and listing attributes; "
            "or a one-line message when nothing matches"
        ),
    },
}
