"""
Code mappings for the realty mobile API.

Maps upstream codes to rows of our lookup tables.
"""

# ============================================
# Residential rooms (roomsTotal -> rooms.id)
# ============================================

ROOM_ID_STUDIO = 1
ROOM_ID_PLUS_4 = 5

ROOMS_TOTAL_TO_ROOM_ID: dict[int, int] = {
    1: 2,
    2: 3,
    3: 4,
}

# ============================================
# Commercial types (commercialType -> rooms.code)
# ============================================

COMMERCIAL_TYPE_TO_CODE: dict[str, str] = {
    "OFFICE": "office",
    "RETAIL": "retail",
    "FREE_PURPOSE": "free_purpose",
    "WAREHOUSE": "warehouse",
    "MANUFACTURING": "manufacturing",
    "PUBLIC_CATERING": "public_catering",
    "AUTO_REPAIR": "auto_repair",
    "HOTEL": "hotel",
    "BUSINESS": "business",
}

COMMERCIAL_TYPE_NAMES: dict[str, str] = {
    "OFFICE": "Office",
    "RETAIL": "Retail space",
    "FREE_PURPOSE": "Free-purpose premises",
    "WAREHOUSE": "Warehouse",
    "MANUFACTURING": "Manufacturing",
    "PUBLIC_CATERING": "Catering",
    "AUTO_REPAIR": "Car service",
    "HOTEL": "Hotel",
    "BUSINESS": "Ready business",
}

COMMERCIAL_TITLE = "Commercial property"

# ============================================
# Transit (metroTransport -> travel_type)
# ============================================

METRO_TRANSPORT_TO_TRAVEL_TYPE: dict[str, str] = {
    "ON_FOOT": "walk",
    "ON_TRANSPORT": "public_transport",
}

# Average speeds (km/h) used to turn travel minutes into a distance
WALKING_SPEED_KMH = 5.0
TRANSPORT_SPEED_KMH = 25.0


def commercial_room_codes() -> list[str]:
    """All rooms.code values used for commercial types."""
    return list(COMMERCIAL_TYPE_TO_CODE.values())
