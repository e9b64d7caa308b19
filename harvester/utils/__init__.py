"""
Utility modules for the realty harvester.
"""

from harvester.utils.geo import find_nearest, haversine_km, resolve_station
from harvester.utils.price_history import build_price_history
from harvester.utils.transformers import (
    format_distance,
    is_raised,
    map_offer_to_listing,
    transform_address,
    transform_creation_day,
    transform_phone,
    transform_room_id,
    transform_station_query,
    transform_title,
    transform_transit,
)

__all__ = [
    # Geo
    "haversine_km",
    "find_nearest",
    "resolve_station",
    # Price history
    "build_price_history",
    # Transformers
    "format_distance",
    "is_raised",
    "map_offer_to_listing",
    "transform_address",
    "transform_creation_day",
    "transform_phone",
    "transform_room_id",
    "transform_station_query",
    "transform_title",
    "transform_transit",
]
