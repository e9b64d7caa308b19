"""
Station resolution utilities.

Map a station reported by the upstream (name + coordinates) to one of our
known stations.
"""

import math
from collections.abc import Sequence

from harvester.modules.stations.models import Station

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points on a spherical Earth.

    Examples:
        >>> round(haversine_km(55.7558, 37.6173, 59.9343, 30.3351))
        634
    """
    lat_diff = math.radians(lat2 - lat1)
    lng_diff = math.radians(lng2 - lng1)

    angle = (
        math.sin(lat_diff / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(lng_diff / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(angle), math.sqrt(1 - angle))


def find_nearest(stations: Sequence[Station], lat: float, lng: float) -> Station | None:
    """
    Nearest station to a point.

    Returns:
        Station or None if ``stations`` is empty
    """
    nearest: Station | None = None
    min_distance = math.inf

    for station in stations:
        distance = haversine_km(lat, lng, station.lat, station.lng)
        if distance < min_distance:
            min_distance = distance
            nearest = station

    return nearest


def resolve_station(
    stations: Sequence[Station],
    name: str,
    lat: float,
    lng: float,
) -> Station | None:
    """
    Resolve a reported station against the station table.

    1. Case-insensitive exact name match; a single candidate wins.
    2. Several candidates (same name on different lines): nearest of them.
    3. No name match: nearest station of the whole table.

    Args:
        stations: Station table of the shard
        name: Reported station name
        lat: Reported station latitude
        lng: Reported station longitude

    Returns:
        Station, or None only when the table is empty
    """
    wanted = name.strip().lower()
    matched = [s for s in stations if s.name.strip().lower() == wanted]

    if len(matched) == 1:
        return matched[0]
    if matched:
        return find_nearest(matched, lat, lng)

    return find_nearest(stations, lat, lng)
