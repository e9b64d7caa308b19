"""
Offer normalizer for the realty mobile API.

Transform raw offers from the search API into database-ready listings.
This module centralizes all data transformation logic; every function is pure.
"""

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from zoneinfo import ZoneInfo

from harvester.crawler.types import OfferRaw
from harvester.modules.listings.models import (
    LISTING_STATUS_NEW,
    LISTING_STATUS_RAISED,
    ListingData,
)
from harvester.modules.stations.models import TransitEstimate
from harvester.utils.mappings import (
    COMMERCIAL_TITLE,
    COMMERCIAL_TYPE_NAMES,
    COMMERCIAL_TYPE_TO_CODE,
    METRO_TRANSPORT_TO_TRAVEL_TYPE,
    ROOM_ID_PLUS_4,
    ROOM_ID_STUDIO,
    ROOMS_TOTAL_TO_ROOM_ID,
    TRANSPORT_SPEED_KMH,
    WALKING_SPEED_KMH,
)

# ============================================
# Helpers
# ============================================


def _to_float(value) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def format_number(value: float) -> str:
    """
    Render a number without a trailing ".0".

    Examples:
        >>> format_number(54.0)
        '54'
        >>> format_number(54.5)
        '54.5'
    """
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def get_commercial_type(offer: OfferRaw) -> str | None:
    """First entry of ``commercial.commercialTypes`` or None."""
    types = (offer.get("commercial") or {}).get("commercialTypes") or []
    return types[0] if types else None


def is_raised(offer: OfferRaw) -> bool:
    """Whether the seller boosted or promoted the offer."""
    return bool(offer.get("raised")) or bool(offer.get("promoted"))


# ============================================
# Individual Transform Functions
# ============================================


def transform_room_id(
    offer: OfferRaw,
    is_commercial: bool,
    commercial_room_ids: Mapping[str, int],
) -> int | None:
    """
    Classify the offer into a rooms.id.

    Residential: STUDIO->1, 1->2, 2->3, 3->4, PLUS_4 or >=4 -> 5, missing -> studio.
    Commercial: commercialType resolved through ``commercial_room_ids``
    (rooms.code -> rooms.id).

    Args:
        offer: Raw offer
        is_commercial: Shard searches commercial property
        commercial_room_ids: rooms.code -> rooms.id lookup

    Returns:
        Room ID or None when unknown

    Examples:
        >>> transform_room_id({"roomsTotal": "STUDIO"}, False, {})
        1
        >>> transform_room_id({"roomsTotal": 6}, False, {})
        5
        >>> transform_room_id({}, True, {})
    """
    commercial_type = get_commercial_type(offer)
    if commercial_type is not None:
        code = COMMERCIAL_TYPE_TO_CODE.get(commercial_type)
        if code is None:
            return None
        return commercial_room_ids.get(code)

    # Commercial shard without a type must not fall through to residential rules
    if is_commercial:
        return None

    rooms_total = offer.get("roomsTotal")
    if rooms_total is None or rooms_total == "STUDIO":
        return ROOM_ID_STUDIO
    if rooms_total == "PLUS_4":
        return ROOM_ID_PLUS_4

    rooms = _to_int(rooms_total)
    if rooms is None:
        return None
    if rooms in ROOMS_TOTAL_TO_ROOM_ID:
        return ROOMS_TOTAL_TO_ROOM_ID[rooms]
    if rooms >= 4:
        return ROOM_ID_PLUS_4
    return None


def transform_title(
    offer: OfferRaw,
    square_meters: float | None,
    is_commercial: bool,
) -> str:
    """
    Build the listing title.

    Examples:
        >>> transform_title({"commercial": {"commercialTypes": ["OFFICE"]}}, 120.0, True)
        'Office, 120 m²'
        >>> transform_title({"roomsTotal": 2}, 54.5, False)
        '2-room apartment, 54.5 m²'
        >>> transform_title({"roomsTotal": "STUDIO"}, 28.0, False)
        'Studio, 28 m²'
    """
    area_suffix = f", {format_number(square_meters)} m²" if square_meters else ""

    commercial_type = get_commercial_type(offer)
    if commercial_type is not None and commercial_type in COMMERCIAL_TYPE_NAMES:
        return COMMERCIAL_TYPE_NAMES[commercial_type] + area_suffix

    if is_commercial:
        return COMMERCIAL_TITLE + area_suffix

    rooms_total = offer.get("roomsTotal")
    if rooms_total is not None and rooms_total != "STUDIO":
        if rooms_total == "PLUS_4":
            rooms = "4+"
        else:
            parsed = _to_int(rooms_total)
            if parsed is None:
                return "Apartment" + area_suffix
            rooms = str(parsed)
        return f"{rooms}-room apartment{area_suffix}"

    return "Studio" + area_suffix


def transform_address(offer: OfferRaw) -> tuple[str | None, str | None, str | None]:
    """
    Extract (city, street, house) from ``location.structuredAddress``.

    The first CITY (or CITY_DISTRICT when no city was seen yet), the first STREET
    and the first HOUSE win; later duplicates are ignored.

    Returns:
        Tuple of (city, street, house)
    """
    city: str | None = None
    street: str | None = None
    house: str | None = None

    location = offer.get("location") or {}
    components = (location.get("structuredAddress") or {}).get("component") or []

    for component in components:
        region_type = component.get("regionType", "")
        value = component.get("value", "")
        if not value:
            continue

        if region_type in ("CITY", "CITY_DISTRICT"):
            if city is None:
                city = value
        elif region_type == "STREET":
            if street is None:
                street = value
        elif region_type == "HOUSE":
            if house is None:
                house = value

    return city, street, house


def transform_phone(phone_raw: str | None) -> str | None:
    """
    Normalize a phone number to 7XXXXXXXXXX.

    Examples:
        >>> transform_phone("+7 (916) 123-45-67")
        '79161234567'
        >>> transform_phone("89161234567")
        '79161234567'
        >>> transform_phone("9161234567")
        '79161234567'
        >>> transform_phone("12345")
    """
    if not phone_raw:
        return None

    digits = re.sub(r"\D", "", phone_raw)

    if len(digits) == 10:
        return "7" + digits
    if len(digits) == 11:
        return "7" + digits[1:]

    match = re.search(r"([78]9\d{9})", digits)
    if match:
        return "7" + match.group(1)[1:]

    match = re.search(r"(9\d{9})", digits)
    if match:
        return "7" + match.group(1)

    return None


def format_distance(meters: float) -> str:
    """
    Render a distance for display.

    Under 1 km: meters rounded to 50. Otherwise kilometers with one decimal.

    Examples:
        >>> format_distance(833.3)
        '850 m'
        >>> format_distance(2666.7)
        '2.7 km'
        >>> format_distance(5000)
        '5 km'
    """
    if meters >= 1000:
        km = math.floor(meters / 100 + 0.5) / 10
        return f"{format_number(km)} km"
    rounded = int(math.floor(meters / 50 + 0.5)) * 50
    return f"{rounded} m"


def transform_transit(offer: OfferRaw) -> TransitEstimate:
    """
    Travel estimate to the nearest station as reported by the upstream.

    Uses ``location.metro`` or the first entry of ``location.metroList``.
    Distance is derived from minutes with fixed average speeds
    (walking 5 km/h, public transport 25 km/h).
    """
    location = offer.get("location") or {}
    metro_list = location.get("metroList") or []
    metro = location.get("metro") or (metro_list[0] if metro_list else None)
    if not metro:
        return TransitEstimate()

    minutes = _to_int(metro.get("timeToMetro"))
    if minutes is not None and minutes <= 0:
        minutes = None

    transport = metro.get("metroTransport")
    travel_type = METRO_TRANSPORT_TO_TRAVEL_TYPE.get(transport) if transport else None

    distance = None
    if minutes is not None:
        speed = WALKING_SPEED_KMH if transport == "ON_FOOT" else TRANSPORT_SPEED_KMH
        distance = format_distance(minutes / 60 * speed * 1000)

    return TransitEstimate(
        travel_time_min=minutes,
        travel_type=travel_type,
        distance=distance,
    )


def transform_station_query(offer: OfferRaw) -> tuple[str, float, float] | None:
    """
    Reported station (name, lat, lng) used to resolve our station.

    Returns:
        None when the offer lists no stations
    """
    location = offer.get("location") or {}
    metro_list = location.get("metroList") or []
    if not metro_list:
        return None

    metro = location.get("metro") or metro_list[0]
    return (
        metro.get("name") or "",
        _to_float(metro.get("latitude")) or 0.0,
        _to_float(metro.get("longitude")) or 0.0,
    )


def transform_creation_day(offer: OfferRaw, tz: str) -> date | None:
    """
    Calendar day of ``creationDate`` in the given timezone.

    Examples:
        >>> transform_creation_day({"creationDate": "2024-05-01T22:30:00Z"}, "Europe/Moscow")
        datetime.date(2024, 5, 2)
    """
    raw = offer.get("creationDate")
    if not raw:
        return None
    try:
        created = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if created.tzinfo is None:
        return created.date()
    return created.astimezone(ZoneInfo(tz)).date()


# ============================================
# Main Transform Function
# ============================================


def map_offer_to_listing(
    offer: OfferRaw,
    *,
    source_id: int,
    location_id: int,
    category_id: int,
    is_commercial: bool,
    commercial_room_ids: Mapping[str, int],
) -> ListingData | None:
    """
    Transform one raw offer into a database-ready listing.

    Args:
        offer: Raw offer from ``response.offers.items``
        source_id: sources.id of the upstream
        location_id: Shard location
        category_id: Shard category
        is_commercial: Shard searches commercial property
        commercial_room_ids: rooms.code -> rooms.id lookup

    Returns:
        ListingData, or None when the offer has no ID
    """
    offer_id = offer.get("offerId")
    if offer_id is None or offer_id == "":
        return None

    square_meters = _to_float((offer.get("area") or {}).get("value"))
    city, street, house = transform_address(offer)

    phones = (offer.get("author") or {}).get("phones") or []
    phone = transform_phone(phones[0]) if phones else None

    location = offer.get("location") or {}
    floors_offered = offer.get("floorsOffered") or []

    return ListingData(
        external_id=str(offer_id),
        source_id=source_id,
        category_id=category_id,
        location_id=location_id,
        room_id=transform_room_id(offer, is_commercial, commercial_room_ids),
        listing_status_id=LISTING_STATUS_RAISED if is_raised(offer) else LISTING_STATUS_NEW,
        title=transform_title(offer, square_meters, is_commercial),
        address=location.get("geocoderAddress"),
        city=city,
        street=street,
        house=house,
        price=_to_float((offer.get("price") or {}).get("value")),
        square_meters=square_meters,
        floor=_to_int(floors_offered[0]) if floors_offered else None,
        floors_total=_to_int(offer.get("floorsTotal")),
        phone=phone,
        url=offer.get("shareUrl"),
        lat=_to_float(location.get("latitude")),
        lng=_to_float(location.get("longitude")),
    )
