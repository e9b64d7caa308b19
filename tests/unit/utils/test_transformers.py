"""
Unit tests for harvester/utils/transformers.py
"""

from datetime import date

import pytest

from harvester.modules.listings import LISTING_STATUS_NEW, LISTING_STATUS_RAISED
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

# Import fixtures
pytest_plugins = ["tests.fixtures.offers"]

COMMERCIAL_ROOM_IDS = {"office": 6, "retail": 7}


# ============================================================
# transform_room_id tests
# ============================================================


class TestTransformRoomId:
    """Tests for transform_room_id function."""

    @pytest.mark.parametrize(
        "rooms_total,expected",
        [
            ("STUDIO", 1),
            (None, 1),
            (1, 2),
            ("2", 3),
            (3, 4),
            ("PLUS_4", 5),
            (4, 5),
            (7, 5),
        ],
    )
    def test_residential(self, rooms_total, expected):
        offer = {} if rooms_total is None else {"roomsTotal": rooms_total}
        assert transform_room_id(offer, False, {}) == expected

    def test_commercial_type_resolved_through_catalog(self, commercial_offer):
        assert transform_room_id(commercial_offer, True, COMMERCIAL_ROOM_IDS) == 6

    def test_commercial_type_missing_from_catalog(self, commercial_offer):
        assert transform_room_id(commercial_offer, True, {}) is None

    def test_unknown_commercial_type(self):
        offer = {"commercial": {"commercialTypes": ["GARAGE"]}}
        assert transform_room_id(offer, True, COMMERCIAL_ROOM_IDS) is None

    def test_commercial_shard_without_type(self):
        """Commercial offers without a type must not become studios."""
        assert transform_room_id({}, True, COMMERCIAL_ROOM_IDS) is None


# ============================================================
# transform_title tests
# ============================================================


class TestTransformTitle:
    """Tests for transform_title function."""

    def test_rooms(self):
        assert transform_title({"roomsTotal": 2}, 54.5, False) == "2-room apartment, 54.5 m²"

    def test_whole_area_has_no_decimal(self):
        assert transform_title({"roomsTotal": 1}, 38.0, False) == "1-room apartment, 38 m²"

    def test_studio(self):
        assert transform_title({"roomsTotal": "STUDIO"}, 28.0, False) == "Studio, 28 m²"

    def test_plus_four(self):
        assert transform_title({"roomsTotal": "PLUS_4"}, 140.0, False) == "4+-room apartment, 140 m²"

    def test_without_area(self):
        assert transform_title({"roomsTotal": 3}, None, False) == "3-room apartment"

    def test_commercial_type(self, commercial_offer):
        assert transform_title(commercial_offer, 120.0, True) == "Office, 120 m²"

    def test_commercial_without_type(self):
        assert transform_title({}, 50.0, True) == "Commercial property, 50 m²"


# ============================================================
# transform_address tests
# ============================================================


class TestTransformAddress:
    """Tests for transform_address function."""

    def test_full_address(self, apartment_offer):
        assert transform_address(apartment_offer) == ("Moscow", "Arbat street", "10")

    def test_first_component_wins(self):
        offer = {
            "location": {
                "structuredAddress": {
                    "component": [
                        {"regionType": "STREET", "value": "First street"},
                        {"regionType": "STREET", "value": "Second street"},
                        {"regionType": "HOUSE", "value": "1"},
                        {"regionType": "HOUSE", "value": "2"},
                    ]
                }
            }
        }
        assert transform_address(offer) == (None, "First street", "1")

    def test_city_district_used_as_city(self):
        offer = {
            "location": {
                "structuredAddress": {
                    "component": [{"regionType": "CITY_DISTRICT", "value": "Zelenograd"}]
                }
            }
        }
        assert transform_address(offer) == ("Zelenograd", None, None)

    def test_missing_location(self):
        assert transform_address({}) == (None, None, None)


# ============================================================
# transform_phone tests
# ============================================================


class TestTransformPhone:
    """Tests for transform_phone function."""

    def test_formatted_number(self):
        assert transform_phone("+7 (916) 123-45-67") == "79161234567"

    def test_leading_eight(self):
        assert transform_phone("89161234567") == "79161234567"

    def test_ten_digits(self):
        assert transform_phone("9161234567") == "79161234567"

    def test_mobile_number_inside_noise(self):
        assert transform_phone("tel 8 916 123 45 67 ext 12") == "79161234567"

    def test_too_short(self):
        assert transform_phone("12345") is None

    def test_empty(self):
        assert transform_phone("") is None
        assert transform_phone(None) is None


# ============================================================
# format_distance tests
# ============================================================


class TestFormatDistance:
    """Tests for format_distance function."""

    def test_meters_rounded_to_fifty(self):
        assert format_distance(833.3) == "850 m"

    def test_small_distance(self):
        assert format_distance(25) == "50 m"
        assert format_distance(10) == "0 m"

    def test_kilometers(self):
        assert format_distance(2666.7) == "2.7 km"

    def test_whole_kilometers(self):
        assert format_distance(1000) == "1 km"
        assert format_distance(5000) == "5 km"


# ============================================================
# transform_transit tests
# ============================================================


class TestTransformTransit:
    """Tests for transform_transit function."""

    def test_on_foot(self, apartment_offer):
        estimate = transform_transit(apartment_offer)
        assert estimate.travel_time_min == 10
        assert estimate.travel_type == "walk"
        assert estimate.distance == "850 m"

    def test_on_transport(self):
        offer = {"location": {"metro": {"timeToMetro": 12, "metroTransport": "ON_TRANSPORT"}}}
        estimate = transform_transit(offer)
        assert estimate.travel_type == "public_transport"
        assert estimate.distance == "5 km"

    def test_no_metro(self):
        estimate = transform_transit({})
        assert estimate.travel_time_min is None
        assert estimate.travel_type is None
        assert estimate.distance is None

    def test_non_positive_time_is_dropped(self):
        offer = {"location": {"metro": {"timeToMetro": 0, "metroTransport": "ON_FOOT"}}}
        estimate = transform_transit(offer)
        assert estimate.travel_time_min is None
        assert estimate.distance is None
        assert estimate.travel_type == "walk"


# ============================================================
# transform_station_query tests
# ============================================================


class TestTransformStationQuery:
    """Tests for transform_station_query function."""

    def test_reported_station(self, apartment_offer):
        assert transform_station_query(apartment_offer) == ("Arbatskaya", 55.7521, 37.6035)

    def test_requires_metro_list(self, apartment_offer):
        apartment_offer["location"]["metroList"] = []
        assert transform_station_query(apartment_offer) is None


# ============================================================
# transform_creation_day tests
# ============================================================


class TestTransformCreationDay:
    """Tests for transform_creation_day function."""

    def test_converted_to_local_day(self, apartment_offer):
        assert transform_creation_day(apartment_offer, "Europe/Moscow") == date(2024, 5, 2)

    def test_same_instant_in_utc(self, apartment_offer):
        assert transform_creation_day(apartment_offer, "UTC") == date(2024, 5, 1)

    def test_missing_or_invalid(self):
        assert transform_creation_day({}, "UTC") is None
        assert transform_creation_day({"creationDate": "yesterday"}, "UTC") is None


# ============================================================
# map_offer_to_listing tests
# ============================================================


class TestMapOfferToListing:
    """Tests for map_offer_to_listing function."""

    def _map(self, offer, is_commercial=False):
        return map_offer_to_listing(
            offer,
            source_id=2,
            location_id=1,
            category_id=1,
            is_commercial=is_commercial,
            commercial_room_ids=COMMERCIAL_ROOM_IDS,
        )

    def test_apartment(self, apartment_offer):
        listing = self._map(apartment_offer)

        assert listing.external_id == "4431056093912345678"
        assert listing.source_id == 2
        assert listing.room_id == 3
        assert listing.listing_status_id == LISTING_STATUS_NEW
        assert listing.title == "2-room apartment, 54.5 m²"
        assert listing.address == "Moscow, Arbat street, 10"
        assert (listing.city, listing.street, listing.house) == ("Moscow", "Arbat street", "10")
        assert listing.price == 85000
        assert listing.square_meters == 54.5
        assert listing.floor == 7
        assert listing.floors_total == 17
        assert listing.phone == "79161234567"
        assert listing.url == "https://realty.example.ru/offer/4431056093912345678"
        assert listing.has_coordinates()

    def test_commercial(self, commercial_offer):
        listing = self._map(commercial_offer, is_commercial=True)
        assert listing.room_id == 6
        assert listing.title == "Office, 120 m²"
        assert listing.phone is None
        assert not listing.has_coordinates()

    def test_raised_status(self, raised_offer):
        assert is_raised(raised_offer)
        assert self._map(raised_offer).listing_status_id == LISTING_STATUS_RAISED

    def test_promoted_counts_as_raised(self, apartment_offer):
        apartment_offer["promoted"] = True
        assert self._map(apartment_offer).listing_status_id == LISTING_STATUS_RAISED

    def test_numeric_offer_id_becomes_string(self, apartment_offer):
        apartment_offer["offerId"] = 123
        assert self._map(apartment_offer).external_id == "123"

    def test_missing_offer_id(self, apartment_offer):
        del apartment_offer["offerId"]
        assert self._map(apartment_offer) is None
