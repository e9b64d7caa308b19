"""
Unit tests for harvester/jobs/gateway.py
"""

import asyncio

from harvester.jobs.gateway import PersistenceGateway
from harvester.modules.listings import ListingData
from harvester.modules.stations import Station, TransitEstimate
from tests.fixtures.fakes import FakeClient, FakeDb, FakeListings

# Import fixtures
pytest_plugins = ["tests.fixtures.offers"]


def make_listing(external_id: str = "1") -> ListingData:
    return ListingData(
        external_id=external_id,
        source_id=2,
        category_id=1,
        location_id=1,
        title="Studio, 28 m²",
        price=45000,
    )


# ============================================================
# save tests
# ============================================================


class TestSave:
    """Tests for PersistenceGateway.save."""

    def test_success(self):
        db, listings = FakeDb(), FakeListings()
        gateway = PersistenceGateway(db, FakeClient(), listings=listings)

        assert asyncio.run(gateway.save(make_listing())) == 1
        assert db.reconnects == 0

    def test_reconnects_and_retries_once(self):
        db, listings = FakeDb(), FakeListings(save_failures=1)
        gateway = PersistenceGateway(db, FakeClient(), listings=listings)

        assert asyncio.run(gateway.save(make_listing())) == 1
        assert db.reconnects == 1
        assert len(listings.saved) == 1

    def test_gives_up_after_second_failure(self):
        db, listings = FakeDb(), FakeListings(save_failures=2)
        gateway = PersistenceGateway(db, FakeClient(), listings=listings)

        assert asyncio.run(gateway.save(make_listing())) is None
        assert db.reconnects == 1
        assert listings.saved == []

    def test_failed_reconnect(self):
        db, listings = FakeDb(fail_reconnect=True), FakeListings(save_failures=1)
        gateway = PersistenceGateway(db, FakeClient(), listings=listings)

        assert asyncio.run(gateway.save(make_listing())) is None


# ============================================================
# link tests
# ============================================================


class TestLink:
    """Tests for PersistenceGateway.link."""

    def test_link(self):
        listings = FakeListings()
        gateway = PersistenceGateway(FakeDb(), FakeClient(), listings=listings)
        station = Station(id=10, name="Arbatskaya", lat=55.75, lng=37.60)
        estimate = TransitEstimate(travel_time_min=10, travel_type="walk", distance="850 m")

        assert asyncio.run(gateway.link(5, station, estimate)) is True
        assert listings.links == [(5, 10, estimate)]

    def test_failure_is_swallowed(self):
        class BrokenListings(FakeListings):
            async def save_station_link(self, listing_id, station_id, estimate):
                raise ConnectionResetError("gone")

        gateway = PersistenceGateway(FakeDb(), FakeClient(), listings=BrokenListings())
        station = Station(id=10, name="Arbatskaya", lat=55.75, lng=37.60)

        assert asyncio.run(gateway.link(5, station, TransitEstimate())) is False


# ============================================================
# refresh_price_history tests
# ============================================================


class TestRefreshPriceHistory:
    """Tests for PersistenceGateway.refresh_price_history."""

    def test_stores_series(self, price_timeline):
        listings = FakeListings()
        client = FakeClient(prices=price_timeline)
        gateway = PersistenceGateway(FakeDb(), client, listings=listings)

        history = asyncio.run(gateway.refresh_price_history(7, "42"))

        assert client.history_requests == ["42"]
        assert [p.diff for p in history] == [-30000, 20000, 0]
        assert listings.histories[7] == history

    def test_single_point_not_stored(self):
        listings = FakeListings()
        gateway = PersistenceGateway(FakeDb(), FakeClient(prices=[{"value": 1}]), listings=listings)

        assert asyncio.run(gateway.refresh_price_history(7, "42")) is None
        assert listings.histories == {}

    def test_fetch_failure_is_swallowed(self):
        listings = FakeListings()
        client = FakeClient(prices=TimeoutError("card endpoint timed out"))
        gateway = PersistenceGateway(FakeDb(), client, listings=listings)

        assert asyncio.run(gateway.refresh_price_history(7, "42")) is None
        assert listings.histories == {}
