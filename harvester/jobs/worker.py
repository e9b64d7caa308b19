"""
Scrape Worker Module.

One worker per shard, each in its own OS process. The worker polls the search
endpoint forever, normalizes new offers and persists them.
"""

import asyncio
import random
import signal
import sys
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo

import requests
from loguru import logger

from config.settings import Settings, get_settings
from harvester.connections.postgres import PostgresConnection
from harvester.crawler.client import RealtyClient
from harvester.crawler.request_builder import build_url
from harvester.crawler.types import OfferRaw
from harvester.exceptions import UpstreamError
from harvester.jobs.dedup import DedupCache
from harvester.jobs.gateway import PersistenceGateway
from harvester.modules.listings import ListingData, ListingRepository
from harvester.modules.rooms import RoomRepository
from harvester.modules.shards import ShardConfig
from harvester.modules.stations import Station, StationRepository, TransitEstimate
from harvester.utils.geo import resolve_station
from harvester.utils.mappings import commercial_room_codes
from harvester.utils.transformers import (
    is_raised,
    map_offer_to_listing,
    transform_creation_day,
    transform_station_query,
    transform_transit,
)

worker_log = logger.bind(module="Worker")

MAX_CONSECUTIVE_ERRORS = 10
ERROR_BACKOFF_SECONDS = 30
BACKOFF_SLICE_SECONDS = 1.0
RAISED_PAUSE_SECONDS = 0.5


class StopToken:
    """
    Stop flag of a single worker.

    Set either by the worker's own signal handlers (plain attribute write,
    safe inside a handler) or by the supervisor through the shared event.
    """

    def __init__(self, event=None):
        self._event = event
        self._requested = False

    def request(self) -> None:
        self._requested = True

    def is_set(self) -> bool:
        if self._requested:
            return True
        return self._event is not None and self._event.is_set()


class ScrapeWorker:
    """
    Polling loop of one shard.

    Workflow per iteration:
    1. Build the search URL (randomized price window)
    2. Rotate the dedup cache if due
    3. Sleep a random delay
    4. Fetch offers, skip known ones, persist the rest
    5. Count errors; back off after MAX_CONSECUTIVE_ERRORS in a row
    """

    def __init__(
        self,
        shard: ShardConfig,
        settings: Settings | None = None,
        stop: StopToken | None = None,
        postgres: PostgresConnection | None = None,
        client: RealtyClient | None = None,
        gateway: PersistenceGateway | None = None,
        cache: DedupCache | None = None,
        stations: Sequence[Station] | None = None,
        commercial_room_ids: dict[str, int] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
        today: Callable[[str], date] | None = None,
    ):
        """
        Initialize the worker.

        Collaborators not provided are created in ``setup()``.

        Args:
            shard: Shard owned by this worker
            settings: Application settings (defaults to get_settings())
            stop: Stop token checked between iterations
            postgres: Worker-owned database connection
            client: Upstream API client
            gateway: Persistence gateway
            cache: Dedup cache
            stations: Station table of the shard location
            commercial_room_ids: rooms.code -> rooms.id lookup
            sleep: Async sleep function
            rng: Random source for delays and price windows
            today: Returns the current date in the given timezone
        """
        self.shard = shard
        self.settings = settings or get_settings()
        self.stop = stop or StopToken()
        self._postgres = postgres
        self._client = client
        self._gateway = gateway
        self._cache = cache
        self._stations = list(stations) if stations is not None else None
        self._commercial_room_ids = commercial_room_ids
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._today = today or (lambda tz: datetime.now(ZoneInfo(tz)).date())
        self._owns_postgres = False
        self._owns_client = False
        self.consecutive_errors = 0

    # ============================================
    # Derived Settings
    # ============================================

    @property
    def name(self) -> str:
        return self.shard.name

    @property
    def timezone(self) -> str:
        return self.shard.timezone or self.settings.realty.timezone

    @property
    def proxy_pool(self) -> list[str]:
        """Shard proxies win; the global pool applies only when enabled."""
        if self.shard.proxies is not None:
            return list(self.shard.proxies)
        if self.settings.proxy.enabled:
            return list(self.settings.proxy.urls)
        return []

    def sleep_seconds(self) -> float:
        """Random per-iteration delay from the shard or global range."""
        realty = self.settings.realty
        low = self.shard.sleep_min_ms
        high = self.shard.sleep_max_ms
        low = realty.sleep_min_ms if low is None else low
        high = realty.sleep_max_ms if high is None else high
        if high < low:
            high = low
        return self._rng.uniform(low, high) / 1000

    # ============================================
    # Lifecycle
    # ============================================

    async def setup(self) -> None:
        """Open connections and load the cache, stations and room catalog."""
        needs_db = (
            self._gateway is None
            or self._cache is None
            or self._stations is None
            or self._commercial_room_ids is None
        )
        if self._postgres is None and needs_db:
            self._postgres = PostgresConnection(self.settings.postgres)
            await self._postgres.connect()
            self._owns_postgres = True

        if self._client is None:
            self._client = RealtyClient(
                self.settings.realty, proxies=self.proxy_pool, rng=self._rng
            )
            await self._client.start()
            self._owns_client = True

        if self._gateway is None:
            self._gateway = PersistenceGateway(
                self._postgres, self._client, worker_name=self.name
            )

        if self._cache is None:
            listings = ListingRepository(self._postgres)
            realty = self.settings.realty
            self._cache = DedupCache(
                lambda: listings.get_recent_external_ids(
                    realty.source_id,
                    self.shard.location_id,
                    self.shard.category_id,
                    realty.cache_window_days,
                ),
                rotation_seconds=realty.cache_rotation_minutes * 60,
            )
        size = await self._cache.load()
        worker_log.info(f"[{self.name}] Loaded {size} existing listings into cache")

        if self._stations is None:
            try:
                self._stations = await StationRepository(self._postgres).get_by_location(
                    self.shard.location_id
                )
            except Exception as e:
                worker_log.warning(f"[{self.name}] Failed to load stations: {e}")
                self._stations = []

        if self._commercial_room_ids is None:
            try:
                self._commercial_room_ids = await RoomRepository(
                    self._postgres
                ).get_ids_by_codes(commercial_room_codes())
            except Exception as e:
                worker_log.warning(f"[{self.name}] Failed to load room catalog: {e}")
                self._commercial_room_ids = {}

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_client and self._client:
            await self._client.close()
        if self._owns_postgres and self._postgres:
            await self._postgres.close()

    async def run(self) -> None:
        """Run iterations until the stop token is set."""
        try:
            await self.setup()
            worker_log.info(f"[{self.name}] Worker started")
            while not self.stop.is_set():
                await self.run_once()
        finally:
            await self.close()
            worker_log.info(f"[{self.name}] Worker stopped")

    # ============================================
    # Iteration
    # ============================================

    async def run_once(self) -> int:
        """
        One polling iteration.

        Returns:
            Number of listings persisted
        """
        url = build_url(self.settings.realty.api_url, self.shard, rng=self._rng)
        if self.stop.is_set():
            return 0

        if await self._cache.rotate_if_due():
            worker_log.info(f"[{self.name}] Cache rotated: {len(self._cache)} listings")

        await self._sleep(self.sleep_seconds())

        try:
            offers = await self._client.fetch_offers(url)
            if not offers:
                worker_log.info(f"[{self.name}] No offers returned")
            saved = await self.process_offers(offers)
        except (requests.JSONDecodeError, UpstreamError) as e:
            worker_log.warning(f"[{self.name}] Malformed API response: {e}")
            await self._register_error()
            return 0
        except requests.RequestException as e:
            worker_log.error(f"[{self.name}] HTTP request failed: {e}")
            await self._register_error()
            return 0
        except Exception as e:
            worker_log.opt(exception=e).error(f"[{self.name}] Unexpected error: {e}")
            await self._register_error()
            return 0

        self.consecutive_errors = 0
        return saved

    async def _register_error(self) -> None:
        self.consecutive_errors += 1
        if self.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
            worker_log.warning(
                f"[{self.name}] {self.consecutive_errors} consecutive errors, "
                f"backing off for {ERROR_BACKOFF_SECONDS}s"
            )
            await self._backoff(ERROR_BACKOFF_SECONDS)
            self.consecutive_errors = 0

    async def _backoff(self, seconds: float) -> None:
        """Sleep in short slices, returning early once stop is requested."""
        remaining = seconds
        while remaining > 0 and not self.stop.is_set():
            step = min(BACKOFF_SLICE_SECONDS, remaining)
            await self._sleep(step)
            remaining -= step

    def _is_today(self, offer: OfferRaw) -> bool:
        created = transform_creation_day(offer, self.timezone)
        return created is not None and created == self._today(self.timezone)

    def _prepare(
        self, offer: OfferRaw
    ) -> tuple[ListingData, Station | None, TransitEstimate] | None:
        """
        Normalize one offer and resolve its station.

        Returns:
            (listing, station, estimate), or None when the offer is filtered
            out or unmappable
        """
        if self.shard.filter_today_only and not self._is_today(offer):
            return None

        listing = map_offer_to_listing(
            offer,
            source_id=self.settings.realty.source_id,
            location_id=self.shard.location_id,
            category_id=self.shard.category_id,
            is_commercial=self.shard.is_commercial,
            commercial_room_ids=self._commercial_room_ids or {},
        )
        if listing is None:
            return None

        station = None
        query = transform_station_query(offer)
        if query is not None:
            station = resolve_station(self._stations or [], *query)
        return listing, station, transform_transit(offer)

    async def process_offers(self, offers: Sequence[OfferRaw]) -> int:
        """
        Persist unseen offers of one search page.

        An offer is marked seen only after it was saved, filtered out on
        purpose, or found unmappable. A failed save leaves it unseen so the
        next sighting retries it. A malformed offer is skipped without
        affecting the rest of the page.

        Returns:
            Number of listings persisted
        """
        saved = 0
        for offer in offers:
            offer_id = offer.get("offerId")
            if offer_id is None or offer_id == "":
                continue
            offer_id = str(offer_id)
            if offer_id in self._cache:
                continue

            try:
                prepared = self._prepare(offer)
            except Exception as e:
                worker_log.opt(exception=e).warning(
                    f"[{self.name}] Skipping malformed offer {offer_id}: {e}"
                )
                self._cache.mark_seen(offer_id)
                continue
            if prepared is None:
                self._cache.mark_seen(offer_id)
                continue
            listing, station, estimate = prepared

            listing_id = await self._gateway.save(listing)
            if listing_id is None:
                continue
            self._cache.mark_seen(offer_id)
            saved += 1

            if station is not None:
                await self._gateway.link(listing_id, station, estimate)

            worker_log.info(
                f"[{self.name}] Saved listing {listing_id} (offer {offer_id}): "
                f"{listing.title}, {listing.price}"
            )

            if is_raised(offer):
                await self._sleep(RAISED_PAUSE_SECONDS)
                await self._gateway.refresh_price_history(listing_id, offer_id)

        return saved


# ============================================
# Process Entry Point
# ============================================


async def start_worker(shard: ShardConfig, stop: StopToken) -> None:
    """Build a worker with its own connection and client and run it."""
    worker = ScrapeWorker(shard, stop=stop)
    await worker.run()


def run_worker(shard: ShardConfig, stop_event=None) -> None:
    """
    Process target spawned by the supervisor.

    Installs handlers that only flip this worker's own stop token, then runs
    the polling loop. Any error ends the process with exit code 1.
    """
    stop = StopToken(stop_event)

    def _handle_stop(signum, frame):
        stop.request()

    signal.signal(signal.SIGTERM, _handle_stop)
    signal.signal(signal.SIGINT, _handle_stop)
    signal.signal(signal.SIGCHLD, signal.SIG_DFL)

    try:
        asyncio.run(start_worker(shard, stop))
    except Exception as e:
        worker_log.opt(exception=e).error(f"[{shard.name}] Worker crashed: {e}")
        sys.exit(1)
