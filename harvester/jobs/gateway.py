"""
Persistence Gateway Module.

Idempotent persistence of listings, station links and price history, with a
single reconnect-and-retry on storage faults.
"""

from loguru import logger

from harvester.connections.postgres import PostgresConnection
from harvester.crawler.client import RealtyClient
from harvester.modules.listings import ListingData, ListingRepository, PricePoint
from harvester.modules.stations import Station, TransitEstimate
from harvester.utils.price_history import build_price_history

gateway_log = logger.bind(module="Gateway")


class PersistenceGateway:
    """Writes listings of one worker through its own connection."""

    def __init__(
        self,
        db: PostgresConnection,
        client: RealtyClient,
        listings: ListingRepository | None = None,
        worker_name: str = "",
    ):
        """
        Initialize the gateway.

        Args:
            db: Worker-owned connection (reconnected on faults)
            client: Upstream client used for price history
            listings: Listing repository (built from ``db`` if omitted)
            worker_name: Log prefix
        """
        self._db = db
        self._client = client
        self._listings = listings or ListingRepository(db)
        self._prefix = f"[{worker_name}] " if worker_name else ""

    async def save(self, listing: ListingData) -> int | None:
        """
        Upsert a listing, reconnecting once on failure.

        Args:
            listing: Normalized listing

        Returns:
            Listing ID, or None if it could not be persisted
        """
        try:
            listing_id, _ = await self._listings.save(listing)
            return listing_id
        except Exception as e:
            gateway_log.warning(f"{self._prefix}Database error, reconnecting: {e}")

        try:
            await self._db.reconnect()
            listing_id, _ = await self._listings.save(listing)
            return listing_id
        except Exception as e:
            gateway_log.error(
                f"{self._prefix}Database error after reconnect, "
                f"offer {listing.external_id} not saved: {e}"
            )
            return None

    async def link(
        self,
        listing_id: int,
        station: Station,
        estimate: TransitEstimate,
    ) -> bool:
        """
        Upsert the listing-station link.

        Returns:
            True on success; failures are logged and swallowed
        """
        try:
            await self._listings.save_station_link(listing_id, station.id, estimate)
            return True
        except Exception as e:
            gateway_log.warning(
                f"{self._prefix}Failed to link listing {listing_id} "
                f"to station {station.id}: {e}"
            )
            return False

    async def refresh_price_history(
        self, listing_id: int, offer_id: str
    ) -> list[PricePoint] | None:
        """
        Fetch the upstream price timeline and store the diffed series.

        Skips offers with a single price point. Failures are logged and
        swallowed; they never abort the surrounding save.

        Returns:
            Stored series, or None if nothing was stored
        """
        try:
            prices = await self._client.fetch_price_history(offer_id)
            history = build_price_history(prices)
            if history is None:
                return None

            await self._listings.update_price_history(listing_id, history)
            gateway_log.info(
                f"{self._prefix}Price history saved: offer {offer_id}, "
                f"listing {listing_id}, {len(history)} entries"
            )
            return history
        except Exception as e:
            gateway_log.warning(
                f"{self._prefix}Failed to fetch price history for offer {offer_id}: {e}"
            )
            return None
