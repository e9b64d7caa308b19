"""
Listing Repository.

Data access layer for the shared ``listings`` and ``listing_station_links`` tables.
Writes are upserts only; nothing here deletes rows.
"""

import json
from decimal import Decimal

from loguru import logger

from harvester.connections.postgres import PostgresConnection
from harvester.modules.listings.models import ListingData, PricePoint
from harvester.modules.stations.models import TransitEstimate

listings_log = logger.bind(module="Listings")


def _decimal(value: float | None) -> Decimal | None:
    """Convert float to Decimal for NUMERIC columns."""
    if value is None:
        return None
    return Decimal(str(value))


class ListingRepository:
    """Repository for listing database operations."""

    def __init__(self, db: PostgresConnection):
        """
        Initialize repository.

        Args:
            db: Worker-owned PostgreSQL connection manager
        """
        self._db = db

    async def save(self, listing: ListingData) -> tuple[int, bool]:
        """
        Upsert a listing keyed by (source_id, external_id).

        Repeated sightings overwrite the mutable fields of the existing row.
        The PostGIS point is written in the same transaction when both
        coordinates are present.

        Args:
            listing: Normalized listing

        Returns:
            Tuple of (listing_id, inserted)
        """
        query = """
        INSERT INTO listings (
            source_id, external_id, category_id, location_id, room_id,
            listing_status_id, title, address, city, street, house,
            price, square_meters, floor, floors_total, phone, url, lat, lng,
            created_at, updated_at
        ) VALUES (
            $1, $2, $3, $4, $5, $6, $7, $8, $9, $10,
            $11, $12, $13, $14, $15, $16, $17, $18, $19,
            NOW(), NOW()
        )
        ON CONFLICT (source_id, external_id) DO UPDATE SET
            category_id = EXCLUDED.category_id,
            location_id = EXCLUDED.location_id,
            room_id = EXCLUDED.room_id,
            listing_status_id = EXCLUDED.listing_status_id,
            title = EXCLUDED.title,
            address = EXCLUDED.address,
            city = EXCLUDED.city,
            street = EXCLUDED.street,
            house = EXCLUDED.house,
            price = EXCLUDED.price,
            square_meters = EXCLUDED.square_meters,
            floor = EXCLUDED.floor,
            floors_total = EXCLUDED.floors_total,
            phone = EXCLUDED.phone,
            url = EXCLUDED.url,
            lat = EXCLUDED.lat,
            lng = EXCLUDED.lng,
            updated_at = NOW()
        RETURNING id, (xmax = 0) AS inserted
        """

        conn = self._db.connection
        async with conn.transaction():
            row = await conn.fetchrow(
                query,
                listing.source_id,                      # $1
                listing.external_id,                    # $2
                listing.category_id,                    # $3
                listing.location_id,                    # $4
                listing.room_id,                        # $5
                listing.listing_status_id,              # $6
                listing.title,                          # $7
                listing.address,                        # $8
                listing.city,                           # $9
                listing.street,                         # $10
                listing.house,                          # $11
                _decimal(listing.price),                # $12
                _decimal(listing.square_meters),        # $13
                listing.floor,                          # $14
                listing.floors_total,                   # $15
                listing.phone,                          # $16
                listing.url,                            # $17
                _decimal(listing.lat),                  # $18
                _decimal(listing.lng),                  # $19
            )

            if listing.has_coordinates():
                await conn.execute(
                    "UPDATE listings SET point = ST_SetSRID(ST_MakePoint($1, $2), 4326) "
                    "WHERE id = $3",
                    listing.lng,
                    listing.lat,
                    row["id"],
                )

        return row["id"], row["inserted"]

    async def save_station_link(
        self,
        listing_id: int,
        station_id: int,
        estimate: TransitEstimate,
    ) -> None:
        """
        Upsert the listing-station association.

        Other links of the listing are left untouched. Estimate fields that are
        missing in ``estimate`` keep their stored values.

        Args:
            listing_id: Listing ID
            station_id: Station ID
            estimate: Travel estimate
        """
        query = """
        INSERT INTO listing_station_links (
            listing_id, station_id, travel_time_min, travel_type, distance,
            created_at, updated_at
        ) VALUES ($1, $2, $3, COALESCE($4, 'walk'), $5, NOW(), NOW())
        ON CONFLICT (listing_id, station_id) DO UPDATE SET
            travel_time_min = COALESCE($3, listing_station_links.travel_time_min),
            travel_type = COALESCE($4, listing_station_links.travel_type),
            distance = COALESCE($5, listing_station_links.distance),
            updated_at = NOW()
        """
        await self._db.connection.execute(
            query,
            listing_id,
            station_id,
            estimate.travel_time_min,
            estimate.travel_type,
            estimate.distance,
        )

    async def update_price_history(
        self, listing_id: int, history: list[PricePoint]
    ) -> None:
        """
        Store the price history blob of a listing.

        Args:
            listing_id: Listing ID
            history: Newest-first price points
        """
        payload = json.dumps([point.model_dump() for point in history])
        query = """
        UPDATE listings
        SET price_history = $2::jsonb, updated_at = NOW()
        WHERE id = $1
        """
        await self._db.connection.execute(query, listing_id, payload)

    async def get_recent_external_ids(
        self,
        source_id: int,
        location_id: int,
        category_id: int,
        days: int = 30,
    ) -> set[str]:
        """
        Get external IDs of listings created within the last ``days`` days.

        Args:
            source_id: Source ID
            location_id: Location ID
            category_id: Category ID
            days: Window size in days

        Returns:
            Set of external IDs
        """
        query = """
        SELECT external_id FROM listings
        WHERE source_id = $1
          AND location_id = $2
          AND category_id = $3
          AND created_at >= NOW() - make_interval(days => $4)
        """
        rows = await self._db.connection.fetch(
            query, source_id, location_id, category_id, days
        )
        return {row["external_id"] for row in rows}

    async def get_by_external_id(
        self, source_id: int, external_id: str
    ) -> dict | None:
        """
        Get listing by its upstream key.

        Args:
            source_id: Source ID
            external_id: Upstream offer ID

        Returns:
            Listing record or None if not found
        """
        query = "SELECT * FROM listings WHERE source_id = $1 AND external_id = $2"
        row = await self._db.connection.fetchrow(query, source_id, external_id)
        return dict(row) if row else None
