"""
Station Repository.
"""

from loguru import logger

from harvester.connections.postgres import PostgresConnection
from harvester.modules.stations.models import Station

stations_log = logger.bind(module="Stations")


class StationRepository:
    """Read access to ``metro_stations``."""

    def __init__(self, db: PostgresConnection):
        self._db = db

    async def get_by_location(self, location_id: int) -> list[Station]:
        """
        Get stations with coordinates for a location.

        Args:
            location_id: Location ID

        Returns:
            List of Station
        """
        query = """
        SELECT id, name, lat, lng, location_id FROM metro_stations
        WHERE location_id = $1
          AND lat IS NOT NULL
          AND lng IS NOT NULL
        """
        rows = await self._db.connection.fetch(query, location_id)
        return [
            Station(
                id=row["id"],
                name=row["name"],
                lat=float(row["lat"]),
                lng=float(row["lng"]),
                location_id=row["location_id"],
            )
            for row in rows
        ]
