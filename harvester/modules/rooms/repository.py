"""
Room Repository.
"""

from harvester.connections.postgres import PostgresConnection


class RoomRepository:
    """Read access to the ``rooms`` lookup table."""

    def __init__(self, db: PostgresConnection):
        self._db = db

    async def get_ids_by_codes(self, codes: list[str]) -> dict[str, int]:
        """
        Resolve room codes to IDs.

        Args:
            codes: Room codes (e.g. "office", "retail")

        Returns:
            Dict mapping code to room ID; unknown codes are absent
        """
        query = "SELECT code, id FROM rooms WHERE code = ANY($1::text[])"
        rows = await self._db.connection.fetch(query, codes)
        return {row["code"]: row["id"] for row in rows}
