"""Storage connections."""

from harvester.connections.postgres import PostgresConnection

__all__ = ["PostgresConnection"]
