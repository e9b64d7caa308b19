"""
PostgreSQL Connection Module.

Owns the single PostgreSQL connection of one worker process.
Connections are never shared across workers; each worker reconnects its own.
"""

from typing import Optional

import asyncpg
from loguru import logger

from config.settings import PostgresSettings, get_settings

pg_log = logger.bind(module="Postgres")


class PostgresConnection:
    """PostgreSQL connection manager for one worker."""

    def __init__(self, settings: PostgresSettings | None = None):
        """
        Initialize PostgreSQL connection manager.

        Args:
            settings: Connection settings (defaults to application settings)
        """
        self.settings = settings or get_settings().postgres
        self._conn: Optional[asyncpg.Connection] = None

    async def connect(self) -> None:
        """Connect to PostgreSQL."""
        pg_log.info(f"Connecting to PostgreSQL at {self.settings.host}:{self.settings.port}")
        self._conn = await asyncpg.connect(
            host=self.settings.host,
            port=self.settings.port,
            user=self.settings.user,
            password=self.settings.password,
            database=self.settings.database,
            timeout=self.settings.timeout,
        )
        pg_log.info("PostgreSQL connected successfully")

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            try:
                await self._conn.close(timeout=self.settings.timeout)
            except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                pg_log.warning(f"Closing PostgreSQL connection failed, terminating: {e}")
                self._conn.terminate()
            self._conn = None
            pg_log.info("PostgreSQL connection closed")

    async def reconnect(self) -> None:
        """Drop the current connection (if any) and open a fresh one."""
        pg_log.warning("Reconnecting to PostgreSQL")
        if self._conn is not None:
            self._conn.terminate()
            self._conn = None
        await self.connect()

    @property
    def connection(self) -> asyncpg.Connection:
        """Get the live connection."""
        if self._conn is None:
            raise RuntimeError("PostgreSQL not connected. Call connect() first.")
        return self._conn
