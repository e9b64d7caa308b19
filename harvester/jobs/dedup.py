"""
Dedup Cache Module.

Per-worker set of offer IDs that were already handled.
"""

import time
from collections.abc import Awaitable, Callable

from loguru import logger

dedup_log = logger.bind(module="Dedup")


class DedupCache:
    """
    In-memory set of handled offer IDs for one shard.

    Built from storage on worker start and rebuilt every ``rotation_seconds``
    to bound memory and pick up external changes. Owned by a single worker,
    so no locking is needed.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[set[str]]],
        rotation_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            loader: Coroutine factory returning the IDs currently in storage
            rotation_seconds: Interval between reloads
            clock: Monotonic clock (seconds)
        """
        self._loader = loader
        self._rotation_seconds = rotation_seconds
        self._clock = clock
        self._ids: set[str] = set()
        self._last_rotation = clock()

    def __contains__(self, offer_id: object) -> bool:
        return str(offer_id) in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def mark_seen(self, offer_id: object) -> None:
        """Remember an offer ID as handled."""
        self._ids.add(str(offer_id))

    async def load(self) -> int:
        """
        Rebuild the set from storage and reset the rotation clock.

        A failed load keeps the current contents.

        Returns:
            Number of IDs in the cache
        """
        try:
            self._ids = set(await self._loader())
        except Exception as e:
            dedup_log.error(f"Failed to load existing listings: {e}")
        self._last_rotation = self._clock()
        return len(self._ids)

    def rotation_due(self) -> bool:
        """Whether the rotation interval has elapsed since the last load."""
        return self._clock() - self._last_rotation >= self._rotation_seconds

    async def rotate_if_due(self) -> bool:
        """
        Reload from storage when the rotation interval has elapsed.

        Returns:
            True if the cache was reloaded
        """
        if not self.rotation_due():
            return False
        await self.load()
        return True
