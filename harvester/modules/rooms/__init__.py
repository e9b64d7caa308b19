"""Rooms module."""

from harvester.modules.rooms.repository import RoomRepository

__all__ = ["RoomRepository"]
