"""Stations module."""

from harvester.modules.stations.models import Station, TransitEstimate
from harvester.modules.stations.repository import StationRepository

__all__ = [
    "Station",
    "TransitEstimate",
    "StationRepository",
]
