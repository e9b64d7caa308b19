"""Listings module."""

from harvester.modules.listings.models import (
    LISTING_STATUS_NEW,
    LISTING_STATUS_RAISED,
    ListingData,
    PricePoint,
)
from harvester.modules.listings.repository import ListingRepository

__all__ = [
    "LISTING_STATUS_NEW",
    "LISTING_STATUS_RAISED",
    "ListingData",
    "PricePoint",
    "ListingRepository",
]
