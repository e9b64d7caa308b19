"""Crawler modules."""

from harvester.crawler.client import RealtyClient
from harvester.crawler.request_builder import (
    PRICE_STEP,
    build_params,
    build_url,
    merge_params,
    pick_in_range,
)
from harvester.crawler.types import OfferRaw, PriceEntryRaw

__all__ = [
    # Types
    "OfferRaw",
    "PriceEntryRaw",
    # Request builder
    "PRICE_STEP",
    "pick_in_range",
    "merge_params",
    "build_params",
    "build_url",
    # Client
    "RealtyClient",
]
