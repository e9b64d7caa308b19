"""Shards module."""

from harvester.modules.shards.loader import collect_shards, load_shards
from harvester.modules.shards.models import (
    CategoryConfig,
    LocationConfig,
    RequestParams,
    ShardConfig,
    ShardFile,
)

__all__ = [
    "RequestParams",
    "CategoryConfig",
    "LocationConfig",
    "ShardFile",
    "ShardConfig",
    "collect_shards",
    "load_shards",
]
