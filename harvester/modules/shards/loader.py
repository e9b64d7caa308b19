"""
Shard file loader.

Reads the JSON shard file and flattens it into one ShardConfig per
(location, category) pair.
"""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from harvester.exceptions import ConfigError
from harvester.modules.shards.models import ShardConfig, ShardFile

shards_log = logger.bind(module="Shards")


def collect_shards(shard_file: ShardFile) -> list[ShardConfig]:
    """
    Flatten locations x categories into shard configs.

    Args:
        shard_file: Parsed shard file

    Returns:
        List of ShardConfig in file order
    """
    shards: list[ShardConfig] = []
    for location in shard_file.locations:
        for category in location.categories:
            shards.append(
                ShardConfig(
                    location_id=location.id,
                    location_name=location.name,
                    rgid=location.rgid,
                    category_id=category.id,
                    filter_today_only=category.filter_today_only,
                    sleep_min_ms=category.sleep_min_ms,
                    sleep_max_ms=category.sleep_max_ms,
                    proxies=tuple(category.proxies) if category.proxies is not None else None,
                    timezone=location.timezone,
                    defaults=shard_file.request,
                    params=category.params,
                )
            )
    return shards


def load_shards(path: str | Path) -> list[ShardConfig]:
    """
    Load and validate the shard file.

    Args:
        path: Path to the JSON shard file

    Returns:
        List of ShardConfig

    Raises:
        ConfigError: File is missing, not JSON, or fails validation
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Shard file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Shard file is not valid JSON: {path}: {e}") from e

    try:
        shard_file = ShardFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid shard file {path}: {e}") from e

    shards = collect_shards(shard_file)

    keys = [shard.key for shard in shards]
    if len(keys) != len(set(keys)):
        raise ConfigError(f"Duplicate (location, category) pairs in {path}")

    shards_log.info(f"Loaded {len(shards)} shards from {path}")
    return shards
