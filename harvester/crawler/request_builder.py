"""
Search request builder.

Builds the upstream search URL for a shard. The URL is rebuilt on every
iteration: price bounds configured as ranges are re-drawn each time so that
consecutive requests never hit the upstream response cache.
"""

import random
from typing import Any
from urllib.parse import urlencode

from harvester.modules.shards.models import RequestParams, ShardConfig

# Randomized prices are multiples of this step away from the range start
PRICE_STEP = 1000

_PRICE_KEYS = ("priceMin", "priceMax")


def pick_in_range(
    low: int,
    high: int,
    step: int = PRICE_STEP,
    rng: random.Random | None = None,
) -> int:
    """
    Draw ``low + k * step`` within ``[low, high]``.

    Examples:
        >>> pick_in_range(15000, 15000)
        15000
    """
    rng = rng or random
    steps = (high - low) // step
    return low + rng.randint(0, steps) * step


def merge_params(defaults: RequestParams, overrides: RequestParams) -> dict[str, Any]:
    """
    Merge global defaults with shard parameters.

    Shard fields that were set explicitly win, including an explicit null,
    which removes the parameter from the request.

    Returns:
        Dict keyed by upstream query names
    """
    merged = defaults.model_dump(by_alias=True, exclude_none=True)
    merged.update(overrides.model_dump(by_alias=True, exclude_unset=True))
    return {key: value for key, value in merged.items() if value is not None}


def build_params(
    shard: ShardConfig,
    step: int = PRICE_STEP,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """
    Build query parameters for one request of ``shard``.

    Args:
        shard: Shard configuration
        step: Price randomization step
        rng: Random source (module ``random`` by default)

    Returns:
        Dict of query parameters; list values become repeated keys
    """
    params = merge_params(shard.defaults, shard.params)
    params["rgid"] = shard.rgid

    for key in _PRICE_KEYS:
        value = params.get(key)
        if isinstance(value, (tuple, list)):
            low, high = value
            params[key] = pick_in_range(low, high, step=step, rng=rng)

    return params


def build_url(
    api_url: str,
    shard: ShardConfig,
    step: int = PRICE_STEP,
    rng: random.Random | None = None,
) -> str:
    """Build the full search URL for one request of ``shard``."""
    params = build_params(shard, step=step, rng=rng)
    return f"{api_url}?{urlencode(params, doseq=True)}"
