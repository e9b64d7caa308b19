"""
Price history utilities.

Turn the upstream price timeline of one offer into the stored
newest-first series.
"""

from collections.abc import Sequence
from datetime import datetime

from harvester.crawler.types import PriceEntryRaw
from harvester.modules.listings.models import PricePoint


def _entry_price(entry: PriceEntryRaw) -> int:
    value = entry.get("value")
    if value is None:
        value = (entry.get("price") or {}).get("value", 0)
    return int(float(value))


def _entry_timestamp(entry: PriceEntryRaw, now: int) -> int:
    raw = entry.get("date")
    if not raw:
        return now
    try:
        return int(datetime.fromisoformat(raw.replace("Z", "+00:00")).timestamp())
    except ValueError:
        return now


def build_price_history(
    prices: Sequence[PriceEntryRaw],
    now: int | None = None,
) -> list[PricePoint] | None:
    """
    Build the newest-first price series.

    ``prices`` is ordered oldest to newest, as the upstream returns it. Each
    point's ``diff`` is its price minus the price of the next-older point; the
    oldest point has ``diff`` 0.

    Args:
        prices: Upstream price timeline (oldest first)
        now: Timestamp used for entries without a date

    Returns:
        List of PricePoint, or None when there is at most one price point

    Examples:
        >>> [p.diff for p in build_price_history([{"value": 100}, {"value": 120}, {"value": 90}])]
        [-30, 20, 0]
    """
    if len(prices) <= 1:
        return None

    if now is None:
        now = int(datetime.now().timestamp())

    newest_first = list(reversed(prices))
    values = [_entry_price(entry) for entry in newest_first]

    history: list[PricePoint] = []
    for index, entry in enumerate(newest_first):
        older = values[index + 1] if index + 1 < len(values) else None
        history.append(
            PricePoint(
                date=_entry_timestamp(entry, now),
                price=values[index],
                diff=values[index] - older if older is not None else 0,
            )
        )
    return history
