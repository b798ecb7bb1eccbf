from __future__ import annotations

from collections.abc import Mapping
from typing import TypedDict


class DurationBucket(TypedDict):
    key: str
    label: str
    min_minutes: float
    max_minutes: float | None
    midpoint_minutes: float


OPEN_BAND_REPRESENTATIVE_MINUTES = 35.0
"""Stand-in duration for bucket ``f`` (``>30``).

The band has no upper edge, so this is a fixed representative value and not a
true midpoint.  Keep it constant: historical averages were computed with it.
"""

OVER_THRESHOLD_MIN_MINUTES = 10.0
"""Transactions in a bucket starting at or above this duration count as over threshold."""

BUCKETS: tuple[DurationBucket, ...] = (
    {"key": "a", "label": "<5", "min_minutes": 0.0, "max_minutes": 5.0, "midpoint_minutes": 2.5},
    {"key": "b", "label": "5-10", "min_minutes": 5.0, "max_minutes": 10.0, "midpoint_minutes": 7.5},
    {
        "key": "c",
        "label": "10-15",
        "min_minutes": 10.0,
        "max_minutes": 15.0,
        "midpoint_minutes": 12.5,
    },
    {
        "key": "d",
        "label": "15-20",
        "min_minutes": 15.0,
        "max_minutes": 20.0,
        "midpoint_minutes": 17.5,
    },
    {
        "key": "e",
        "label": "20-30",
        "min_minutes": 20.0,
        "max_minutes": 30.0,
        "midpoint_minutes": 25.0,
    },
    {
        "key": "f",
        "label": ">30",
        "min_minutes": 30.0,
        "max_minutes": None,
        "midpoint_minutes": OPEN_BAND_REPRESENTATIVE_MINUTES,
    },
)

BUCKET_KEYS: tuple[str, ...] = tuple(b["key"] for b in BUCKETS)
OVER_THRESHOLD_KEYS: tuple[str, ...] = tuple(
    b["key"] for b in BUCKETS if b["min_minutes"] >= OVER_THRESHOLD_MIN_MINUTES
)

# Pre-built lookup for O(1) midpoint access
_MIDPOINT_SECONDS: dict[str, int] = {
    b["key"]: round(b["midpoint_minutes"] * 60) for b in BUCKETS
}


def midpoint_seconds(key: str) -> int:
    """Return the representative duration of a bucket in whole seconds."""
    return _MIDPOINT_SECONDS[key]


def total_count(counts: Mapping[str, int]) -> int:
    return sum(counts.get(key, 0) for key in BUCKET_KEYS)


def over_threshold_count(counts: Mapping[str, int]) -> int:
    return sum(counts.get(key, 0) for key in OVER_THRESHOLD_KEYS)


def over_threshold_ratio(over: int, total: int) -> float:
    """Percentage of over-threshold transactions; ``0.0`` for an empty day."""
    if total <= 0:
        return 0.0
    return over / total * 100
