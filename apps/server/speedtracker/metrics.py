"""Record metrics derived from bucket counts and the record date.

Everything here is pure: no I/O, no shared state, and no exceptions for any
``RawInput``.  Malformed counts were already folded to ``0`` by
:func:`~speedtracker.domain_models.coerce_count` and are coerced again here so
hand-built inputs with negative values obey the same rule.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date

from .buckets import (
    BUCKET_KEYS,
    midpoint_seconds,
    over_threshold_count,
    over_threshold_ratio,
    total_count,
)
from .domain_models import (
    ZERO_DURATION,
    DerivedRecord,
    RawInput,
    coerce_count,
    parse_record_date,
)
from .i18n import DEFAULT_LANGUAGE, weekday_labels

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600


def format_hms(total_seconds: int) -> str:
    """Format seconds as ``HH:MM:SS``.  Hours are not wrapped at 24."""
    hours, remainder = divmod(max(0, total_seconds), SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, SECONDS_PER_MINUTE)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def average_duration_seconds(counts: Mapping[str, int]) -> int:
    """Weighted-midpoint estimate of the mean transaction time, truncated to seconds.

    Each bucket contributes ``count * midpoint``.  Midpoints are held as whole
    seconds so the floor division is exact.
    """
    total = total_count(counts)
    if total == 0:
        return 0
    weighted = sum(counts.get(key, 0) * midpoint_seconds(key) for key in BUCKET_KEYS)
    return weighted // total


def average_duration(counts: Mapping[str, int]) -> str:
    if total_count(counts) == 0:
        return ZERO_DURATION
    return format_hms(average_duration_seconds(counts))


def weekday_name(day: date | str, language: str = DEFAULT_LANGUAGE) -> str:
    """Sunday-first weekday label for a calendar date.

    Only the calendar date is used, never a timestamp, so the result does not
    depend on the process time zone.
    """
    resolved = parse_record_date(day)
    return weekday_labels(language)[resolved.isoweekday() % 7]


def derive_record(raw: RawInput, *, language: str = DEFAULT_LANGUAGE) -> DerivedRecord:
    counts = {key: coerce_count(value) for key, value in raw.counts.items()}
    total = total_count(counts)
    over = over_threshold_count(counts)
    return DerivedRecord(
        date=raw.date,
        **counts,
        revenue=coerce_count(raw.revenue),
        note=raw.note,
        qc_count=coerce_count(raw.qc_count),
        validated=bool(raw.validated),
        total_count=total,
        over_threshold_count=over,
        over_threshold_ratio=over_threshold_ratio(over, total),
        average_duration=average_duration(counts),
        weekday_name=weekday_name(raw.date, language),
    )


class MetricsDeriver:
    """Derives records with weekday labels in a fixed language."""

    def __init__(self, language: str = DEFAULT_LANGUAGE) -> None:
        self._language = language

    @property
    def language(self) -> str:
        return self._language

    def derive(self, raw: RawInput) -> DerivedRecord:
        return derive_record(raw, language=self._language)
