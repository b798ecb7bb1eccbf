"""Domain model objects for SpeedTracker.

``RawInput`` is what an operator typed for one day; ``DerivedRecord`` is the
fully computed row that is sent to the remote spreadsheet and shown in the
history table.  Both are immutable.

Wire payloads are flat JSON objects.  Two naming schemes exist:

* ``canonical``: camelCase names used by this service's own API.
* ``sheet``: the column names of the spreadsheet web app the records were
  originally collected in (``tgl``, ``omset``, ``speedRata2`` ...).
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from .buckets import BUCKET_KEYS, over_threshold_count, over_threshold_ratio, total_count

LOGGER = logging.getLogger(__name__)

FIELD_STYLES: tuple[str, ...] = ("canonical", "sheet")

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_HMS_RE = re.compile(r"^\s*(\d+):([0-5]\d):([0-5]\d)\s*$")

ZERO_DURATION = "00:00:00"
STORED_RATIO_TOLERANCE = 0.01
"""Sheets keep the percentage rounded to two places."""

# ---------------------------------------------------------------------------
# Permissive parsing helpers
# ---------------------------------------------------------------------------


def coerce_count(value: object) -> int:
    """Parse *value* as a non-negative integer, falling back to ``0``.

    Strings are read up to the first non-digit (``"12abc"`` -> 12,
    ``"3.7"`` -> 3).  Floats truncate toward zero.  Negative results, booleans
    and anything unparseable become ``0``.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(0, int(value))
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match is None:
            return 0
        return max(0, int(match.group(1)))
    return 0


def coerce_flag(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value == 1
    return False


def parse_record_date(value: object) -> date:
    """Return a calendar date for *value* or raise ``ValueError``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValueError(f"Invalid record date {value!r}; expected YYYY-MM-DD")


def normalize_hms(value: object) -> str:
    """Zero-pad a stored ``H:MM:SS`` duration (``"0:06:17"`` -> ``"00:06:17"``).

    Empty values become ``00:00:00``; text in any other shape is kept as is.
    """
    if value is None or value == "":
        return ZERO_DURATION
    text = str(value).strip()
    match = _HMS_RE.match(text)
    if match is None:
        return text or ZERO_DURATION
    hours, minutes, seconds = match.groups()
    return f"{int(hours):02d}:{minutes}:{seconds}"


def _as_float(value: object) -> float:
    if isinstance(value, bool) or value in (None, ""):
        return 0.0
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return out if math.isfinite(out) else 0.0


def _pick(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return default


def validate_field_style(style: str) -> str:
    if style not in FIELD_STYLES:
        raise ValueError(f"Unknown field style {style!r}; expected one of {', '.join(FIELD_STYLES)}")
    return style


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawInput:
    """One day of operator input, typed once at submission time."""

    date: date
    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    f: int = 0
    revenue: int = 0
    note: str = ""
    qc_count: int = 0
    validated: bool = False

    @property
    def counts(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in BUCKET_KEYS}

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> RawInput:
        """Build from loosely typed form values.

        Integer fields go through :func:`coerce_count`.  A missing or
        malformed date raises ``ValueError``; it is the only input error.
        """
        return cls(
            date=parse_record_date(_pick(data, "date", "tgl")),
            **{key: coerce_count(data.get(key)) for key in BUCKET_KEYS},
            revenue=coerce_count(_pick(data, "revenue", "omset")),
            note=str(_pick(data, "note", "keterangan", default="") or ""),
            qc_count=coerce_count(_pick(data, "qc_count", "qcCount", "jumlahQc")),
            validated=coerce_flag(_pick(data, "validated", "validasi", default=False)),
        )


@dataclass(frozen=True, slots=True)
class DerivedRecord:
    """A fully computed daily observation.  Never mutated after creation."""

    date: date
    a: int
    b: int
    c: int
    d: int
    e: int
    f: int
    revenue: int
    note: str
    qc_count: int
    validated: bool
    total_count: int
    over_threshold_count: int
    over_threshold_ratio: float
    average_duration: str
    weekday_name: str

    @property
    def counts(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in BUCKET_KEYS}

    def to_payload(self, style: str = "canonical") -> dict[str, Any]:
        validate_field_style(style)
        if style == "sheet":
            return {
                "tgl": self.date.isoformat(),
                **self.counts,
                "omset": self.revenue,
                "speedRata2": self.average_duration,
                "allTransaksi": self.total_count,
                "transaksiHariIni": self.total_count,
                "transaksiOver": self.over_threshold_count,
                "persentase": self.over_threshold_ratio,
                "transaksiOverHari": self.over_threshold_count,
                "hari": self.weekday_name,
                "keterangan": self.note,
                "jumlahQc": self.qc_count,
                "validasi": self.validated,
            }
        return {
            "date": self.date.isoformat(),
            **self.counts,
            "revenue": self.revenue,
            "note": self.note,
            "qcCount": self.qc_count,
            "validated": self.validated,
            "totalCount": self.total_count,
            "overThresholdCount": self.over_threshold_count,
            "overThresholdRatio": self.over_threshold_ratio,
            "averageDuration": self.average_duration,
            "weekdayName": self.weekday_name,
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> DerivedRecord:
        """Rebuild a record from a payload in either field style.

        Totals and the over-threshold ratio are recomputed from the bucket
        counts, so a stored row can never contradict its own buckets; a
        disagreeing stored value is logged and dropped.  The duration and
        weekday label are kept as stored, since rows coming back from the
        spreadsheet may have been entered by hand.
        """
        sheet = "tgl" in data
        counts = {key: coerce_count(data.get(key)) for key in BUCKET_KEYS}
        if sheet:
            stored_total = _pick(data, "transaksiHariIni", "allTransaksi")
            stored_over = _pick(data, "transaksiOver", "transaksiOverHari")
            stored_ratio = data.get("persentase")
            duration = data.get("speedRata2")
            weekday = data.get("hari")
        else:
            stored_total = data.get("totalCount")
            stored_over = data.get("overThresholdCount")
            stored_ratio = data.get("overThresholdRatio")
            duration = data.get("averageDuration")
            weekday = data.get("weekdayName")
        total = total_count(counts)
        over = over_threshold_count(counts)
        ratio = over_threshold_ratio(over, total)
        record = cls(
            date=parse_record_date(_pick(data, "tgl", "date")),
            **counts,
            revenue=coerce_count(_pick(data, "omset", "revenue")),
            note=str(_pick(data, "keterangan", "note", default="") or ""),
            qc_count=coerce_count(_pick(data, "jumlahQc", "qcCount")),
            validated=coerce_flag(_pick(data, "validasi", "validated", default=False)),
            total_count=total,
            over_threshold_count=over,
            over_threshold_ratio=ratio,
            average_duration=normalize_hms(duration),
            weekday_name=str(weekday or ""),
        )
        if (
            (stored_total is not None and coerce_count(stored_total) != total)
            or (stored_over is not None and coerce_count(stored_over) != over)
            or (
                stored_ratio is not None
                and abs(_as_float(stored_ratio) - ratio) > STORED_RATIO_TOLERANCE
            )
        ):
            LOGGER.warning(
                "Record for %s stored total/over/ratio %r/%r/%r; recomputed %d/%d/%.2f from buckets",
                record.date,
                stored_total,
                stored_over,
                stored_ratio,
                total,
                over,
                ratio,
            )
        return record
