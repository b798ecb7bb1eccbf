from __future__ import annotations

import itertools
import time
from datetime import date

import pytest
from conftest import SCENARIO_COUNTS, make_raw

from speedtracker.domain_models import RawInput
from speedtracker.metrics import (
    MetricsDeriver,
    average_duration,
    average_duration_seconds,
    derive_record,
    format_hms,
    over_threshold_ratio,
    weekday_name,
)

# ── derive_record: reference scenarios ───────────────────────────────────────


def test_reference_day_derives_expected_metrics() -> None:
    record = derive_record(make_raw())
    assert record.total_count == 171
    assert record.over_threshold_count == 16
    assert record.over_threshold_ratio == pytest.approx(9.3567, abs=1e-4)
    # 64050 weighted seconds / 171 = 374.56 -> truncated to 374 s
    assert record.average_duration == "00:06:14"
    assert record.weekday_name == "Monday"


def test_all_zero_buckets_short_circuit() -> None:
    raw = make_raw(**{key: 0 for key in SCENARIO_COUNTS})
    record = derive_record(raw)
    assert record.total_count == 0
    assert record.over_threshold_count == 0
    assert record.over_threshold_ratio == 0
    assert record.average_duration == "00:00:00"


def test_raw_fields_are_carried_over() -> None:
    raw = make_raw(note="hujan", revenue=1200, qc_count=3, validated=False)
    record = derive_record(raw)
    assert record.date == raw.date
    assert record.counts == raw.counts
    assert (record.note, record.revenue, record.qc_count, record.validated) == (
        "hujan",
        1200,
        3,
        False,
    )


def test_negative_counts_on_hand_built_input_become_zero() -> None:
    raw = RawInput(date=date(2024, 7, 29), a=-5, b=2, c=-1, revenue=-10, qc_count=-3)
    record = derive_record(raw)
    assert record.a == 0
    assert record.c == 0
    assert record.total_count == 2
    assert record.revenue == 0
    assert record.qc_count == 0


@pytest.mark.parametrize(
    "counts",
    [
        (1, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 7),
        (3, 1, 4, 1, 5, 9),
        (0, 0, 2, 0, 0, 0),
        (1000, 1, 0, 0, 0, 1),
    ],
)
def test_totals_match_bucket_sums_and_ratio_is_bounded(counts: tuple[int, ...]) -> None:
    raw = RawInput(date=date(2024, 1, 1), **dict(zip("abcdef", counts, strict=True)))
    record = derive_record(raw)
    assert record.total_count == sum(counts)
    assert record.over_threshold_count == sum(counts[2:])
    assert 0 <= record.over_threshold_ratio <= 100


def test_only_slow_buckets_give_full_ratio() -> None:
    raw = RawInput(date=date(2024, 1, 1), c=1, d=2, e=3, f=4)
    assert derive_record(raw).over_threshold_ratio == 100


# ── average duration ─────────────────────────────────────────────────────────


def test_single_bucket_average_equals_its_midpoint() -> None:
    assert average_duration({"a": 4}) == "00:02:30"
    assert average_duration({"e": 2}) == "00:25:00"


def test_open_band_uses_fixed_representative_value() -> None:
    assert average_duration({"f": 1}) == "00:35:00"


def test_average_truncates_instead_of_rounding() -> None:
    assert average_duration_seconds({"a": 1, "b": 2}) == 350  # 1050 / 3
    assert average_duration_seconds({"a": 1, "d": 1}) == 600  # 1200 / 2
    assert average_duration_seconds({"a": 6, "d": 1}) == 278  # 1950 / 7 = 278.57
    assert average_duration({"a": 6, "d": 1}) == "00:04:38"


def test_zero_total_average_is_zero() -> None:
    assert average_duration_seconds({}) == 0
    assert average_duration({key: 0 for key in "abcdef"}) == "00:00:00"


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "00:00:00"),
        (59, "00:00:59"),
        (60, "00:01:00"),
        (3599, "00:59:59"),
        (3600, "01:00:00"),
        (90061, "25:01:01"),
        (360000, "100:00:00"),
    ],
)
def test_format_hms_pads_and_never_wraps_hours(seconds: int, expected: str) -> None:
    assert format_hms(seconds) == expected


def test_ratio_zero_for_empty_day() -> None:
    assert over_threshold_ratio(0, 0) == 0.0
    assert over_threshold_ratio(1, 4) == 25.0


# ── weekday resolution ───────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("day", "expected_en", "expected_id"),
    [
        ("2023-12-31", "Sunday", "Minggu"),
        ("2024-01-01", "Monday", "Senin"),
        ("2024-07-29", "Monday", "Senin"),
        ("2024-02-29", "Thursday", "Kamis"),
        ("2024-08-02", "Friday", "Jumat"),
        ("2024-08-03", "Saturday", "Sabtu"),
    ],
)
def test_weekday_labels(day: str, expected_en: str, expected_id: str) -> None:
    assert weekday_name(day) == expected_en
    assert weekday_name(day, "id") == expected_id
    assert weekday_name(date.fromisoformat(day), "id") == expected_id


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="time.tzset is POSIX-only")
def test_weekday_is_independent_of_process_timezone(monkeypatch: pytest.MonkeyPatch) -> None:
    zones = ["UTC", "America/Los_Angeles", "Asia/Jakarta", "Pacific/Kiritimati", "Etc/GMT+12"]
    days = ["2024-07-29", "2024-12-31", "2025-01-01"]
    seen: dict[str, set[str]] = {day: set() for day in days}
    try:
        for tz, day in itertools.product(zones, days):
            monkeypatch.setenv("TZ", tz)
            time.tzset()
            seen[day].add(weekday_name(day))
    finally:
        monkeypatch.undo()
        time.tzset()
    assert seen == {"2024-07-29": {"Monday"}, "2024-12-31": {"Tuesday"}, "2025-01-01": {"Wednesday"}}


def test_unknown_language_falls_back_to_english() -> None:
    assert weekday_name("2024-07-29", "xx") == "Monday"


# ── MetricsDeriver ───────────────────────────────────────────────────────────


def test_deriver_uses_configured_language() -> None:
    deriver = MetricsDeriver("id")
    assert deriver.language == "id"
    assert deriver.derive(make_raw()).weekday_name == "Senin"


def test_derive_is_deterministic() -> None:
    raw = make_raw()
    assert derive_record(raw) == derive_record(raw)
