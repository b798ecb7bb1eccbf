from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from threading import RLock
from typing import Any

from .domain_models import DerivedRecord
from .i18n import DEFAULT_LANGUAGE
from .json_utils import safe_json_loads
from .metrics import weekday_name

LOGGER = logging.getLogger(__name__)

SAMPLE_RECORD_PAYLOADS: tuple[dict[str, Any], ...] = (
    {
        "tgl": "2024-07-29",
        "a": 60,
        "b": 95,
        "c": 15,
        "d": 1,
        "e": 0,
        "f": 0,
        "omset": 16945250,
        "speedRata2": "0:06:17",
        "allTransaksi": 171,
        "transaksiHariIni": 171,
        "transaksiOver": 16,
        "persentase": 9.36,
        "transaksiOverHari": 16,
        "hari": "Senin",
        "keterangan": "Gorengan goreng baru",
        "jumlahQc": 5,
        "validasi": True,
    },
)
"""Row shown before anything has been submitted in a fresh session."""


class RecordHistory:
    """Session-scoped list of acknowledged records, newest first.

    Only grows at the front and is never written to disk.
    """

    def __init__(self, initial: Iterable[DerivedRecord] = ()) -> None:
        self._lock = RLock()
        self._records: list[DerivedRecord] = list(initial)

    def prepend(self, record: DerivedRecord) -> None:
        with self._lock:
            self._records.insert(0, record)

    def snapshot(self) -> list[DerivedRecord]:
        with self._lock:
            return list(self._records)

    def latest(self) -> DerivedRecord | None:
        with self._lock:
            return self._records[0] if self._records else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def _records_from_entries(
    entries: Iterable[Any], source: str, language: str
) -> list[DerivedRecord]:
    records: list[DerivedRecord] = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            LOGGER.warning("Skipping seed record %d from %s: not an object", idx, source)
            continue
        try:
            record = DerivedRecord.from_payload(entry)
        except ValueError as exc:
            LOGGER.warning("Skipping seed record %d from %s: %s", idx, source, exc)
            continue
        # Labels follow the session language whatever the row was stored with.
        records.append(replace(record, weekday_name=weekday_name(record.date, language)))
    return records


def load_seed_records(
    path: Path | None, *, language: str = DEFAULT_LANGUAGE
) -> list[DerivedRecord]:
    """Load the rows the history starts with.

    ``None`` selects the built-in sample row.  A seed file holds a JSON list
    of payloads (either field style), or an object with a ``records`` list.
    Unreadable files are logged and yield an empty history.  Weekday labels
    are rewritten in *language* so seeded rows match newly derived ones.
    """
    if path is None:
        return _records_from_entries(SAMPLE_RECORD_PAYLOADS, "built-in sample", language)
    if not path.exists():
        LOGGER.warning("Seed file %s does not exist; starting with empty history", path)
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("Could not read seed file %s: %s", path, exc)
        return []
    data = safe_json_loads(text, context=f"seed file {path}")
    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        LOGGER.warning("Seed file %s must contain a list of records", path)
        return []
    records = _records_from_entries(data, str(path), language)
    LOGGER.info("Loaded %d seed record(s) from %s", len(records), path)
    return records
