"""Weekday labels for the supported record languages.

Tables are Sunday-first, matching the spreadsheet the records are sent to.
"""

from __future__ import annotations

WEEKDAY_LABELS: dict[str, tuple[str, ...]] = {
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    "id": ("Minggu", "Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu"),
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(WEEKDAY_LABELS)
DEFAULT_LANGUAGE = "en"


def normalize_lang(lang: object) -> str:
    if isinstance(lang, str) and lang.strip().lower().startswith("id"):
        return "id"
    return DEFAULT_LANGUAGE


def weekday_labels(lang: object) -> tuple[str, ...]:
    return WEEKDAY_LABELS[normalize_lang(lang)]
