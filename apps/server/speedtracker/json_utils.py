"""Shared JSON helpers.

Outgoing record payloads are encoded strictly; incoming bodies (remote store
responses, seed files) are decoded tolerantly.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import date
from typing import Any

__all__ = [
    "safe_json_dumps",
    "safe_json_loads",
    "sanitize_for_json",
]

LOGGER = logging.getLogger(__name__)


def sanitize_for_json(obj: Any) -> tuple[Any, bool]:
    """Recursively replace non-finite floats (NaN, Inf, -Inf) with ``None``.

    Dates become ISO strings and tuples become lists, so the result always
    serialises with ``json.dumps(allow_nan=False)``.

    Returns the sanitised object and a flag telling whether any non-finite
    value was encountered.
    """
    found_non_finite = False

    def _walk(v: Any) -> Any:
        nonlocal found_non_finite
        if isinstance(v, float):
            if math.isfinite(v):
                return v
            found_non_finite = True
            return None
        if isinstance(v, date):
            return v.isoformat()
        if isinstance(v, dict):
            return {k: _walk(val) for k, val in v.items()}
        if isinstance(v, (list, tuple)):
            return [_walk(item) for item in v]
        return v

    cleaned = _walk(obj)
    return cleaned, found_non_finite


def safe_json_dumps(value: Any) -> str:
    """Sanitise *value* and serialise it to a compact JSON string."""
    cleaned, had_non_finite = sanitize_for_json(value)
    if had_non_finite:
        LOGGER.warning("Replaced non-finite number(s) with null while encoding JSON")
    return json.dumps(cleaned, ensure_ascii=False, allow_nan=False)


def safe_json_loads(value: str | None, *, context: str) -> Any | None:
    """Deserialise a JSON string, returning ``None`` on empty/invalid input.

    Logs a warning instead of raising, which keeps a garbled remote response
    or seed file from turning into an unhandled exception::

        safe_json_loads(body, context="remote store response")
    """
    if not value or not value.strip():
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        LOGGER.warning("Ignoring invalid JSON payload while reading %s", context)
        return None
