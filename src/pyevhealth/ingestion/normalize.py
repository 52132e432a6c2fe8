"""Normalization helpers.

Centralizes defensive parsing and placeholder handling.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

# Placeholder strings some API gateways send for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null", "None"})

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    """Convert *value* to a finite float, returning ``None`` on failure."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() in _SENTINELS:
        return None
    try:
        result = float(value)
    except (OverflowError, TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text and text not in _SENTINELS else None


def non_negative(value: Any) -> float:
    """Coerce *value* to a finite non-negative float; anything else is ``0.0``."""
    parsed = safe_float(value)
    if parsed is None or parsed < 0:
        return 0.0
    return parsed


def first_positive(*values: Any) -> float:
    """Return the first value that parses to a positive float, else ``0.0``."""
    for value in values:
        parsed = safe_float(value)
        if parsed is not None and parsed > 0:
            return parsed
    return 0.0


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) or ISO string to a UTC datetime.

    Returns ``None`` for missing, non-positive or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str) and safe_float(value) is None:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > _MS_THRESHOLD:
        ts /= 1000.0
    try:
        return datetime.fromtimestamp(ts, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def as_mapping(value: Any) -> dict[str, Any]:
    """Return *value* as a plain dict, or an empty dict when it is not a mapping."""
    if isinstance(value, dict):
        return value
    if hasattr(value, "items"):
        try:
            return dict(value.items())
        except (TypeError, ValueError):
            return {}
    return {}


def compact_identifier(value: Any) -> str:
    """Lower-case *value* and drop separators (``"Model 3"`` -> ``"model3"``)."""
    text = safe_str(value) or ""
    return "".join(ch for ch in text.lower() if ch.isalnum())
