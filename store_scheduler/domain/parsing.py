"""Tolerant parsing helpers applied where raw store data enters the system."""

from __future__ import annotations

import math
import re
from typing import Any, Optional


TIME_LABEL_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_number(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely typed field value to a finite float.

    Missing values, booleans, unparsable strings, NaN and infinities all
    resolve to ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_time_label(label: str) -> tuple[int, int]:
    """Split an ``H:MM``/``HH:MM`` label into hour and minute.

    Raises ``ValueError`` for anything that is not a valid clock time.
    """
    match = TIME_LABEL_PATTERN.match(label.strip()) if isinstance(label, str) else None
    if match is None:
        raise ValueError(f"time label must follow HH:MM format, got {label!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"time label out of range: {label!r}")
    return hour, minute


def try_parse_time_label(label: Optional[str]) -> Optional[tuple[int, int]]:
    if label is None:
        return None
    try:
        return parse_time_label(label)
    except ValueError:
        return None


def format_time_label(hour: int, minute: int = 0) -> str:
    return f"{hour:02d}:{minute:02d}"


def format_number(value: float) -> str:
    """Render a number the way it reads in audit strings: ``25``, ``0.15``, ``5.52``."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.10f}".rstrip("0").rstrip(".")


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
