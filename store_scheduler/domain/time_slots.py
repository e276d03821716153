"""Derivation of the schedulable time slots of a store day."""

from __future__ import annotations

from typing import Optional

from store_scheduler.domain.parsing import format_time_label


DEFAULT_OPENING = (9, 0)
DEFAULT_CLOSING = (21, 0)
FRANCE_SLOT_MINUTES = 15
DEFAULT_SLOT_MINUTES = 30

_FRANCE_NAMES = ("francia", "france")


def is_france(country: Optional[str]) -> bool:
    if not country:
        return False
    lowered = country.strip().lower()
    return any(name in lowered for name in _FRANCE_NAMES)


def slot_minutes(country_is_france: bool) -> int:
    return FRANCE_SLOT_MINUTES if country_is_france else DEFAULT_SLOT_MINUTES


def slot_duration_hours(country_is_france: bool) -> float:
    return slot_minutes(country_is_france) / 60.0


def _parse_clock(value: Optional[str], default: tuple[int, int]) -> tuple[int, int]:
    """Lenient ``HH[:MM]`` parse; each invalid part keeps its default."""
    hour, minute = default
    if not isinstance(value, str) or not value.strip():
        return hour, minute
    parts = value.strip().split(":")
    try:
        parsed_hour = int(parts[0])
        if 0 <= parsed_hour <= 23:
            hour = parsed_hour
    except ValueError:
        pass
    if len(parts) > 1:
        try:
            parsed_minute = int(parts[1])
            if 0 <= parsed_minute < 60:
                minute = parsed_minute
        except ValueError:
            pass
    return hour, minute


def generate_time_slots(
    country: Optional[str],
    opening: Optional[str],
    closing: Optional[str],
) -> list[str]:
    """Return the ordered ``HH:MM`` slot labels between opening and closing.

    France schedules in 15 minute slots, every other country in 30 minute
    slots. The last label is the last slot that fully ends by closing time.
    An inverted or empty window falls back to 09:00-21:00.
    """
    open_hour, open_minute = _parse_clock(opening, DEFAULT_OPENING)
    close_hour, close_minute = _parse_clock(closing, DEFAULT_CLOSING)

    opening_minutes = open_hour * 60 + open_minute
    closing_minutes = close_hour * 60 + close_minute
    if opening_minutes >= closing_minutes:
        opening_minutes = DEFAULT_OPENING[0] * 60 + DEFAULT_OPENING[1]
        closing_minutes = DEFAULT_CLOSING[0] * 60 + DEFAULT_CLOSING[1]

    increment = slot_minutes(is_france(country))
    last_start = ((closing_minutes - increment) // increment) * increment

    labels: list[str] = []
    current = opening_minutes
    while current <= last_start:
        aligned = (current // increment) * increment
        labels.append(format_time_label(aligned // 60, aligned % 60))
        current += increment
    return labels
