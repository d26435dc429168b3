"""Parsers for the human-readable values used in rule documents."""

from __future__ import annotations

import re
from typing import NamedTuple

_SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

_DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}

_DURATION_PATTERN = re.compile(r"^(\d+)\s*([smhdw]?)$", re.IGNORECASE)


class TimeRange(NamedTuple):
    """Inclusive time-of-day window expressed in hours and minutes."""

    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int


def parse_size(value: str) -> int:
    """Parse a size string such as ``"100KB"`` or ``"5MB"`` into bytes.

    Units are binary (``1KB == 1024``) and case-insensitive.

    Args:
        value: Digits immediately followed by one of ``B``, ``KB``, ``MB``, ``GB``.

    Returns:
        int: Number of bytes represented by ``value``.

    Raises:
        ValueError: If the digits or the unit are missing or unknown.
    """
    text = value.strip()
    if len(text) < 2:
        raise ValueError(f"Invalid size: {value!r}")

    digits_end = 0
    while digits_end < len(text) and text[digits_end].isdigit():
        digits_end += 1
    if digits_end == 0:
        raise ValueError(f"Invalid size: {value!r}")

    unit = text[digits_end:].upper()
    multiplier = _SIZE_UNITS.get(unit)
    if multiplier is None:
        raise ValueError(f"Invalid size unit {unit!r} in {value!r}")
    return int(text[:digits_end]) * multiplier


def parse_time_range(value: str) -> TimeRange:
    """Parse an ``HH:MM-HH:MM`` window.

    Args:
        value: Start and end times separated by a dash.

    Returns:
        TimeRange: Parsed window.

    Raises:
        ValueError: If the format is wrong or a component is out of range.
    """
    start, dash, end = value.partition("-")
    if not dash:
        raise ValueError(f"Invalid time range: {value!r}")

    start_hour, start_minute = _parse_clock(start, value)
    end_hour, end_minute = _parse_clock(end, value)
    if start_hour >= 24 or end_hour >= 24 or start_minute >= 60 or end_minute >= 60:
        raise ValueError(f"Time range out of bounds: {value!r}")
    return TimeRange(start_hour, start_minute, end_hour, end_minute)


def parse_duration(value: str | int) -> int:
    """Parse a duration such as ``"30s"``, ``"15m"``, ``"12h"`` or ``"7d"``.

    A bare integer (or string of digits) is taken as seconds.

    Raises:
        ValueError: If the value cannot be interpreted.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Duration must not be negative: {value!r}")
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    match = _DURATION_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[(unit or "s").lower()]


def _parse_clock(text: str, original: str) -> tuple[int, int]:
    hours, colon, minutes = text.partition(":")
    if not colon or not hours.strip().isdigit() or not minutes.strip().isdigit():
        raise ValueError(f"Invalid time range: {original!r}")
    return int(hours), int(minutes)


__all__ = ["TimeRange", "parse_duration", "parse_size", "parse_time_range"]
