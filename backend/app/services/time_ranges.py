"""Time-of-day normalization and the strict overlap predicate.

Times are compared as seconds since midnight. Drivers hand TIME columns back as
``datetime.time`` (psycopg, SQLite) or ``timedelta`` (MySQL drivers), payloads
carry ``HH:MM[:SS]`` strings, and callers occasionally pass plain numbers, so
everything goes through ``to_seconds`` first.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def to_seconds(value) -> int | float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else value
    if isinstance(value, datetime):
        return value.hour * 3600 + value.minute * 60 + value.second
    if isinstance(value, time):
        return value.hour * 3600 + value.minute * 60 + value.second
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        trimmed = value.strip()
        match = TIME_PATTERN.match(trimmed)
        if match:
            hours, minutes, seconds = match.group(1), match.group(2), match.group(3) or "0"
            return int(hours) * 3600 + int(minutes) * 60 + int(seconds)
        try:
            numeric = float(trimmed)
        except ValueError:
            return None
        return None if math.isnan(numeric) else numeric
    return None


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Strict intersection of [start_a, end_a) and [start_b, end_b).

    Touching boundaries (09:00-10:00 and 10:00-11:00) do not overlap. Any
    bound that cannot be parsed yields False.
    """
    bounds = [to_seconds(start_a), to_seconds(end_a), to_seconds(start_b), to_seconds(end_b)]
    if any(bound is None for bound in bounds):
        return False
    a_start, a_end, b_start, b_end = bounds
    return a_start < b_end and a_end > b_start


def format_time(value) -> str | None:
    """Render any supported time value as ``HH:MM:SS``."""
    seconds = to_seconds(value)
    if seconds is None:
        return None
    seconds = int(seconds)
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


def parse_time(value) -> time | None:
    if isinstance(value, time):
        return value.replace(microsecond=0)
    seconds = to_seconds(value)
    if seconds is None or not 0 <= seconds < 24 * 3600:
        return None
    seconds = int(seconds)
    return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)


def normalize_date(value) -> str | None:
    """Calendar day as ``YYYY-MM-DD``; ISO datetimes are cut at the ``T``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.split("T")[0].strip() or None
    return str(value)


def parse_date(value) -> date | None:
    normalized = normalize_date(value)
    if normalized is None:
        return None
    try:
        return date.fromisoformat(normalized)
    except ValueError:
        return None


def describe_range(start, end) -> str:
    return f"{format_time(start) or start} - {format_time(end) or end}"
