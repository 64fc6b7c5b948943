"""Trading session and intraday zone classification.

Sessions are fixed New-York wall-clock windows that may overlap (London
and New York share 08:00-12:00), so one open time can belong to several
sessions.  Zones partition the day without overlap and give a single,
finer-grained label.

Usage::

    classify_session("09:30")  # "London / New York"
    classify_zone("09:30")     # "New York Killzone"
"""

from __future__ import annotations

import logging
from datetime import datetime, time

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
SESSION_SEPARATOR = " / "

# Session definitions (NY wall clock, inclusive start, exclusive end).
# end < start means the window wraps past midnight.
SESSIONS: dict[str, tuple[str, str]] = {
    "Sydney": ("16:00", "01:00"),
    "Asian": ("20:00", "05:00"),
    "London": ("03:00", "12:00"),
    "New York": ("08:00", "17:00"),
}

# Zone partition of the day, checked in order.
ZONES: list[tuple[str, str, str]] = [
    ("Judas Swing", "00:00", "03:00"),
    ("London Open Killzone", "03:00", "05:00"),
    ("Pre New York", "05:00", "08:00"),
    ("New York Open", "08:00", "08:30"),
    ("New York Killzone", "08:30", "11:00"),
    ("London Close Killzone", "11:00", "12:00"),
    ("Rest of Day", "12:00", "17:00"),
    ("Asian Range", "17:00", "00:00"),
]

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Convert ``"HH:MM"`` to minutes after midnight.

    Raises ``ValueError`` for malformed input.
    """
    hours, _, minutes = value.strip().partition(":")
    total = int(hours) * 60 + int(minutes or 0)
    if not 0 <= total <= MINUTES_PER_DAY:
        raise ValueError(f"time out of range: {value!r}")
    return total


def to_minutes(value: str | time | datetime | None) -> int | None:
    """Minutes after midnight for a time-like value, ``None`` if unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    try:
        return parse_hhmm(value)
    except ValueError:
        logger.debug("Unparseable time %r", value)
        return None


def time_in_range(minutes: int, start: str, end: str) -> bool:
    """True when ``minutes`` falls in ``[start, end)``, wrapping midnight."""
    start_m = parse_hhmm(start)
    end_m = parse_hhmm(end) % MINUTES_PER_DAY
    if end_m < start_m:
        return minutes >= start_m or minutes < end_m
    return start_m <= minutes < end_m


def active_sessions(value: str | time | datetime | None) -> list[str]:
    """All sessions containing the time, in table order."""
    minutes = to_minutes(value)
    if minutes is None:
        return []
    return [
        name for name, (start, end) in SESSIONS.items()
        if time_in_range(minutes, start, end)
    ]


def classify_session(value: str | time | datetime | None) -> str:
    """Sessions joined with ``" / "``, or ``"N/A"`` when none match."""
    names = active_sessions(value)
    return SESSION_SEPARATOR.join(names) if names else NOT_AVAILABLE


def classify_zone(value: str | time | datetime | None) -> str:
    """Single zone label for the time, or ``"N/A"``."""
    minutes = to_minutes(value)
    if minutes is None:
        return NOT_AVAILABLE
    for name, start, end in ZONES:
        if time_in_range(minutes, start, end):
            return name
    return NOT_AVAILABLE
