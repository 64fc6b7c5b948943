"""Clock abstraction for alert timestamps.

WallClock: real wall-clock time (live journaling)
FixedClock: deterministic time (tests, replays)

The alert engine never calls datetime.now() directly; it uses a clock.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time as timezone-aware UTC datetime."""
        ...


class WallClock:
    """Real wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, start: datetime | None = None) -> None:
        self._time = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

