"""Clock abstraction for reproducible analysis.

WallClock: real wall-clock time (interactive use)
FixedClock: pinned "as of" instant (tests, CLI ``--as-of``, replays)

Analysis code never calls datetime.now() directly; it asks the engine's
clock, so the same snapshot analysed with the same clock always yields
the same ideas.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time.  Aware datetimes are localized by the caller."""
        ...


class WallClock:
    """Real wall-clock time as a timezone-aware UTC datetime."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a single instant.

    Accepts naive (local wall-clock) or aware datetimes.
    """

    def __init__(self, as_of: datetime) -> None:
        self._as_of = as_of

    def now(self) -> datetime:
        return self._as_of
