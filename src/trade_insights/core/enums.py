"""Enumerations used across the insight engine."""

from enum import Enum


class TradeSide(str, Enum):
    LONG = "long"
    SHORT = "short"
    UNKNOWN = "unknown"  # Excluded from the direction dimension


class Sentiment(str, Enum):
    """Tone of a generated trade idea."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    OPPORTUNITY = "opportunity"


class TipSeverity(str, Enum):
    """Coaching tip severity.  Declaration order is the sort order."""

    CRITICAL = "critical"
    WARNING = "warning"
    ACTION = "action"
    SUCCESS = "success"
    INFO = "info"
    TIP = "tip"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {sev: i for i, sev in enumerate(TipSeverity)}


class TradingSession(str, Enum):
    ASIA = "asia"
    LONDON = "london"
    NEW_YORK = "new_york"
    OFF_HOURS = "off_hours"
