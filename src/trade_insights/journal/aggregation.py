"""Multi-dimensional performance aggregation.

Breaks normalized trades down by instrument, hour-of-day, day-of-week,
direction, strategy and calendar week, plus a per-date activity index
for contribution-graph style displays.  Answers questions like "Which
symbol pays my bills?" or "Am I better on Tuesdays?"

Each dimension is one left-to-right pass over the records; ordering is
applied to the output only.  Rounding happens once, when a bucket is
built, so downstream formatting never re-derives values.

Usage::

    aggregates = build_aggregates(records)
    print(aggregates.instrument[0].key)       # best symbol by net P&L
    print(aggregates.hour[0].label)           # "09:00"
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Hashable

from trade_insights.core.enums import TradeSide
from trade_insights.core.errors import ContractViolationError

from .record import TradeRecord

logger = logging.getLogger(__name__)

# Sun=0 .. Sat=6, matching how journal users read a calendar week
DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_DIRECTION_LABELS = {TradeSide.LONG: "Long", TradeSide.SHORT: "Short"}


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a spreadsheet does (0.5 away from zero), not banker's."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """Integer percentage of *part* in *whole*; 0 when *whole* is 0."""
    if whole <= 0:
        return 0
    return int(round_half_up(part * 100 / whole))


def sunday_weekday(dt: datetime | date) -> int:
    """Weekday index with Sunday = 0."""
    return (dt.weekday() + 1) % 7


@dataclass(frozen=True)
class DimensionBucket:
    """Performance of one key value within a dimension.

    ``pnl`` is rounded to cents and ``win_rate`` to a whole percent at
    construction.  ``win_count + loss_count + breakeven_count`` always
    equals ``trade_count``.
    """

    key: Hashable
    label: str
    trade_count: int
    win_count: int
    loss_count: int
    breakeven_count: int
    pnl: float
    win_rate: int

    def to_dict(self) -> dict[str, Any]:
        key = self.key.isoformat() if isinstance(self.key, date) else self.key
        return {
            "key": key,
            "label": self.label,
            "trade_count": self.trade_count,
            "win_count": self.win_count,
            "loss_count": self.loss_count,
            "breakeven_count": self.breakeven_count,
            "pnl": self.pnl,
            "win_rate": self.win_rate,
        }


class _BucketStats:
    """Accumulator for one bucket while a dimension pass is running."""

    __slots__ = ("trades", "wins", "losses", "total_pnl")

    def __init__(self) -> None:
        self.trades = 0
        self.wins = 0
        self.losses = 0
        self.total_pnl = 0.0

    def record(self, trade: TradeRecord) -> None:
        self.trades += 1
        self.total_pnl += trade.pnl
        if trade.pnl > 0:
            self.wins += 1
        elif trade.pnl < 0:
            self.losses += 1

    def freeze(self, key: Hashable, label: str) -> DimensionBucket:
        return DimensionBucket(
            key=key,
            label=label,
            trade_count=self.trades,
            win_count=self.wins,
            loss_count=self.losses,
            breakeven_count=self.trades - self.wins - self.losses,
            pnl=round_half_up(self.total_pnl, 2),
            win_rate=percent(self.wins, self.trades),
        )


@dataclass(frozen=True)
class Aggregates:
    """One ordered bucket tuple per dimension."""

    instrument: tuple[DimensionBucket, ...] = ()
    hour: tuple[DimensionBucket, ...] = ()
    day_of_week: tuple[DimensionBucket, ...] = ()
    direction: tuple[DimensionBucket, ...] = ()
    strategy: tuple[DimensionBucket, ...] = ()
    week: tuple[DimensionBucket, ...] = ()
    daily_activity: tuple[DimensionBucket, ...] = ()

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "instrument": [b.to_dict() for b in self.instrument],
            "hour": [b.to_dict() for b in self.hour],
            "day_of_week": [b.to_dict() for b in self.day_of_week],
            "direction": [b.to_dict() for b in self.direction],
            "strategy": [b.to_dict() for b in self.strategy],
            "week": [b.to_dict() for b in self.week],
            "daily_activity": [b.to_dict() for b in self.daily_activity],
        }


# ---------------------------------------------------------------------- #
# Key extraction                                                           #
# ---------------------------------------------------------------------- #

def _checked(trade: Any, dimension: str) -> TradeRecord:
    if not isinstance(trade, TradeRecord):
        raise ContractViolationError(
            f"aggregation.{dimension}",
            f"expected TradeRecord, got {type(trade).__name__}",
        )
    if not isinstance(trade.entry_time, datetime) or not isinstance(trade.exit_time, datetime):
        raise ContractViolationError(
            f"aggregation.{dimension}",
            f"trade {trade.trade_id!r} reached aggregation without timestamps",
        )
    return trade


def week_start(dt: datetime) -> date:
    """Sunday on or before *dt*, truncated to the day."""
    return (dt - timedelta(days=sunday_weekday(dt))).date()


def _direction_key(trade: TradeRecord) -> TradeSide | None:
    return trade.side if trade.side in _DIRECTION_LABELS else None


# ---------------------------------------------------------------------- #
# Passes                                                                   #
# ---------------------------------------------------------------------- #

def aggregate_dimension(
    records: Iterable[TradeRecord],
    key_fn: Callable[[TradeRecord], Hashable | None],
    label_fn: Callable[[Hashable], str],
    *,
    dimension: str = "custom",
) -> list[DimensionBucket]:
    """Bucket *records* by ``key_fn`` in one pass, in first-seen key order.

    Records for which ``key_fn`` returns None are left out of this
    dimension only.
    """
    stats: dict[Hashable, _BucketStats] = {}
    for trade in records:
        key = key_fn(_checked(trade, dimension))
        if key is None:
            continue
        bucket = stats.get(key)
        if bucket is None:
            bucket = stats[key] = _BucketStats()
        bucket.record(trade)
    return [s.freeze(k, label_fn(k)) for k, s in stats.items()]


def _by_pnl_desc(buckets: list[DimensionBucket]) -> tuple[DimensionBucket, ...]:
    # sorted() is stable: equal P&L keeps first-seen order
    return tuple(sorted(buckets, key=lambda b: -b.pnl))


def _by_key(buckets: list[DimensionBucket]) -> tuple[DimensionBucket, ...]:
    return tuple(sorted(buckets, key=lambda b: b.key))


def by_instrument(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_pnl_desc(
        aggregate_dimension(records, lambda t: t.symbol, str, dimension="instrument")
    )


def by_hour(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_key(
        aggregate_dimension(
            records, lambda t: t.entry_time.hour, lambda h: f"{h:02d}:00", dimension="hour"
        )
    )


def by_day_of_week(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_key(
        aggregate_dimension(
            records,
            lambda t: sunday_weekday(t.entry_time),
            lambda d: DAY_NAMES[d],
            dimension="day_of_week",
        )
    )


def by_direction(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    buckets = aggregate_dimension(
        records, _direction_key, lambda s: _DIRECTION_LABELS[s], dimension="direction"
    )
    order = {TradeSide.LONG: 0, TradeSide.SHORT: 1}
    return tuple(sorted(buckets, key=lambda b: order[b.key]))


def by_strategy(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_pnl_desc(
        aggregate_dimension(records, lambda t: t.strategy, str, dimension="strategy")
    )


def by_week(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_key(
        aggregate_dimension(
            records,
            lambda t: week_start(t.exit_time),
            lambda d: d.strftime("%b %d"),
            dimension="week",
        )
    )


def daily_activity(records: Sequence[TradeRecord]) -> tuple[DimensionBucket, ...]:
    return _by_key(
        aggregate_dimension(
            records,
            lambda t: t.entry_time.date(),
            lambda d: d.isoformat(),
            dimension="daily_activity",
        )
    )


def build_aggregates(records: Sequence[TradeRecord]) -> Aggregates:
    """Compute every dimension.  Empty input yields empty tuples."""
    records = list(records)
    aggregates = Aggregates(
        instrument=by_instrument(records),
        hour=by_hour(records),
        day_of_week=by_day_of_week(records),
        direction=by_direction(records),
        strategy=by_strategy(records),
        week=by_week(records),
        daily_activity=daily_activity(records),
    )
    logger.debug(
        "Aggregated %d trades: %d symbols, %d active days, %d weeks",
        len(records),
        len(aggregates.instrument),
        len(aggregates.daily_activity),
        len(aggregates.week),
    )
    return aggregates
