"""Behavioral and timing pattern detection.

Scans the chronological trade sequence for the destructive habits a
trading coach looks for first:

- Overtrading (more than N trades on one calendar day)
- Revenge trading (bigger position shortly after a loss)
- FOMO entries (losing trades on already-extended moves)
- Position-sizing inconsistency (size CV above threshold)
- Emotional trading (trades right after a loss lose on average)
- Tilt (a losing run where losses keep getting bigger)

and for timing edges: best/worst hour and weekday, and a bias towards
one trading session.

Usage::

    patterns = detect_patterns(records, aggregates)
    if patterns.revenge_trading:
        print(f"{patterns.revenge_trade_probability}% of losses chased")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, fields
from datetime import date, timedelta
from typing import Any

import numpy as np

from trade_insights.core.config import PatternConfig
from trade_insights.core.enums import TradingSession

from .aggregation import Aggregates, DimensionBucket, by_day_of_week, by_hour, percent
from .record import TradeRecord
from .scoring import chronological, pick_best, pick_worst

logger = logging.getLogger(__name__)

# Session definitions (local hours, inclusive start, exclusive end)
SESSIONS: dict[TradingSession, tuple[int, int] | None] = {
    TradingSession.ASIA: (0, 8),
    TradingSession.LONDON: (8, 16),
    TradingSession.NEW_YORK: (13, 21),  # overlaps with London
    TradingSession.OFF_HOURS: None,  # anything not in the above
}


def sessions_for_hour(hour: int) -> list[TradingSession]:
    """Sessions active at *hour*; overlap hours belong to both."""
    found = [
        name
        for name, hours in SESSIONS.items()
        if hours is not None and hours[0] <= hour < hours[1]
    ]
    return found or [TradingSession.OFF_HOURS]


@dataclass(frozen=True)
class BehavioralPatterns:
    """Risk and timing flags for one snapshot.  All-false below threshold."""

    analysed: bool = False

    overtrading: bool = False
    max_trades_per_day: int = 0
    overtrading_day: date | None = None

    revenge_trading: bool = False
    revenge_trade_probability: int = 0
    revenge_instances: int = 0

    fomo: bool = False
    fomo_count: int = 0

    sizing_inconsistent: bool = False
    sizing_cv: float = 0.0

    emotional_trading: bool = False
    post_loss_avg_pnl: float = 0.0

    tilt: bool = False
    tilt_episodes: int = 0

    best_hour: DimensionBucket | None = None
    worst_hour: DimensionBucket | None = None
    best_day: DimensionBucket | None = None
    worst_day: DimensionBucket | None = None
    session_bias: TradingSession | None = None
    session_share: int = 0

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, DimensionBucket):
                value = value.to_dict()
            elif isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, TradingSession):
                value = value.value
            elif isinstance(value, float):
                value = round(value, 4)
            out[f.name] = value
        return out


# ---------------------------------------------------------------------- #
# Individual detectors                                                     #
# ---------------------------------------------------------------------- #

def busiest_day(trades: Sequence[TradeRecord]) -> tuple[date | None, int]:
    """Calendar day with the most entries; earliest-seen wins ties."""
    counts: dict[date, int] = {}
    for trade in trades:
        day = trade.entry_time.date()
        counts[day] = counts.get(day, 0) + 1
    best_day, best = None, 0
    for day, count in counts.items():
        if count > best:
            best_day, best = day, count
    return best_day, best


def revenge_stats(
    trades: Sequence[TradeRecord],
    *,
    window_minutes: float,
    size_multiplier: float,
) -> tuple[int, int]:
    """Return (revenge instances, losses followed by another trade)."""
    window = timedelta(minutes=window_minutes)
    instances = opportunities = 0
    for prev, nxt in zip(trades, trades[1:]):
        if not prev.is_loss:
            continue
        opportunities += 1
        if prev.size is None or nxt.size is None:
            continue
        # Entry to entry, so a loss still open when the next trade starts counts
        gap = nxt.entry_time - prev.entry_time
        if gap < window and nxt.size > prev.size * size_multiplier:
            instances += 1
    return instances, opportunities


def fomo_count(trades: Sequence[TradeRecord], *, lookback: int, move_pct: float) -> int:
    """Losing trades among the last *lookback* with an extended price move."""
    count = 0
    for trade in trades[-lookback:]:
        move = trade.price_move_pct
        if trade.is_loss and move is not None and move > move_pct:
            count += 1
    return count


def sizing_cv(trades: Sequence[TradeRecord]) -> tuple[float, int]:
    """Coefficient of variation of position sizes and the sample size."""
    sizes = np.asarray([t.size for t in trades if t.size is not None], dtype=np.float64)
    if sizes.size == 0:
        return 0.0, 0
    mean = float(sizes.mean())
    return (float(sizes.std()) / mean if mean > 0 else 0.0), int(sizes.size)


def post_loss_pnls(trades: Sequence[TradeRecord]) -> list[float]:
    """P&L of every trade that immediately follows a losing trade."""
    return [nxt.pnl for prev, nxt in zip(trades, trades[1:]) if prev.is_loss]


def tilt_episodes(trades: Sequence[TradeRecord], *, min_streak: int, escalation: float) -> int:
    """Losing runs of *min_streak*+ whose last loss dwarfs the first."""
    episodes = 0
    run: list[float] = []

    def _close_run() -> int:
        if len(run) >= min_streak and abs(run[-1]) > abs(run[0]) * escalation:
            return 1
        return 0

    for trade in trades:
        if trade.is_loss:
            run.append(trade.pnl)
            continue
        episodes += _close_run()
        run = []
    episodes += _close_run()
    return episodes


def session_bias(trades: Sequence[TradeRecord], *, min_share: float) -> tuple[TradingSession | None, int]:
    """Session holding at least *min_share* of all trades, if any."""
    if not trades:
        return None, 0
    counts = {name: 0 for name in SESSIONS}
    for trade in trades:
        for name in sessions_for_hour(trade.entry_time.hour):
            counts[name] += 1
    top = max(counts, key=lambda name: counts[name])  # first-declared wins ties
    share = counts[top] / len(trades)
    if share >= min_share:
        return top, percent(counts[top], len(trades))
    return None, 0


# ---------------------------------------------------------------------- #
# Orchestration                                                            #
# ---------------------------------------------------------------------- #

def detect_patterns(
    records: Sequence[TradeRecord],
    aggregates: Aggregates | None = None,
    *,
    config: PatternConfig | None = None,
) -> BehavioralPatterns:
    """Run every detector over *records* in entry-time order.

    *aggregates* supplies the hour/weekday buckets for timing patterns;
    they are rebuilt from *records* when omitted.
    """
    cfg = config or PatternConfig()
    if len(records) < cfg.min_trades:
        return BehavioralPatterns()

    trades = chronological(records)

    day, per_day = busiest_day(trades)
    overtrading = per_day > cfg.overtrading_daily_limit

    revenge, loss_followups = revenge_stats(
        trades,
        window_minutes=cfg.revenge_window_minutes,
        size_multiplier=cfg.revenge_size_multiplier,
    )
    fomo = fomo_count(trades, lookback=cfg.fomo_lookback, move_pct=cfg.fomo_move_pct)
    cv, sized = sizing_cv(trades)
    follow_pnls = post_loss_pnls(trades)
    post_loss_avg = float(np.mean(follow_pnls)) if follow_pnls else 0.0
    tilts = tilt_episodes(trades, min_streak=cfg.tilt_min_streak, escalation=cfg.tilt_escalation)

    hours = aggregates.hour if aggregates is not None else by_hour(trades)
    days = aggregates.day_of_week if aggregates is not None else by_day_of_week(trades)
    timed_hours = [b for b in hours if b.trade_count >= cfg.timing_min_trades]
    timed_days = [b for b in days if b.trade_count >= cfg.timing_min_trades]
    bias, share = session_bias(trades, min_share=cfg.session_bias_share)

    patterns = BehavioralPatterns(
        analysed=True,
        overtrading=overtrading,
        max_trades_per_day=per_day,
        overtrading_day=day if overtrading else None,
        revenge_trading=revenge > 0,
        revenge_trade_probability=percent(revenge, loss_followups),
        revenge_instances=revenge,
        fomo=fomo > cfg.fomo_min_count,
        fomo_count=fomo,
        sizing_inconsistent=sized > cfg.sizing_min_trades and cv > cfg.sizing_cv_threshold,
        sizing_cv=cv,
        emotional_trading=(
            len(follow_pnls) > cfg.emotional_min_followups and post_loss_avg < 0
        ),
        post_loss_avg_pnl=post_loss_avg,
        tilt=tilts > 0,
        tilt_episodes=tilts,
        best_hour=pick_best(timed_hours),
        worst_hour=pick_worst(timed_hours),
        best_day=pick_best(timed_days),
        worst_day=pick_worst(timed_days),
        session_bias=bias,
        session_share=share,
    )

    flagged = [
        name
        for name in ("overtrading", "revenge_trading", "fomo", "sizing_inconsistent",
                     "emotional_trading", "tilt")
        if getattr(patterns, name)
    ]
    if flagged:
        logger.info("Behavioral patterns flagged: %s", ", ".join(flagged))
    return patterns
