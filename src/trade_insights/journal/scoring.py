"""Summary statistics, Trader Profile and derived risk metrics.

Reduces the dimension buckets into the headline numbers a journal
dashboard shows, and a six-axis Trader Profile normalized to 0-100 so
that a radar chart can plot every axis on one scale and the coaching
rules can apply uniform thresholds (>= 70 is "strong"):

    Axis          Source                               Scale
    ─────────────────────────────────────────────────────────────────
    Win Rate      wins / trades                        direct %
    R:R           avg win / avg loss                   3:1 = 100
    Consistency   CV of daily P&L                      CV 0 = 100, floor 10
    Volume        active days per calendar week        5 days = 100
    Best Day      win rate of the top-P&L weekday      direct %
    Direction     higher of long / short win rate      direct %

Best/worst selection is a linear scan with a strict comparison, so the
earliest bucket in iteration order wins a tie.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from trade_insights.core.config import MIN_TRADES_FOR_SUMMARY

from .aggregation import Aggregates, DimensionBucket, percent, round_half_up
from .record import TradeRecord

logger = logging.getLogger(__name__)

FULL_MARK = 100

# Consistency axis when fewer than two active days exist
DEFAULT_CONSISTENCY = 80
# CV assumed when mean daily P&L is exactly zero
_ZERO_MEAN_CV = 5.0


def clamp(value: float, low: float = 0, high: float = FULL_MARK) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------- #
# Best / worst                                                             #
# ---------------------------------------------------------------------- #

def pick_best(
    buckets: Sequence[DimensionBucket],
    metric: Callable[[DimensionBucket], float] = lambda b: b.pnl,
) -> DimensionBucket | None:
    """Highest *metric*; first-seen bucket wins ties."""
    best: DimensionBucket | None = None
    for bucket in buckets:
        if best is None or metric(bucket) > metric(best):
            best = bucket
    return best


def pick_worst(
    buckets: Sequence[DimensionBucket],
    metric: Callable[[DimensionBucket], float] = lambda b: b.pnl,
) -> DimensionBucket | None:
    """Lowest *metric*; first-seen bucket wins ties."""
    worst: DimensionBucket | None = None
    for bucket in buckets:
        if worst is None or metric(bucket) < metric(worst):
            worst = bucket
    return worst


# ---------------------------------------------------------------------- #
# Models                                                                   #
# ---------------------------------------------------------------------- #

@dataclass(frozen=True)
class ProfileAxis:
    metric: str
    value: int
    full_mark: int = FULL_MARK

    def to_dict(self) -> dict[str, Any]:
        return {"metric": self.metric, "value": self.value, "full_mark": self.full_mark}


@dataclass(frozen=True)
class SummaryStats:
    """Headline statistics for one trade snapshot."""

    trade_count: int
    win_count: int
    loss_count: int
    win_rate: int
    total_pnl: float
    avg_win: float
    avg_loss: float  # absolute value
    best_symbol: DimensionBucket | None = None
    worst_symbol: DimensionBucket | None = None
    best_hour: DimensionBucket | None = None
    worst_hour: DimensionBucket | None = None
    best_day: DimensionBucket | None = None
    worst_day: DimensionBucket | None = None
    win_direction: DimensionBucket | None = None
    top_strategy: DimensionBucket | None = None
    worst_strategy: DimensionBucket | None = None
    trader_profile: tuple[ProfileAxis, ...] = field(default_factory=tuple)

    @property
    def risk_reward(self) -> float:
        return self.avg_win / self.avg_loss if self.avg_loss > 0 else 0.0

    def profile_value(self, metric: str) -> int:
        for axis in self.trader_profile:
            if axis.metric == metric:
                return axis.value
        raise KeyError(metric)

    def to_dict(self) -> dict[str, Any]:
        def _b(bucket: DimensionBucket | None) -> dict[str, Any] | None:
            return bucket.to_dict() if bucket else None

        return {
            "trade_count": self.trade_count,
            "win_count": self.win_count,
            "loss_count": self.loss_count,
            "win_rate": self.win_rate,
            "total_pnl": round_half_up(self.total_pnl, 2),
            "avg_win": round_half_up(self.avg_win, 2),
            "avg_loss": round_half_up(self.avg_loss, 2),
            "best_symbol": _b(self.best_symbol),
            "worst_symbol": _b(self.worst_symbol),
            "best_hour": _b(self.best_hour),
            "worst_hour": _b(self.worst_hour),
            "best_day": _b(self.best_day),
            "worst_day": _b(self.worst_day),
            "win_direction": _b(self.win_direction),
            "top_strategy": _b(self.top_strategy),
            "worst_strategy": _b(self.worst_strategy),
            "trader_profile": [a.to_dict() for a in self.trader_profile],
        }


@dataclass(frozen=True)
class RiskMetrics:
    """Derived risk and behaviour metrics over the chronological sequence."""

    trade_count: int = 0
    win_rate: float = 0.0  # unrounded, for threshold checks
    gross_profit: float = 0.0
    gross_loss: float = 0.0  # absolute value
    profit_factor: float | None = 0.0  # None = profits with no losses
    avg_win: float = 0.0
    avg_loss: float = 0.0
    risk_reward: float = 0.0
    total_pnl: float = 0.0
    max_drawdown: float = 0.0
    drawdown_ratio: float = 0.0
    sharpe_proxy: float = 0.0
    current_streak: int = 0  # +n winning, -n losing
    max_win_streak: int = 0
    max_loss_streak: int = 0
    largest_loss_ratio: float = 0.0
    recent_win_rate: float = 0.0
    most_traded_symbol: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_count": self.trade_count,
            "win_rate": round_half_up(self.win_rate, 1),
            "gross_profit": round_half_up(self.gross_profit, 2),
            "gross_loss": round_half_up(self.gross_loss, 2),
            "profit_factor": (
                None if self.profit_factor is None else round_half_up(self.profit_factor, 2)
            ),
            "risk_reward": round_half_up(self.risk_reward, 2),
            "max_drawdown": round_half_up(self.max_drawdown, 2),
            "drawdown_ratio": round_half_up(self.drawdown_ratio, 4),
            "sharpe_proxy": round_half_up(self.sharpe_proxy, 4),
            "current_streak": self.current_streak,
            "max_win_streak": self.max_win_streak,
            "max_loss_streak": self.max_loss_streak,
            "largest_loss_ratio": round_half_up(self.largest_loss_ratio, 2),
            "recent_win_rate": round_half_up(self.recent_win_rate, 1),
            "most_traded_symbol": self.most_traded_symbol,
        }


# ---------------------------------------------------------------------- #
# Trader Profile axes                                                      #
# ---------------------------------------------------------------------- #

def risk_reward_score(avg_win: float, avg_loss: float) -> int:
    rr = avg_win / avg_loss if avg_loss > 0 else 0.0
    return int(clamp(round_half_up(rr / 3 * 100)))


def consistency_score(daily_pnls: Sequence[float]) -> int:
    """Score day-to-day stability from the coefficient of variation."""
    if len(daily_pnls) < 2:
        return DEFAULT_CONSISTENCY
    values = np.asarray(daily_pnls, dtype=np.float64)
    mean = float(values.mean())
    std = float(values.std())  # population
    cv = std / abs(mean) if mean != 0 else _ZERO_MEAN_CV
    return int(clamp(round_half_up(100 - (cv / 3) * 90), 10, 100))


def volume_score(active_days: int, weeks: int) -> int:
    days_per_week = active_days / max(weeks, 1)
    return int(clamp(round_half_up(days_per_week / 5 * 100)))


def build_profile(
    aggregates: Aggregates,
    *,
    win_rate: int,
    avg_win: float,
    avg_loss: float,
    best_day: DimensionBucket | None,
    win_direction: DimensionBucket | None,
) -> tuple[ProfileAxis, ...]:
    return (
        ProfileAxis("Win Rate", int(clamp(win_rate))),
        ProfileAxis("R:R", risk_reward_score(avg_win, avg_loss)),
        ProfileAxis(
            "Consistency",
            consistency_score([b.pnl for b in aggregates.daily_activity]),
        ),
        ProfileAxis(
            "Volume",
            volume_score(len(aggregates.daily_activity), len(aggregates.week)),
        ),
        ProfileAxis("Best Day", best_day.win_rate if best_day else 0),
        ProfileAxis("Direction", win_direction.win_rate if win_direction else 0),
    )


# ---------------------------------------------------------------------- #
# Summary                                                                  #
# ---------------------------------------------------------------------- #

def build_summary(
    aggregates: Aggregates,
    records: Sequence[TradeRecord],
    *,
    min_trades: int = MIN_TRADES_FOR_SUMMARY,
) -> SummaryStats | None:
    """Headline stats and Trader Profile, or None below *min_trades*."""
    if len(records) < min_trades:
        logger.debug("Summary skipped: %d trades < %d", len(records), min_trades)
        return None

    # Single accumulation pass in entry-time order
    win_count = loss_count = 0
    win_sum = loss_sum = total_pnl = 0.0
    for trade in chronological(records):
        total_pnl += trade.pnl
        if trade.pnl > 0:
            win_count += 1
            win_sum += trade.pnl
        elif trade.pnl < 0:
            loss_count += 1
            loss_sum += trade.pnl

    win_rate = percent(win_count, len(records))
    avg_win = win_sum / win_count if win_count else 0.0
    avg_loss = abs(loss_sum / loss_count) if loss_count else 0.0

    best_day = pick_best(aggregates.day_of_week)
    win_direction = pick_best(aggregates.direction, lambda b: b.win_rate)

    return SummaryStats(
        trade_count=len(records),
        win_count=win_count,
        loss_count=loss_count,
        win_rate=win_rate,
        total_pnl=total_pnl,
        avg_win=avg_win,
        avg_loss=avg_loss,
        best_symbol=pick_best(aggregates.instrument),
        worst_symbol=pick_worst(aggregates.instrument),
        best_hour=pick_best(aggregates.hour),
        worst_hour=pick_worst(aggregates.hour),
        best_day=best_day,
        worst_day=pick_worst(aggregates.day_of_week),
        win_direction=win_direction,
        top_strategy=pick_best(aggregates.strategy),
        worst_strategy=pick_worst(aggregates.strategy),
        trader_profile=build_profile(
            aggregates,
            win_rate=win_rate,
            avg_win=avg_win,
            avg_loss=avg_loss,
            best_day=best_day,
            win_direction=win_direction,
        ),
    )


# ---------------------------------------------------------------------- #
# Risk metrics                                                             #
# ---------------------------------------------------------------------- #

def chronological(records: Sequence[TradeRecord]) -> list[TradeRecord]:
    """Records ordered by entry time; equal times keep input order."""
    return sorted(records, key=lambda t: t.entry_time)


def max_drawdown(pnls: Sequence[float]) -> float:
    """Largest peak-to-trough drop of the cumulative P&L curve.

    The curve starts at 0, so an opening losing run counts as drawdown.
    """
    if not pnls:
        return 0.0
    equity = np.concatenate(([0.0], np.cumsum(np.asarray(pnls, dtype=np.float64))))
    peaks = np.maximum.accumulate(equity)
    return float((peaks - equity).max())


def streaks(pnls: Sequence[float]) -> tuple[int, int, int]:
    """Return (current, max_win, max_loss).  Break-even trades reset runs."""
    current = max_win = max_loss = 0
    for pnl in pnls:
        if pnl > 0:
            current = current + 1 if current > 0 else 1
            max_win = max(max_win, current)
        elif pnl < 0:
            current = current - 1 if current < 0 else -1
            max_loss = max(max_loss, -current)
        else:
            current = 0
    return current, max_win, max_loss


def compute_risk_metrics(
    records: Sequence[TradeRecord],
    *,
    recent_window: int = 10,
) -> RiskMetrics:
    """Derived risk metrics over the chronological trade sequence."""
    if not records:
        return RiskMetrics()

    ordered = chronological(records)
    pnls = [t.pnl for t in ordered]
    values = np.asarray(pnls, dtype=np.float64)

    wins = values[values > 0]
    losses = values[values < 0]
    gross_profit = float(wins.sum())
    gross_loss = float(-losses.sum())
    avg_win = float(wins.mean()) if wins.size else 0.0
    avg_loss = float(-losses.mean()) if losses.size else 0.0

    if gross_loss > 0:
        profit_factor: float | None = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = None
    else:
        profit_factor = 0.0

    mdd = max_drawdown(pnls)
    std = float(values.std())
    current, max_win, max_loss = streaks(pnls)

    recent = values[-recent_window:] if recent_window > 0 else values[:0]
    recent_win_rate = float((recent > 0).sum() * 100 / recent.size) if recent.size else 0.0

    # Most traded symbol, first-seen wins ties
    counts: dict[str, int] = {}
    for trade in ordered:
        counts[trade.symbol] = counts.get(trade.symbol, 0) + 1
    most_traded = None
    for symbol, count in counts.items():
        if most_traded is None or count > counts[most_traded]:
            most_traded = symbol

    return RiskMetrics(
        trade_count=len(ordered),
        win_rate=float(wins.size * 100 / values.size),
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        profit_factor=profit_factor,
        avg_win=avg_win,
        avg_loss=avg_loss,
        risk_reward=avg_win / avg_loss if avg_loss > 0 else 0.0,
        total_pnl=float(values.sum()),
        max_drawdown=mdd,
        drawdown_ratio=mdd / gross_profit if gross_profit > 0 else 0.0,
        sharpe_proxy=float(values.mean()) / std if std > 0 else 0.0,
        current_streak=current,
        max_win_streak=max_win,
        max_loss_streak=max_loss,
        largest_loss_ratio=float(-losses.min()) / avg_loss if avg_loss > 0 else 0.0,
        recent_win_rate=recent_win_rate,
        most_traded_symbol=most_traded,
    )
