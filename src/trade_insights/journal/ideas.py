"""Rule-based trade idea generation.

Each rule is an independent, named ``select`` function paired with
``str.format`` templates.  ``select`` inspects the snapshot and returns
the template fields when its condition holds, or None.  Rules run in
declaration order; ideas keep that order (they are not severity
ranked) and are deduplicated by id.

Adding a rule means appending an :class:`IdeaRule` to ``IDEA_RULES``;
each rule can be unit-tested through :func:`evaluate_rule`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from trade_insights.core.config import IdeaConfig
from trade_insights.core.enums import Sentiment

from .aggregation import Aggregates
from .record import TradeRecord
from .scoring import SummaryStats, pick_best, pick_worst

logger = logging.getLogger(__name__)

# (amount, signed) -> display string
Formatter = Callable[..., str]


def format_currency(amount: float, signed: bool = False) -> str:
    """Plain USD rendering used when the caller supplies no formatter."""
    text = f"${abs(amount):,.2f}"
    if amount < 0:
        return f"-{text}"
    if signed and amount > 0:
        return f"+{text}"
    return text


@dataclass(frozen=True)
class Idea:
    id: str
    title: str
    insight: str
    sentiment: Sentiment

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "insight": self.insight,
            "sentiment": self.sentiment.value,
        }


@dataclass(frozen=True)
class IdeaContext:
    """Everything a rule may look at.  Read-only."""

    records: Sequence[TradeRecord]
    aggregates: Aggregates
    summary: SummaryStats
    now: datetime  # naive local, same frame as record timestamps
    fmt: Formatter = format_currency
    config: IdeaConfig = field(default_factory=IdeaConfig)


@dataclass(frozen=True)
class IdeaRule:
    name: str
    select: Callable[[IdeaContext], dict[str, Any] | None]
    id: str
    title: str
    insight: str
    sentiment: Sentiment


# ---------------------------------------------------------------------- #
# Selectors                                                                #
# ---------------------------------------------------------------------- #

def _best_symbol(ctx: IdeaContext) -> dict[str, Any] | None:
    best = pick_best(ctx.aggregates.instrument)
    if best is None or best.pnl <= 0:
        return None
    return {"symbol": best.label, "win_rate": best.win_rate, "pnl": ctx.fmt(best.pnl, True)}


def _worst_symbol(ctx: IdeaContext) -> dict[str, Any] | None:
    losing = [
        b for b in ctx.aggregates.instrument
        if b.pnl < 0 and b.trade_count >= ctx.config.worst_symbol_min_trades
    ]
    worst = pick_worst(losing)
    if worst is None:
        return None
    return {"symbol": worst.label, "win_rate": worst.win_rate, "loss": ctx.fmt(abs(worst.pnl))}


def _time_symbol(ctx: IdeaContext) -> dict[str, Any] | None:
    symbol = pick_best(ctx.aggregates.instrument)
    hour = pick_best(ctx.aggregates.hour)
    if symbol is None or hour is None:
        return None
    return {"symbol": symbol.label, "hour": hour.label, "win_rate": hour.win_rate}


def _direction_edge(ctx: IdeaContext) -> dict[str, Any] | None:
    if len(ctx.aggregates.direction) != 2:
        return None
    first, second = ctx.aggregates.direction
    if abs(first.win_rate - second.win_rate) < ctx.config.direction_edge_min_gap:
        return None
    better, other = (first, second) if first.win_rate > second.win_rate else (second, first)
    return {
        "side": better.label.lower(),
        "win_rate": better.win_rate,
        "other_win_rate": other.win_rate,
    }


def _strategies(ctx: IdeaContext) -> dict[str, Any] | None:
    strategies = ctx.aggregates.strategy
    if len(strategies) < 2:
        return None
    profitable = [b for b in strategies if b.pnl > 0]
    losing = [b for b in strategies if b.pnl < 0]
    if not profitable or not losing:
        return None
    keep = pick_best(profitable)
    drop = pick_worst(losing)
    return {
        "strategy": keep.label,
        "win_rate": keep.win_rate,
        "pnl": ctx.fmt(keep.pnl, True),
        "drop": drop.label,
    }


def _let_winners_run(ctx: IdeaContext) -> dict[str, Any] | None:
    s = ctx.summary
    if s.avg_win <= 0 or s.avg_loss <= 0 or s.risk_reward >= 1:
        return None
    return {
        "avg_win": ctx.fmt(s.avg_win),
        "avg_loss": ctx.fmt(s.avg_loss),
        "rr": f"{s.risk_reward:.1f}",
    }


def _great_rr(ctx: IdeaContext) -> dict[str, Any] | None:
    s = ctx.summary
    if s.avg_win <= 0 or s.avg_loss <= 0 or s.risk_reward < ctx.config.great_rr:
        return None
    return {"rr": f"{s.risk_reward:.1f}"}


def _day_schedule(ctx: IdeaContext) -> dict[str, Any] | None:
    best = pick_best(ctx.aggregates.day_of_week)
    worst = pick_worst(ctx.aggregates.day_of_week)
    if best is None or worst is None or worst.pnl >= 0:
        return None
    return {
        "best_day": best.label,
        "win_rate": best.win_rate,
        "pnl": ctx.fmt(best.pnl, True),
        "worst_day": worst.label,
        "loss": ctx.fmt(abs(worst.pnl)),
    }


def _revisit(ctx: IdeaContext) -> dict[str, Any] | None:
    cutoff = ctx.now - timedelta(days=ctx.config.revisit_lookback_days)
    recent = {t.symbol for t in ctx.records if t.exit_time >= cutoff}
    for bucket in ctx.aggregates.instrument:
        if bucket.label in recent:
            continue
        if bucket.pnl > 0 and bucket.trade_count >= ctx.config.revisit_min_trades:
            return {
                "symbol": bucket.label,
                "win_rate": bucket.win_rate,
                "pnl": ctx.fmt(bucket.pnl, True),
            }
    return None


IDEA_RULES: tuple[IdeaRule, ...] = (
    IdeaRule(
        name="focus_best_symbol",
        select=_best_symbol,
        id="focus-best-symbol",
        title="Focus on {symbol}",
        insight=(
            "Consider increasing your {symbol} allocation. You win {win_rate}% of "
            "trades with {pnl} total P&L. This is your strongest instrument."
        ),
        sentiment=Sentiment.POSITIVE,
    ),
    IdeaRule(
        name="reduce_worst_symbol",
        select=_worst_symbol,
        id="reduce-worst-symbol",
        title="Reduce {symbol} exposure",
        insight=(
            "{symbol} is costing you {loss} with a {win_rate}% win rate. Consider "
            "tighter stops, smaller size, or removing it from your watchlist."
        ),
        sentiment=Sentiment.OPPORTUNITY,
    ),
    IdeaRule(
        name="time_symbol_combo",
        select=_time_symbol,
        id="time-symbol-combo",
        title="Trade {symbol} around {hour}",
        insight=(
            "Combine your best instrument ({symbol}) with your peak hour ({hour}) "
            "for the highest edge. That hour has a {win_rate}% win rate."
        ),
        sentiment=Sentiment.POSITIVE,
    ),
    IdeaRule(
        name="direction_edge",
        select=_direction_edge,
        id="direction-edge",
        title="Lean into {side} trades",
        insight=(
            "Your {side} trades win {win_rate}% of the time vs {other_win_rate}% on "
            "the other side. Prioritize setups in this direction."
        ),
        sentiment=Sentiment.POSITIVE,
    ),
    IdeaRule(
        name="stick_to_strategies",
        select=_strategies,
        id="stick-to-strategies",
        title='Double down on "{strategy}"',
        insight=(
            '"{strategy}" is your edge ({win_rate}% WR, {pnl}). Consider dropping '
            '"{drop}" which is losing you money.'
        ),
        sentiment=Sentiment.OPPORTUNITY,
    ),
    IdeaRule(
        name="let_winners_run",
        select=_let_winners_run,
        id="let-winners-run",
        title="Let your winners run",
        insight=(
            "Your average winner ({avg_win}) is smaller than your average loser "
            "({avg_loss}). Try trailing stops or wider take-profit levels to "
            "improve your R:R from {rr}:1."
        ),
        sentiment=Sentiment.OPPORTUNITY,
    ),
    IdeaRule(
        name="great_rr",
        select=_great_rr,
        id="great-rr",
        title="Your risk management is solid",
        insight=(
            "{rr}:1 reward-to-risk means you can afford a lower win rate and still "
            "be profitable. Keep managing risk the same way."
        ),
        sentiment=Sentiment.POSITIVE,
    ),
    IdeaRule(
        name="day_schedule",
        select=_day_schedule,
        id="day-schedule",
        title="Trade more on {best_day}s",
        insight=(
            "{best_day}s are your best day ({win_rate}% WR, {pnl}). Consider "
            "reducing activity on {worst_day}s where you're down {loss}."
        ),
        sentiment=Sentiment.NEUTRAL,
    ),
    IdeaRule(
        name="revisit_symbol",
        select=_revisit,
        id="revisit-{symbol}",
        title="Revisit {symbol}",
        insight=(
            "You haven't traded {symbol} recently, but it was profitable "
            "({win_rate}% WR, {pnl}). Worth adding back to your watchlist."
        ),
        sentiment=Sentiment.OPPORTUNITY,
    ),
)


def evaluate_rule(rule: IdeaRule, ctx: IdeaContext) -> Idea | None:
    """Apply one rule; None when its condition does not hold."""
    values = rule.select(ctx)
    if values is None:
        return None
    return Idea(
        id=rule.id.format(**values),
        title=rule.title.format(**values),
        insight=rule.insight.format(**values),
        sentiment=rule.sentiment,
    )


def generate_ideas(
    ctx: IdeaContext,
    rules: Sequence[IdeaRule] = IDEA_RULES,
) -> list[Idea]:
    """Evaluate *rules* in order; at most one idea per rule, unique ids."""
    ideas: list[Idea] = []
    seen: set[str] = set()
    for rule in rules:
        idea = evaluate_rule(rule, ctx)
        if idea is None or idea.id in seen:
            continue
        seen.add(idea.id)
        ideas.append(idea)
    logger.debug("Generated %d ideas from %d rules", len(ideas), len(rules))
    return ideas
