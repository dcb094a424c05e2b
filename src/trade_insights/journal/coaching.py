"""Coaching tips: severity-ranked advice from patterns and risk metrics.

Turns :class:`BehavioralPatterns` and :class:`RiskMetrics` into short,
data-backed tips.  Every check is a named function in ``TIP_CHECKS``
returning zero or more tips, so checks can be added or tested one at a
time.

Tips are sorted by severity (critical, warning, action, success, info,
tip) and never dropped; paging and rotation belong to the caller.  The
``key`` of a tip is stable across runs so the presentation layer can
remember dismissals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from trade_insights.core.config import CoachingConfig
from trade_insights.core.enums import TipSeverity

from .ideas import Formatter, format_currency
from .patterns import BehavioralPatterns
from .record import TradeRecord
from .scoring import RiskMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoachingTip:
    icon: str
    severity: TipSeverity
    title: str
    message: str
    key: str

    def to_dict(self) -> dict[str, str]:
        return {
            "icon": self.icon,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "key": self.key,
        }


@dataclass(frozen=True)
class CoachContext:
    patterns: BehavioralPatterns
    risk: RiskMetrics
    config: CoachingConfig
    fmt: Formatter = format_currency


ONBOARDING_TIPS: tuple[CoachingTip, ...] = (
    CoachingTip(
        icon="lightbulb",
        severity=TipSeverity.TIP,
        title="Welcome to your trading journal",
        message="Start logging your trades to get personalized coaching insights.",
        key="welcome",
    ),
    CoachingTip(
        icon="brain",
        severity=TipSeverity.INFO,
        title="Track Everything",
        message=(
            "The more data you log, the better the insights about your trading "
            "patterns."
        ),
        key="track-everything",
    ),
    CoachingTip(
        icon="chart-line",
        severity=TipSeverity.TIP,
        title="Set Clear Goals",
        message=(
            "Define your risk management rules and stick to them. Consider using "
            "1-2% risk per trade."
        ),
        key="set-goals",
    ),
)

KEEP_TRADING_TIP = CoachingTip(
    icon="chart-line",
    severity=TipSeverity.INFO,
    title="Keep Trading",
    message=(
        "Nothing stands out in your recent trades. Keep logging and following "
        "your plan; new patterns show up as your journal grows."
    ),
    key="keep-trading",
)


# ---------------------------------------------------------------------- #
# Pattern checks                                                           #
# ---------------------------------------------------------------------- #

def _overtrading(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.overtrading:
        return []
    day = p.overtrading_day.isoformat() if p.overtrading_day else "one day"
    return [CoachingTip(
        icon="exclamation-triangle",
        severity=TipSeverity.CRITICAL,
        title="Overtrading Detected",
        message=(
            f"You placed {p.max_trades_per_day} trades on {day}. Set a daily trade "
            "limit and stop once you hit it."
        ),
        key="overtrading",
    )]


def _revenge(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.revenge_trading:
        return []
    return [CoachingTip(
        icon="exclamation-triangle",
        severity=TipSeverity.CRITICAL,
        title="Revenge Trading",
        message=(
            f"{p.revenge_trade_probability}% of your losses were followed within "
            "minutes by a larger position. Step away after a loss before the next "
            "entry."
        ),
        key="revenge-trading",
    )]


def _fomo(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.fomo:
        return []
    return [CoachingTip(
        icon="arrow-trend-down",
        severity=TipSeverity.WARNING,
        title="Chasing Extended Moves",
        message=(
            f"{p.fomo_count} of your recent losing trades entered after a big "
            "move had already happened. Wait for a pullback or skip the trade."
        ),
        key="fomo",
    )]


def _sizing(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.sizing_inconsistent:
        return []
    return [CoachingTip(
        icon="scale-unbalanced",
        severity=TipSeverity.WARNING,
        title="Inconsistent Position Sizing",
        message=(
            f"Your position sizes vary by {p.sizing_cv:.0%} around their average. "
            "Use a fixed risk per trade so one trade can't undo a week."
        ),
        key="position-sizing",
    )]


def _emotional(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.emotional_trading:
        return []
    return [CoachingTip(
        icon="brain",
        severity=TipSeverity.WARNING,
        title="Losses Are Following Losses",
        message=(
            "Trades you take right after a loss average "
            f"{ctx.fmt(p.post_loss_avg_pnl)}. Review your plan before re-entering."
        ),
        key="emotional-trading",
    )]


def _tilt(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    if not p.tilt:
        return []
    return [CoachingTip(
        icon="exclamation-triangle",
        severity=TipSeverity.CRITICAL,
        title="Tilt Warning",
        message=(
            f"{p.tilt_episodes} losing streak(s) where each loss got bigger. "
            "Stop for the day after three losses in a row."
        ),
        key="tilt",
    )]


def _timing(ctx: CoachContext) -> list[CoachingTip]:
    p = ctx.patterns
    tips: list[CoachingTip] = []
    if p.best_hour is not None and p.best_hour.pnl > 0:
        tips.append(CoachingTip(
            icon="clock",
            severity=TipSeverity.TIP,
            title=f"Your Edge Peaks at {p.best_hour.label}",
            message=(
                f"Trades entered around {p.best_hour.label} made "
                f"{ctx.fmt(p.best_hour.pnl, True)} at a {p.best_hour.win_rate}% win rate."
            ),
            key="best-hour",
        ))
    if p.worst_hour is not None and p.worst_hour.pnl < 0 and p.worst_hour != p.best_hour:
        tips.append(CoachingTip(
            icon="clock",
            severity=TipSeverity.ACTION,
            title=f"Avoid Trading at {p.worst_hour.label}",
            message=(
                f"Entries around {p.worst_hour.label} lost "
                f"{ctx.fmt(abs(p.worst_hour.pnl))}. Sit that hour out for a week "
                "and compare."
            ),
            key="worst-hour",
        ))
    if p.best_day is not None and p.best_day.pnl > 0:
        tips.append(CoachingTip(
            icon="calendar",
            severity=TipSeverity.SUCCESS,
            title=f"{p.best_day.label} Is Your Day",
            message=(
                f"{p.best_day.label} trades made {ctx.fmt(p.best_day.pnl, True)} "
                f"with a {p.best_day.win_rate}% win rate."
            ),
            key="best-day",
        ))
    if p.worst_day is not None and p.worst_day.pnl < 0 and p.worst_day != p.best_day:
        tips.append(CoachingTip(
            icon="calendar",
            severity=TipSeverity.ACTION,
            title=f"Cut Back on {p.worst_day.label}",
            message=(
                f"{p.worst_day.label} trades lost {ctx.fmt(abs(p.worst_day.pnl))}. "
                "Trade smaller or not at all on that day."
            ),
            key="worst-day",
        ))
    if p.session_bias is not None:
        session = p.session_bias.value.replace("_", " ").title()
        tips.append(CoachingTip(
            icon="globe",
            severity=TipSeverity.INFO,
            title=f"{session} Session Bias",
            message=(
                f"{p.session_share}% of your trades happen in the {session} session. "
                "Make sure that is a choice, not a habit."
            ),
            key="session-bias",
        ))
    return tips


# ---------------------------------------------------------------------- #
# Derived-metric checks                                                    #
# ---------------------------------------------------------------------- #

def _profit_factor(ctx: CoachContext) -> list[CoachingTip]:
    r, cfg = ctx.risk, ctx.config
    pf = r.profit_factor
    if r.gross_loss <= 0:
        return []
    if pf < 1:
        return [CoachingTip(
            icon="arrow-trend-down",
            severity=TipSeverity.CRITICAL,
            title="Losing More Than You Make",
            message=(
                f"Profit factor is {pf:.2f}: every dollar lost brings back only "
                f"{pf:.2f} in profit. Cut the setups that drag it down."
            ),
            key="profit-factor",
        )]
    if pf < cfg.weak_profit_factor:
        return [CoachingTip(
            icon="chart-line",
            severity=TipSeverity.ACTION,
            title="Thin Profit Factor",
            message=(
                f"Profit factor of {pf:.2f} leaves little room for a bad week. "
                f"Aim for {cfg.weak_profit_factor:.1f} or better."
            ),
            key="profit-factor",
        )]
    if pf >= cfg.strong_profit_factor:
        return [CoachingTip(
            icon="trophy",
            severity=TipSeverity.SUCCESS,
            title="Strong Profit Factor",
            message=f"You make {pf:.2f} for every dollar you lose. Protect that edge.",
            key="profit-factor",
        )]
    return []


def _drawdown(ctx: CoachContext) -> list[CoachingTip]:
    r = ctx.risk
    if r.gross_profit <= 0 or r.drawdown_ratio <= ctx.config.drawdown_ratio_warning:
        return []
    return [CoachingTip(
        icon="arrow-trend-down",
        severity=TipSeverity.WARNING,
        title="Deep Drawdown",
        message=(
            f"Your worst drawdown ({ctx.fmt(r.max_drawdown)}) gave back "
            f"{r.drawdown_ratio:.0%} of your gross profit. Add a daily loss limit."
        ),
        key="drawdown",
    )]


def _sharpe(ctx: CoachContext) -> list[CoachingTip]:
    r = ctx.risk
    if r.trade_count < 2:
        return []
    if r.sharpe_proxy < 0:
        return [CoachingTip(
            icon="chart-line",
            severity=TipSeverity.WARNING,
            title="Negative Risk-Adjusted Return",
            message=(
                "Your average trade loses money relative to its swings. Reduce size "
                "until the average trade is positive."
            ),
            key="sharpe",
        )]
    if r.sharpe_proxy >= ctx.config.sharpe_strong:
        return [CoachingTip(
            icon="trophy",
            severity=TipSeverity.SUCCESS,
            title="Steady Risk-Adjusted Returns",
            message=(
                f"Average trade return is {r.sharpe_proxy:.2f}x its volatility. "
                "That is a repeatable edge."
            ),
            key="sharpe",
        )]
    return []


def _streak(ctx: CoachContext) -> list[CoachingTip]:
    r, n = ctx.risk, ctx.config.streak_length
    if r.current_streak >= n:
        return [CoachingTip(
            icon="trophy",
            severity=TipSeverity.SUCCESS,
            title=f"{r.current_streak} Trade Win Streak!",
            message="You're in the zone! Stay disciplined and don't let overconfidence creep in.",
            key="win-streak",
        )]
    if r.current_streak <= -n:
        return [CoachingTip(
            icon="exclamation-triangle",
            severity=TipSeverity.WARNING,
            title=f"{-r.current_streak} Trade Losing Streak",
            message="Consider taking a break to reset. Review your recent trades for patterns.",
            key="loss-streak",
        )]
    return []


def _volatility(ctx: CoachContext) -> list[CoachingTip]:
    r = ctx.risk
    if r.largest_loss_ratio <= ctx.config.largest_loss_ratio_warning:
        return []
    return [CoachingTip(
        icon="bolt",
        severity=TipSeverity.WARNING,
        title="Outsized Loss",
        message=(
            f"Your largest loss was {r.largest_loss_ratio:.1f}x your average loss. "
            "Always trade with a hard stop."
        ),
        key="outsized-loss",
    )]


def _win_rate(ctx: CoachContext) -> list[CoachingTip]:
    r, cfg = ctx.risk, ctx.config
    if r.win_rate < cfg.low_win_rate:
        return [CoachingTip(
            icon="exclamation-triangle",
            severity=TipSeverity.WARNING,
            title="Low Win Rate Alert",
            message=(
                f"Your win rate is {r.win_rate:.1f}%. Consider reviewing your entry "
                "criteria and market analysis."
            ),
            key="win-rate",
        )]
    if r.win_rate > cfg.high_win_rate:
        return [CoachingTip(
            icon="trophy",
            severity=TipSeverity.SUCCESS,
            title="Excellent Win Rate!",
            message=f"{r.win_rate:.1f}% win rate is impressive! Keep maintaining your discipline.",
            key="win-rate",
        )]
    return []


def _risk_reward(ctx: CoachContext) -> list[CoachingTip]:
    r, cfg = ctx.risk, ctx.config
    if r.avg_win <= 0 or r.avg_loss <= 0:
        return []
    if r.risk_reward < cfg.low_rr:
        return [CoachingTip(
            icon="arrow-trend-down",
            severity=TipSeverity.ACTION,
            title="Risk-Reward Needs Work",
            message=(
                f"Your R:R is {r.risk_reward:.2f}. Aim for at least "
                f"{cfg.low_rr:.1f}:1 to ensure long-term profitability."
            ),
            key="risk-reward",
        )]
    if r.risk_reward > cfg.high_rr:
        return [CoachingTip(
            icon="arrow-trend-up",
            severity=TipSeverity.SUCCESS,
            title="Great Risk Management!",
            message=(
                f"R:R of {r.risk_reward:.2f} is excellent. This gives you room for "
                "lower win rates."
            ),
            key="risk-reward",
        )]
    return []


def _recent_form(ctx: CoachContext) -> list[CoachingTip]:
    r, shift = ctx.risk, ctx.config.recent_shift
    if r.trade_count <= ctx.config.recent_window:
        return []
    if r.recent_win_rate > r.win_rate + shift:
        return [CoachingTip(
            icon="arrow-trend-up",
            severity=TipSeverity.SUCCESS,
            title="Improving Performance!",
            message=(
                f"Your recent win rate ({r.recent_win_rate:.1f}%) is better than "
                "your average. Great progress!"
            ),
            key="recent-form",
        )]
    if r.recent_win_rate < r.win_rate - shift:
        return [CoachingTip(
            icon="arrow-trend-down",
            severity=TipSeverity.WARNING,
            title="Recent Underperformance",
            message=(
                "Your recent trades are below your average. Time to review and "
                "adjust your strategy."
            ),
            key="recent-form",
        )]
    return []


def _sample_size(ctx: CoachContext) -> list[CoachingTip]:
    r = ctx.risk
    if r.trade_count >= ctx.config.small_sample:
        return []
    return [CoachingTip(
        icon="lightbulb",
        severity=TipSeverity.INFO,
        title="Build Your Database",
        message=(
            f"You have logged {r.trade_count} trades. Keep logging to identify "
            "patterns in your trading."
        ),
        key="sample-size",
    )]


def _favourite(ctx: CoachContext) -> list[CoachingTip]:
    symbol = ctx.risk.most_traded_symbol
    if symbol is None:
        return []
    return [CoachingTip(
        icon="chart-line",
        severity=TipSeverity.INFO,
        title="Favorite Instrument",
        message=(
            f"You trade {symbol} the most. Consider if you're missing "
            "opportunities elsewhere."
        ),
        key="favorite-instrument",
    )]


def _stay_consistent(ctx: CoachContext) -> list[CoachingTip]:
    if ctx.risk.total_pnl <= 0:
        return []
    return [CoachingTip(
        icon="brain",
        severity=TipSeverity.SUCCESS,
        title="Stay Consistent",
        message=(
            '"The goal of a successful trader is to make the best trades. Money '
            'is secondary." - Alexander Elder'
        ),
        key="stay-consistent",
    )]


TipCheck = Callable[[CoachContext], list[CoachingTip]]

PATTERN_CHECKS: tuple[TipCheck, ...] = (
    _overtrading,
    _revenge,
    _tilt,
    _fomo,
    _sizing,
    _emotional,
    _timing,
)

METRIC_CHECKS: tuple[TipCheck, ...] = (
    _profit_factor,
    _drawdown,
    _sharpe,
    _streak,
    _volatility,
    _win_rate,
    _risk_reward,
    _recent_form,
    _sample_size,
    _favourite,
    _stay_consistent,
)

TIP_CHECKS: tuple[TipCheck, ...] = PATTERN_CHECKS + METRIC_CHECKS


def rank_tips(tips: Sequence[CoachingTip]) -> list[CoachingTip]:
    """Stable sort by severity; duplicates by key keep the first."""
    seen: set[str] = set()
    unique: list[CoachingTip] = []
    for tip in tips:
        if tip.key in seen:
            continue
        seen.add(tip.key)
        unique.append(tip)
    return sorted(unique, key=lambda t: t.severity.rank)


def generate_tips(
    records: Sequence[TradeRecord],
    patterns: BehavioralPatterns,
    risk: RiskMetrics,
    *,
    config: CoachingConfig | None = None,
    formatter: Formatter | None = None,
    checks: Sequence[TipCheck] = TIP_CHECKS,
) -> list[CoachingTip]:
    """All tips for the snapshot, most severe first.

    No records → onboarding tips.  Records but no firing check → the
    single keep-trading tip.
    """
    if not records:
        return list(ONBOARDING_TIPS)

    ctx = CoachContext(
        patterns=patterns,
        risk=risk,
        config=config or CoachingConfig(),
        fmt=formatter or format_currency,
    )
    tips: list[CoachingTip] = []
    for check in checks:
        tips.extend(check(ctx))

    if not tips:
        return [KEEP_TRADING_TIP]

    ranked = rank_tips(tips)
    logger.debug(
        "Generated %d tips (%s)",
        len(ranked),
        ", ".join(f"{t.key}:{t.severity.value}" for t in ranked),
    )
    return ranked
