"""Insight engine: one call from raw journal rows to every derived view.

Pipeline (strictly one direction, nothing downstream mutates upstream)::

    raw rows ─► normalize ─► aggregate ─► summary / risk ─► patterns
                                                    └─► ideas / tips

The engine keeps no state between calls.  Re-running it on every
change to the trade collection is the intended use; with the same
snapshot and the same clock it returns an identical bundle.

Usage::

    engine = InsightEngine()
    bundle = engine.analyse(trades_from_storage)
    if bundle.has_enough_data:
        print(bundle.summary.win_rate, [i.title for i in bundle.ideas])
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from trade_insights.core.clock import IClock, WallClock
from trade_insights.core.config import InsightSettings
from trade_insights.observability.logger import analysis_context, get_logger

from .aggregation import Aggregates, build_aggregates
from .coaching import CoachingTip, generate_tips
from .ideas import Formatter, Idea, IdeaContext, format_currency, generate_ideas
from .normalizer import normalize_trades, to_local
from .patterns import BehavioralPatterns, detect_patterns
from .scoring import RiskMetrics, SummaryStats, build_summary, compute_risk_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class InsightBundle:
    """Everything the presentation layer needs for one snapshot."""

    aggregates: Aggregates
    summary: SummaryStats | None
    ideas: tuple[Idea, ...]
    tips: tuple[CoachingTip, ...]
    patterns: BehavioralPatterns
    risk: RiskMetrics
    has_enough_data: bool
    total_trades: int
    dropped_rows: int = 0
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregates": self.aggregates.to_dict(),
            "summary": self.summary.to_dict() if self.summary else None,
            "ideas": [i.to_dict() for i in self.ideas],
            "tips": [t.to_dict() for t in self.tips],
            "patterns": self.patterns.to_dict(),
            "risk": self.risk.to_dict(),
            "has_enough_data": self.has_enough_data,
            "total_trades": self.total_trades,
            "dropped_rows": self.dropped_rows,
        }


class InsightEngine:
    """Stateless analytics pipeline over a trade snapshot.

    Parameters
    ----------
    settings : InsightSettings | None
        Thresholds and timezone.  Defaults apply when None.
    clock : IClock | None
        Source of "now" for recency rules.  WallClock when None.
    """

    def __init__(
        self,
        settings: InsightSettings | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._settings = settings or InsightSettings()
        self._clock = clock or WallClock()

    @property
    def settings(self) -> InsightSettings:
        return self._settings

    def analyse(
        self,
        raw_trades: Iterable[Any],
        formatter: Formatter | None = None,
    ) -> InsightBundle:
        """Run the full pipeline.

        Raises
        ------
        ContractViolationError
            *raw_trades* is not an iterable of rows.
        """
        cfg = self._settings
        fmt = formatter or format_currency
        tz = cfg.tzinfo()

        now = to_local(self._clock.now(), tz)
        # Generators are consumed by normalization; only sized inputs report drops
        sized = raw_trades if isinstance(raw_trades, (list, tuple)) else None

        with analysis_context(as_of=now.isoformat()):
            records = normalize_trades(raw_trades, tz=tz)
            dropped = len(sized) - len(records) if sized is not None else 0
            aggregates = build_aggregates(records)
            enough = len(records) >= cfg.min_trades
            summary = build_summary(aggregates, records, min_trades=cfg.min_trades)
            risk = compute_risk_metrics(records, recent_window=cfg.coaching.recent_window)
            patterns = detect_patterns(records, aggregates, config=cfg.patterns)

            ideas: list[Idea] = []
            if summary is not None:
                ideas = generate_ideas(IdeaContext(
                    records=records,
                    aggregates=aggregates,
                    summary=summary,
                    now=now,
                    fmt=fmt,
                    config=cfg.ideas,
                ))

            tips = generate_tips(
                records, patterns, risk, config=cfg.coaching, formatter=fmt
            )

            logger.debug(
                "insights.analysed",
                trades=len(records),
                dropped=dropped,
                has_enough_data=enough,
                ideas=len(ideas),
                tips=len(tips),
            )

        return InsightBundle(
            aggregates=aggregates,
            summary=summary,
            ideas=tuple(ideas),
            tips=tuple(tips),
            patterns=patterns,
            risk=risk,
            has_enough_data=enough,
            total_trades=len(records),
            dropped_rows=dropped,
            meta={"as_of": now.isoformat()},
        )


def analyse_trades(
    raw_trades: Iterable[Any],
    *,
    formatter: Formatter | None = None,
    settings: InsightSettings | None = None,
    clock: IClock | None = None,
) -> InsightBundle:
    """Shortcut for ``InsightEngine(settings, clock).analyse(raw_trades, formatter)``."""
    return InsightEngine(settings, clock).analyse(raw_trades, formatter)
