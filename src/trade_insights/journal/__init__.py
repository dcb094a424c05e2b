"""Trade Journal Insights: analytics, ideas and coaching over a trade log.

Turns an unordered collection of raw journal rows into aggregated
performance views, a summary with a six-axis Trader Profile, behavioral
pattern flags, actionable trade ideas and ranked coaching tips.

Key components
--------------
**Ingestion**

TradeRecord        Canonical, validated trade
normalize_trades   Raw rows -> TradeRecords (invalid rows dropped)

**Analytics**

build_aggregates     Per-instrument/hour/weekday/direction/strategy/week/day buckets
build_summary        SummaryStats + Trader Profile (None below threshold)
compute_risk_metrics Profit factor, drawdown, Sharpe proxy, streaks
detect_patterns      Overtrading, revenge, FOMO, sizing, emotional, tilt, timing

**Advice**

generate_ideas     Rule-based trade ideas
generate_tips      Severity-ranked coaching tips

**Orchestration**

InsightEngine      One call from raw rows to an InsightBundle
"""

from .aggregation import Aggregates, DimensionBucket, build_aggregates
from .coaching import CoachingTip, generate_tips
from .engine import InsightBundle, InsightEngine, analyse_trades
from .ideas import Idea, IdeaContext, IdeaRule, format_currency, generate_ideas
from .normalizer import normalize_trade, normalize_trades
from .patterns import BehavioralPatterns, detect_patterns
from .record import TradeOutcome, TradeRecord
from .scoring import (
    ProfileAxis,
    RiskMetrics,
    SummaryStats,
    build_summary,
    compute_risk_metrics,
)

__all__ = [
    "Aggregates",
    "DimensionBucket",
    "build_aggregates",
    "CoachingTip",
    "generate_tips",
    "InsightBundle",
    "InsightEngine",
    "analyse_trades",
    "Idea",
    "IdeaContext",
    "IdeaRule",
    "format_currency",
    "generate_ideas",
    "normalize_trade",
    "normalize_trades",
    "BehavioralPatterns",
    "detect_patterns",
    "TradeOutcome",
    "TradeRecord",
    "ProfileAxis",
    "RiskMetrics",
    "SummaryStats",
    "build_summary",
    "compute_risk_metrics",
]
