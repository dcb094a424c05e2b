"""Tests for rule-based trade idea generation."""

from datetime import datetime, timedelta

import pytest

from trade_insights.core.config import IdeaConfig
from trade_insights.core.enums import Sentiment, TradeSide
from trade_insights.journal.aggregation import build_aggregates
from trade_insights.journal.ideas import (
    IDEA_RULES,
    Idea,
    IdeaContext,
    IdeaRule,
    evaluate_rule,
    format_currency,
    generate_ideas,
)
from trade_insights.journal.scoring import build_summary

from .conftest import make_record

NOW = datetime(2024, 2, 1, 12, 0, 0)


def _context(records, now=NOW, **kwargs) -> IdeaContext:
    aggregates = build_aggregates(records)
    summary = build_summary(aggregates, records, min_trades=1)
    return IdeaContext(records=records, aggregates=aggregates, summary=summary, now=now, **kwargs)


def _rule(name: str) -> IdeaRule:
    return next(r for r in IDEA_RULES if r.name == name)


def _ids(ideas) -> list[str]:
    return [i.id for i in ideas]


class TestFormatCurrency:
    def test_plain(self):
        assert format_currency(1234.5) == "$1,234.50"

    def test_signed(self):
        assert format_currency(1234.567, True) == "+$1,234.57"
        assert format_currency(-20, True) == "-$20.00"
        assert format_currency(0, True) == "$0.00"


class TestSymbolRules:
    def test_focus_on_best_symbol(self):
        records = [make_record("SOL", 300), make_record("BTC", 50)]
        idea = evaluate_rule(_rule("focus_best_symbol"), _context(records))
        assert idea == Idea(
            id="focus-best-symbol",
            title="Focus on SOL",
            insight=(
                "Consider increasing your SOL allocation. You win 100% of trades with "
                "+$300.00 total P&L. This is your strongest instrument."
            ),
            sentiment=Sentiment.POSITIVE,
        )

    def test_no_focus_when_best_is_losing(self):
        records = [make_record("SOL", -5), make_record("BTC", -50)]
        assert evaluate_rule(_rule("focus_best_symbol"), _context(records)) is None

    def test_reduce_worst_needs_three_trades(self):
        two = [make_record("DOGE", -10), make_record("DOGE", -10)]
        assert evaluate_rule(_rule("reduce_worst_symbol"), _context(two)) is None
        three = two + [make_record("DOGE", 5)]
        idea = evaluate_rule(_rule("reduce_worst_symbol"), _context(three))
        assert idea.title == "Reduce DOGE exposure"
        assert "$15.00" in idea.insight
        assert idea.sentiment == Sentiment.OPPORTUNITY

    def test_time_symbol_combo(self, base_time):
        records = [
            make_record("ETH", 100, base_time.replace(hour=9)),
            make_record("BTC", -20, base_time.replace(hour=15)),
        ]
        idea = evaluate_rule(_rule("time_symbol_combo"), _context(records))
        assert idea.title == "Trade ETH around 09:00"


class TestDirectionEdge:
    def _records(self, long_wins, short_wins, n=10):
        records = []
        for side, wins in ((TradeSide.LONG, long_wins), (TradeSide.SHORT, short_wins)):
            for i in range(n):
                records.append(make_record(pnl=10 if i < wins else -10, side=side))
        return records

    def test_scenario_long_bias(self):
        records = self._records(long_wins=8, short_wins=5)
        ctx = _context(records)
        assert ctx.summary.win_direction.label == "Long"
        assert ctx.summary.win_direction.win_rate == 80
        ideas = generate_ideas(ctx)
        edge = next(i for i in ideas if i.id == "direction-edge")
        assert edge.title == "Lean into long trades"
        assert "80%" in edge.insight and "50%" in edge.insight

    def test_short_side_recommended(self):
        idea = evaluate_rule(_rule("direction_edge"), _context(self._records(3, 7)))
        assert idea.title == "Lean into short trades"

    def test_small_gap_is_noise(self):
        # 60% vs 55%
        records = self._records(12, 11, n=20)
        assert evaluate_rule(_rule("direction_edge"), _context(records)) is None

    def test_needs_both_directions(self):
        records = [make_record(pnl=10, side=TradeSide.LONG) for _ in range(5)]
        assert evaluate_rule(_rule("direction_edge"), _context(records)) is None

    def test_gap_is_configurable(self):
        ctx = _context(self._records(12, 11, n=20), config=IdeaConfig(direction_edge_min_gap=5))
        assert evaluate_rule(_rule("direction_edge"), ctx) is not None


class TestStrategyRules:
    def test_double_down(self):
        records = [
            make_record(pnl=200, strategy="breakout"),
            make_record(pnl=-80, strategy="fade"),
            make_record(pnl=-20, strategy="news"),
        ]
        idea = evaluate_rule(_rule("stick_to_strategies"), _context(records))
        assert idea.title == 'Double down on "breakout"'
        assert '"fade"' in idea.insight

    def test_needs_a_loser(self):
        records = [make_record(pnl=200, strategy="a"), make_record(pnl=20, strategy="b")]
        assert evaluate_rule(_rule("stick_to_strategies"), _context(records)) is None


class TestRiskRewardRules:
    def test_let_winners_run(self):
        records = [make_record(pnl=50), make_record(pnl=-100)]
        idea = evaluate_rule(_rule("let_winners_run"), _context(records))
        assert "0.5:1" in idea.insight
        assert evaluate_rule(_rule("great_rr"), _context(records)) is None

    def test_great_rr(self):
        records = [make_record(pnl=300), make_record(pnl=-100)]
        idea = evaluate_rule(_rule("great_rr"), _context(records))
        assert idea.insight.startswith("3.0:1")
        assert evaluate_rule(_rule("let_winners_run"), _context(records)) is None

    def test_silent_without_losses(self):
        records = [make_record(pnl=300)]
        assert evaluate_rule(_rule("great_rr"), _context(records)) is None
        assert evaluate_rule(_rule("let_winners_run"), _context(records)) is None


class TestDaySchedule:
    def test_best_and_worst_day(self):
        monday = datetime(2024, 1, 1, 10)
        friday = datetime(2024, 1, 5, 10)
        records = [make_record(pnl=120, entry_time=monday), make_record(pnl=-40, entry_time=friday)]
        idea = evaluate_rule(_rule("day_schedule"), _context(records))
        assert idea.title == "Trade more on Mons"
        assert "Fris" in idea.insight
        assert idea.sentiment == Sentiment.NEUTRAL

    def test_no_losing_day(self):
        records = [make_record(pnl=10), make_record(pnl=5, entry_time=datetime(2024, 1, 2, 10))]
        assert evaluate_rule(_rule("day_schedule"), _context(records)) is None


class TestRevisit:
    def test_stale_profitable_symbol(self):
        old = NOW - timedelta(days=20)
        records = [
            make_record("ADA", 40, old),
            make_record("ADA", 10, old + timedelta(hours=1)),
            make_record("BTC", 500, NOW - timedelta(days=1)),
        ]
        idea = evaluate_rule(_rule("revisit_symbol"), _context(records))
        assert idea.id == "revisit-ADA"
        assert idea.title == "Revisit ADA"

    def test_recent_symbols_skipped(self):
        recent = NOW - timedelta(days=2)
        records = [make_record("ADA", 40, recent), make_record("ADA", 10, recent)]
        assert evaluate_rule(_rule("revisit_symbol"), _context(records)) is None

    def test_follows_the_clock(self):
        recent = NOW - timedelta(days=2)
        records = [make_record("ADA", 40, recent), make_record("ADA", 10, recent)]
        later = _context(records, now=NOW + timedelta(days=30))
        assert evaluate_rule(_rule("revisit_symbol"), later) is not None


class TestGenerateIdeas:
    def test_rule_order_kept(self):
        records = [
            make_record("SOL", 300, strategy="a"),
            make_record("DOGE", -30, strategy="b"),
            make_record("DOGE", -30, strategy="b"),
            make_record("DOGE", -30, strategy="b"),
        ]
        assert _ids(generate_ideas(_context(records))) == [
            "focus-best-symbol",
            "reduce-worst-symbol",
            "time-symbol-combo",
            "stick-to-strategies",
            "great-rr",
        ]

    def test_custom_formatter(self):
        records = [make_record("SOL", 300)]
        ideas = generate_ideas(_context(records, fmt=lambda amount, signed=False: "X"))
        assert "X total P&L" in ideas[0].insight

    def test_custom_rules(self):
        rule = IdeaRule(
            name="always",
            select=lambda ctx: {"n": len(ctx.records)},
            id="always",
            title="{n} trades",
            insight="Logged {n}.",
            sentiment=Sentiment.NEUTRAL,
        )
        ideas = generate_ideas(_context([make_record()]), rules=(rule, rule))
        assert _ids(ideas) == ["always"]

    @pytest.mark.parametrize("rule", IDEA_RULES, ids=lambda r: r.name)
    def test_every_rule_renders_to_dict(self, rule):
        records = [make_record("SOL", 300), make_record("SOL", -100)]
        idea = evaluate_rule(rule, _context(records, now=NOW + timedelta(days=365)))
        if idea is not None:
            assert set(idea.to_dict()) == {"id", "title", "insight", "sentiment"}
