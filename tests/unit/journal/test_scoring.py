"""Tests for summary statistics, Trader Profile and risk metrics."""

from datetime import timedelta

import pytest

from trade_insights.core.enums import TradeSide
from trade_insights.journal.aggregation import DimensionBucket, build_aggregates
from trade_insights.journal.scoring import (
    DEFAULT_CONSISTENCY,
    build_summary,
    chronological,
    compute_risk_metrics,
    consistency_score,
    max_drawdown,
    pick_best,
    pick_worst,
    risk_reward_score,
    streaks,
    volume_score,
)

from .conftest import make_record, make_series


def _bucket(key, pnl, win_rate=50):
    return DimensionBucket(
        key=key, label=str(key), trade_count=2, win_count=1, loss_count=1,
        breakeven_count=0, pnl=pnl, win_rate=win_rate,
    )


class TestPickBestWorst:
    def test_tie_goes_to_first_in_iteration_order(self):
        first, second = _bucket("A", 100), _bucket("B", 100)
        assert pick_best([first, second]) is first
        assert pick_worst([first, second]) is first

    def test_custom_metric(self):
        low, high = _bucket("A", 500, win_rate=40), _bucket("B", 10, win_rate=70)
        assert pick_best([low, high], lambda b: b.win_rate) is high

    def test_empty(self):
        assert pick_best([]) is None
        assert pick_worst([]) is None


class TestProfileAxes:
    def test_risk_reward_score(self):
        assert risk_reward_score(300, 100) == 100
        assert risk_reward_score(150, 100) == 50
        assert risk_reward_score(900, 100) == 100  # capped
        assert risk_reward_score(100, 0) == 0

    def test_consistency_needs_two_days(self):
        assert consistency_score([50.0]) == DEFAULT_CONSISTENCY
        assert consistency_score([]) == DEFAULT_CONSISTENCY

    def test_consistency_identical_days_is_perfect(self):
        assert consistency_score([20.0, 20.0, 20.0]) == 100

    def test_consistency_zero_mean_hits_floor(self):
        # CV is taken as 5 -> 100 - 150 -> clamped to 10
        assert consistency_score([50.0, -50.0]) == 10

    def test_consistency_formula(self):
        # mean 20, population std 10 -> cv 0.5 -> 100 - 15 = 85
        assert consistency_score([10.0, 30.0]) == 85

    def test_volume_score(self):
        assert volume_score(5, 1) == 100
        assert volume_score(10, 4) == 50
        assert volume_score(3, 0) == 60  # weeks floor of 1


class TestBuildSummary:
    def test_none_below_threshold(self):
        records = make_series([10, -5, 10, -5])
        assert build_summary(build_aggregates(records), records) is None

    def test_threshold_is_configurable(self):
        records = make_series([10, -5])
        assert build_summary(build_aggregates(records), records, min_trades=2) is not None

    def test_headline_stats(self):
        records = make_series([100, 200, -50, -100, 0])
        summary = build_summary(build_aggregates(records), records)
        assert summary.trade_count == 5
        assert summary.win_count == 2
        assert summary.loss_count == 2
        assert summary.win_rate == 40
        assert summary.total_pnl == 150
        assert summary.avg_win == 150
        assert summary.avg_loss == 75
        assert summary.risk_reward == 2.0

    def test_profile_has_six_bounded_axes(self):
        records = make_series([100, -20, 40, -60, 80, 10], step=timedelta(days=1))
        summary = build_summary(build_aggregates(records), records)
        names = [a.metric for a in summary.trader_profile]
        assert names == ["Win Rate", "R:R", "Consistency", "Volume", "Best Day", "Direction"]
        assert all(0 <= a.value <= a.full_mark == 100 for a in summary.trader_profile)
        assert summary.profile_value("Win Rate") == summary.win_rate

    def test_win_direction_uses_win_rate(self, base_time):
        records = [
            make_record(pnl=1000, side=TradeSide.LONG, entry_time=base_time),
            make_record(pnl=-1, side=TradeSide.LONG, entry_time=base_time),
            make_record(pnl=5, side=TradeSide.SHORT, entry_time=base_time),
            make_record(pnl=5, side=TradeSide.SHORT, entry_time=base_time),
            make_record(pnl=-5, side=TradeSide.SHORT, entry_time=base_time),
        ]
        summary = build_summary(build_aggregates(records), records)
        assert summary.win_direction.label == "Short"
        assert summary.profile_value("Direction") == 67

    def test_unknown_profile_axis(self):
        records = make_series([1, 1, 1, 1, 1])
        summary = build_summary(build_aggregates(records), records)
        with pytest.raises(KeyError):
            summary.profile_value("Luck")


class TestDrawdownAndStreaks:
    def test_drawdown_from_peak(self):
        assert max_drawdown([100, -30, -50, 20, -60]) == 120

    def test_opening_losses_count(self):
        assert max_drawdown([-40, 10]) == 40

    def test_empty(self):
        assert max_drawdown([]) == 0.0

    def test_streaks(self):
        assert streaks([1, 1, -1, -1, -1]) == (-3, 2, 3)
        assert streaks([1, 1, 1]) == (3, 3, 0)
        assert streaks([1, -1, 0]) == (0, 1, 1)


class TestRiskMetrics:
    def test_empty(self):
        metrics = compute_risk_metrics([])
        assert metrics.trade_count == 0
        assert metrics.most_traded_symbol is None

    def test_profit_factor(self):
        metrics = compute_risk_metrics(make_series([300, -100, 100, -100]))
        assert metrics.gross_profit == 400
        assert metrics.gross_loss == 200
        assert metrics.profit_factor == 2.0
        assert metrics.risk_reward == 2.0

    def test_profit_factor_without_losses_is_none(self):
        assert compute_risk_metrics(make_series([10, 20])).profit_factor is None

    def test_chronological_order_drives_streaks(self, base_time):
        records = [
            make_record(pnl=-10, entry_time=base_time + timedelta(hours=2)),
            make_record(pnl=10, entry_time=base_time),
            make_record(pnl=10, entry_time=base_time + timedelta(hours=1)),
        ]
        assert [r.pnl for r in chronological(records)] == [10, 10, -10]
        metrics = compute_risk_metrics(records)
        assert metrics.current_streak == -1
        assert metrics.max_win_streak == 2

    def test_recent_window(self):
        metrics = compute_risk_metrics(make_series([-1] * 10 + [1] * 5), recent_window=5)
        assert metrics.recent_win_rate == 100.0
        assert metrics.win_rate == pytest.approx(100 / 3)

    def test_largest_loss_ratio(self):
        metrics = compute_risk_metrics(make_series([-10, -10, -40]))
        assert metrics.largest_loss_ratio == pytest.approx(2.0)

    def test_most_traded_first_seen_wins_ties(self, base_time):
        records = [
            make_record("ETH", entry_time=base_time),
            make_record("BTC", entry_time=base_time + timedelta(hours=1)),
        ]
        assert compute_risk_metrics(records).most_traded_symbol == "ETH"

    def test_sharpe_proxy(self):
        # mean 0, any spread -> 0
        assert compute_risk_metrics(make_series([10, -10])).sharpe_proxy == 0.0
        # mean 20, std 10
        assert compute_risk_metrics(make_series([10, 30])).sharpe_proxy == pytest.approx(2.0)

    def test_to_dict_rounds(self):
        data = compute_risk_metrics(make_series([10, -3])).to_dict()
        assert data["profit_factor"] == 3.33
        assert data["win_rate"] == 50.0
