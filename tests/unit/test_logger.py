"""Test structured logging setup and per-analysis trace ids."""

import json
from datetime import datetime, timedelta

import structlog

from trade_insights import analyse_trades
from trade_insights.core.clock import FixedClock
from trade_insights.observability.logger import (
    _library_defaults,
    analysis_context,
    get_logger,
    get_trace_id,
    setup_logging,
)


class TestAnalysisContext:
    def test_fresh_trace_id_per_analysis(self):
        with analysis_context() as first:
            assert get_trace_id() == first
        with analysis_context() as second:
            assert get_trace_id() == second
        assert first != second

    def test_trace_id_restored(self):
        outer = get_trace_id()
        with analysis_context():
            pass
        assert get_trace_id() == outer

    def test_fields_bound_for_duration(self):
        with analysis_context(trades=3):
            assert structlog.contextvars.get_contextvars()["trades"] == 3
        assert "trades" not in structlog.contextvars.get_contextvars()


class TestSetupLogging:
    def test_json_lines_to_stderr(self, capsys):
        setup_logging("DEBUG", "json")
        with analysis_context(trades=2) as tid:
            get_logger("test.logger").info("insights.test", ideas=1)
        captured = capsys.readouterr()
        assert captured.out == ""
        line = json.loads(captured.err.strip().splitlines()[-1])
        assert line["event"] == "insights.test"
        assert line["trace_id"] == tid
        assert line["trades"] == 2
        assert line["level"] == "info"

    def test_level_filter(self, capsys):
        setup_logging("WARNING", "console")
        get_logger("test.filtered").info("hidden")
        assert "hidden" not in capsys.readouterr().err


class TestLibraryDefaults:
    def test_analyse_trades_leaves_stdout_empty(self, capsys):
        structlog.reset_defaults()
        _library_defaults()
        start = datetime(2024, 1, 8, 10)
        rows = [
            {"symbol": "BTC", "pnl": pnl, "entryTime": (start + timedelta(hours=i)).isoformat()}
            for i, pnl in enumerate([10, -5, 20, -5, 30, 15])
        ]
        bundle = analyse_trades(rows, clock=FixedClock(datetime(2024, 2, 1)))
        assert bundle.total_trades == 6
        assert capsys.readouterr().out == ""

    def test_defaults_route_through_stdlib(self):
        structlog.reset_defaults()
        _library_defaults()
        assert structlog.is_configured()
        config = structlog.get_config()
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)

    def test_explicit_setup_wins(self):
        setup_logging("WARNING", "json")
        _library_defaults()
        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert structlog.stdlib.add_logger_name in config["processors"]
