"""Shared fixtures for the trade-insights test suite."""

from __future__ import annotations

from datetime import datetime

import pytest

from trade_insights.core.clock import FixedClock
from trade_insights.core.config import InsightSettings


@pytest.fixture
def settings():
    """Default settings pinned to the host zone."""
    return InsightSettings()


@pytest.fixture
def fixed_clock():
    return FixedClock(datetime(2024, 2, 1, 12, 0, 0))
