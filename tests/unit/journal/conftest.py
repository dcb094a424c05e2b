"""Shared fixtures for journal tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from trade_insights.core.enums import TradeSide
from trade_insights.journal.record import TradeRecord


@pytest.fixture
def base_time():
    # 2024-01-01 was a Monday
    return datetime(2024, 1, 1, 12, 0, 0)


def make_raw_trade(
    symbol: str = "BTCUSDT",
    pnl: float | None = 100.0,
    entry_time: datetime | str | None = None,
    side: str = "long",
    **extra,
) -> dict:
    """Helper to create a raw journal row as a storage layer would hand it over."""
    when = entry_time or datetime(2024, 1, 1, 12, 0, 0)
    row = {
        "id": extra.pop("id", None),
        "symbol": symbol,
        "side": side,
        "entryTime": when.isoformat() if isinstance(when, datetime) else when,
    }
    if pnl is not None:
        row["pnl"] = pnl
    row.update(extra)
    return row


def make_record(
    symbol: str = "BTCUSDT",
    pnl: float = 100.0,
    entry_time: datetime | None = None,
    side: TradeSide = TradeSide.LONG,
    exit_time: datetime | None = None,
    strategy: str | None = None,
    size: float | None = None,
    entry_price: float | None = None,
    exit_price: float | None = None,
    trade_id: str = "t",
) -> TradeRecord:
    """Helper to create a normalized TradeRecord."""
    entry = entry_time or datetime(2024, 1, 1, 12, 0, 0)
    return TradeRecord(
        trade_id=trade_id,
        symbol=symbol,
        side=side,
        pnl=pnl,
        entry_time=entry,
        exit_time=exit_time or entry + timedelta(minutes=5),
        strategy=strategy,
        size=size,
        entry_price=entry_price,
        exit_price=exit_price,
    )


def make_series(
    pnls: list[float],
    start: datetime | None = None,
    step: timedelta = timedelta(hours=1),
    **kwargs,
) -> list[TradeRecord]:
    """Helper to create one record per P&L, *step* apart."""
    begin = start or datetime(2024, 1, 1, 12, 0, 0)
    return [
        make_record(pnl=pnl, entry_time=begin + i * step, trade_id=f"t{i}", **kwargs)
        for i, pnl in enumerate(pnls)
    ]
