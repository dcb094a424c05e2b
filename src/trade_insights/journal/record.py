"""Canonical trade record: the core data model.

A TradeRecord is the one strict shape every analytics pass consumes.
It is produced only by :mod:`trade_insights.journal.normalizer`, which
is the single validation gate for loosely-typed journal rows.

Timestamps are naive local wall-clock datetimes so that hour-of-day and
weekday bucketing reflect when the trader actually sat at the desk.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from trade_insights.core.enums import TradeSide


class TradeOutcome(str, enum.Enum):
    """Win / loss / break-even classification.

    ``pnl > 0`` is a win, ``pnl < 0`` a loss, exactly zero is break-even
    and counts as neither in every metric.
    """

    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


@dataclass(frozen=True)
class TradeRecord:
    """Normalized record for one closed trade.

    Parameters
    ----------
    trade_id : str
        Identifier from the journal row, or a positional fallback.
    symbol : str
        Instrument symbol (never empty).
    side : TradeSide
        ``long``, ``short`` or ``unknown``.
    pnl : float
        Signed net result.  0.0 when the row carried no usable number.
    entry_time, exit_time : datetime
        Naive local timestamps.  ``exit_time`` is always set.
    """

    trade_id: str
    symbol: str
    side: TradeSide
    pnl: float
    entry_time: datetime
    exit_time: datetime
    strategy: str | None = None
    size: float | None = None
    entry_price: float | None = None
    exit_price: float | None = None

    @property
    def outcome(self) -> TradeOutcome:
        if self.pnl > 0:
            return TradeOutcome.WIN
        if self.pnl < 0:
            return TradeOutcome.LOSS
        return TradeOutcome.BREAKEVEN

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def is_loss(self) -> bool:
        return self.pnl < 0

    @property
    def price_move_pct(self) -> float | None:
        """Absolute entry→exit price move as a fraction of entry price."""
        if not self.entry_price or self.exit_price is None:
            return None
        return abs(self.exit_price - self.entry_price) / self.entry_price

    def to_dict(self) -> dict:
        """Export to a flat dictionary for logging / CLI output."""
        return {
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "pnl": self.pnl,
            "outcome": self.outcome.value,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "strategy": self.strategy,
            "size": self.size,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
        }
