"""Raw journal row normalization.

The single validation gate between the persistence collaborator and the
analytics passes.  Rows arrive in whatever shape the journal stored
them (browser exports, CSV imports, broker sync) and leave as strict
:class:`TradeRecord` instances.

Rules:

- P&L: first of ``pnl`` / ``netProfit`` / ``profit`` that parses to a
  finite number, else 0.0.
- Entry time: ``entryTime``, else ``date``, else ``createdAt``.  The
  first *present* field decides; a corrupt ``entryTime`` is not rescued
  by ``createdAt``.
- Exit time: ``exitTime``, else ``exitDate`` / ``date`` / ``createdAt``,
  else the entry time.
- Symbol: any truthy value, stringified and stripped.
- Rows with an empty symbol or an unusable entry time are dropped.

Ambiguous day/month strings (``03/04/2024``) are not guessed at: only
ISO-8601 strings (including the compact ``YYYYMMDD`` date), epoch
numbers, numeric strings of at least ten integer digits (read as epochs)
and datetime objects are accepted.
Whatever the collaborator hands over in those shapes is trusted as-is.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any

from trade_insights.core.enums import TradeSide
from trade_insights.core.errors import ContractViolationError

from .record import TradeRecord

logger = logging.getLogger(__name__)

# Field aliases in lookup order
_PNL_FIELDS = (("pnl",), ("netProfit", "net_profit"), ("profit",))
_ENTRY_FIELDS = (("entryTime", "entry_time"), ("date",), ("createdAt", "created_at"))
_EXIT_FIELDS = (
    ("exitTime", "exit_time"),
    ("exitDate", "exit_date"),
    ("date",),
    ("createdAt", "created_at"),
)
_SIZE_FIELDS = ("quantity", "volume", "size", "lots", "qty")

_SIDE_MAP = {
    "long": TradeSide.LONG,
    "buy": TradeSide.LONG,
    "short": TradeSide.SHORT,
    "sell": TradeSide.SHORT,
}

# Epoch values above this are milliseconds (JS Date.now() style)
_EPOCH_MS_CUTOFF = 1e11
# Numeric strings shorter than this are not epochs (``"20240105"`` is a date)
_EPOCH_MIN_DIGITS = 10


# ---------------------------------------------------------------------- #
# Field access                                                             #
# ---------------------------------------------------------------------- #

def _get(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _first_present(row: Any, *names: str) -> Any:
    for name in names:
        value = _get(row, name)
        if _present(value):
            return value
    return None


# ---------------------------------------------------------------------- #
# Coercion                                                                 #
# ---------------------------------------------------------------------- #

def coerce_number(value: Any) -> float | None:
    """Parse *value* to a finite float, or None.  Booleans are rejected."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            result = float(value)
        except (InvalidOperation, OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert *dt* to naive wall-clock time in *tz* (host zone when None).

    Naive datetimes are assumed to already be local and pass through.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(tz).replace(tzinfo=None)


def _integer_digits(text: str) -> int:
    return len(text.lstrip("+-").split(".", 1)[0])


def _parse_iso(text: str, tz: tzinfo | None) -> datetime | None:
    if len(text) == 8 and text.isdigit():
        try:
            return datetime.strptime(text, "%Y%m%d")
        except ValueError:
            return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return to_local(datetime.fromisoformat(text), tz)
    except ValueError:
        return None


def coerce_timestamp(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """Parse *value* to a naive local datetime, or None if unusable."""
    if isinstance(value, datetime):
        return to_local(value, tz)
    if isinstance(value, date):
        return datetime.combine(value, time())

    epoch = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        epoch = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        number = coerce_number(text)
        if number is None or _integer_digits(text) < _EPOCH_MIN_DIGITS:
            return _parse_iso(text, tz)
        epoch = number
    else:
        return None

    if not math.isfinite(epoch):
        return None
    if abs(epoch) > _EPOCH_MS_CUTOFF:
        epoch /= 1000.0
    try:
        return to_local(datetime.fromtimestamp(epoch, tz=timezone.utc), tz)
    except (OverflowError, OSError, ValueError):
        return None


def coerce_side(value: Any) -> TradeSide:
    if isinstance(value, TradeSide):
        return value
    if isinstance(value, str):
        return _SIDE_MAP.get(value.strip().lower(), TradeSide.UNKNOWN)
    return TradeSide.UNKNOWN


def _positive(value: Any) -> float | None:
    number = coerce_number(value)
    if number is None or number <= 0:
        return None
    return number


def _resolve_time(row: Any, groups: tuple[tuple[str, ...], ...], tz) -> datetime | None:
    """Parse the first present field group; later groups are not consulted."""
    for names in groups:
        raw = _first_present(row, *names)
        if raw is not None:
            return coerce_timestamp(raw, tz)
    return None


# ---------------------------------------------------------------------- #
# Public API                                                               #
# ---------------------------------------------------------------------- #

def normalize_trade(row: Any, index: int = 0, *, tz: tzinfo | None = None) -> TradeRecord | None:
    """Normalize one raw row.  Returns None when the row must be excluded."""
    if row is None or isinstance(row, (str, bytes, int, float, bool)):
        return None

    symbol_raw = _get(row, "symbol")
    # Any truthy value is a symbol, so numeric tickers survive
    symbol = str(symbol_raw).strip() if symbol_raw and not isinstance(symbol_raw, bool) else ""
    if not symbol:
        return None

    entry_time = _resolve_time(row, _ENTRY_FIELDS, tz)
    if entry_time is None:
        return None
    exit_time = _resolve_time(row, _EXIT_FIELDS, tz)
    if exit_time is None:
        exit_time = entry_time

    pnl = 0.0
    for names in _PNL_FIELDS:
        number = coerce_number(_first_present(row, *names))
        if number is not None:
            pnl = number
            break

    trade_id = _get(row, "id")
    strategy = _get(row, "strategy")
    if isinstance(strategy, str):
        strategy = strategy.strip() or None
    elif strategy is not None:
        strategy = str(strategy)

    size = None
    for name in _SIZE_FIELDS:
        size = _positive(_get(row, name))
        if size is not None:
            break

    return TradeRecord(
        trade_id=str(trade_id) if _present(trade_id) else f"trade-{index}",
        symbol=symbol,
        side=coerce_side(_first_present(row, "side", "action")),
        pnl=pnl,
        entry_time=entry_time,
        exit_time=exit_time,
        strategy=strategy,
        size=size,
        entry_price=_positive(_first_present(row, "entryPrice", "entry_price")),
        exit_price=_positive(_first_present(row, "exitPrice", "exit_price")),
    )


def normalize_trades(raw_trades: Iterable[Any], *, tz: tzinfo | None = None) -> list[TradeRecord]:
    """Normalize a raw trade snapshot, preserving input order.

    Raises
    ------
    ContractViolationError
        *raw_trades* is not an iterable of rows (None, a number, a bare
        string or a single mapping).
    """
    if isinstance(raw_trades, (str, bytes, Mapping)):
        raise ContractViolationError(
            "normalizer",
            f"expected a sequence of trade rows, got {type(raw_trades).__name__}",
        )
    try:
        rows = iter(raw_trades)
    except TypeError as exc:
        raise ContractViolationError(
            "normalizer",
            f"expected a sequence of trade rows, got {type(raw_trades).__name__}",
        ) from exc

    records: list[TradeRecord] = []
    dropped = 0
    for index, row in enumerate(rows):
        record = normalize_trade(row, index, tz=tz)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.debug(
            "Dropped %d of %d trade rows (missing symbol or entry time)",
            dropped,
            dropped + len(records),
        )
    return records
