"""Trade journal insights engine."""

from .journal.engine import InsightBundle, InsightEngine, analyse_trades

__all__ = ["InsightBundle", "InsightEngine", "analyse_trades"]
