"""CLI entry point for the trade insights engine."""

from __future__ import annotations

import json
from datetime import datetime

import click

from .core.clock import FixedClock, IClock, WallClock
from .core.config import load_settings
from .core.errors import InsightError
from .journal.engine import InsightBundle, InsightEngine
from .observability.logger import setup_logging


def _render_text(bundle: InsightBundle) -> str:
    lines = [f"Trades analysed: {bundle.total_trades} (dropped {bundle.dropped_rows})"]
    if not bundle.has_enough_data or bundle.summary is None:
        lines.append("Not enough trades for a summary yet.")
    else:
        s = bundle.summary
        lines.append(
            f"Win rate {s.win_rate}%  ({s.win_count}W / {s.loss_count}L)  "
            f"Total P&L {s.total_pnl:,.2f}"
        )
        lines.append("Trader profile:")
        for axis in s.trader_profile:
            lines.append(f"  {axis.metric:<12} {axis.value:>3}")
        if bundle.ideas:
            lines.append("Ideas:")
            for idea in bundle.ideas:
                lines.append(f"  [{idea.sentiment.value}] {idea.title}: {idea.insight}")
    lines.append("Coaching:")
    for tip in bundle.tips:
        lines.append(f"  [{tip.severity.value}] {tip.title}: {tip.message}")
    return "\n".join(lines)


@click.group()
def main() -> None:
    """Trade Journal Insights."""


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", default=None, help="Config file path")
@click.option("--as-of", "as_of", default=None, help="Pin 'now' (ISO-8601) for reproducible output")
@click.option(
    "--format", "output_format",
    type=click.Choice(["json", "text"]), default="json", help="Output format",
)
def analyse(path: str, config: str | None, as_of: str | None, output_format: str) -> None:
    """Analyse a JSON array of journal rows."""
    try:
        settings = load_settings(config_path=config)
    except InsightError as exc:
        raise click.ClickException(str(exc)) from exc

    setup_logging(settings.observability.log_level, settings.observability.log_format)

    clock: IClock = WallClock()
    if as_of:
        try:
            clock = FixedClock(datetime.fromisoformat(as_of.replace("Z", "+00:00")))
        except ValueError as exc:
            raise click.BadParameter(f"not an ISO-8601 timestamp: {as_of}") from exc

    with open(path, encoding="utf-8") as f:
        try:
            rows = json.load(f)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid JSON in {path}: {exc}") from exc

    try:
        bundle = InsightEngine(settings, clock).analyse(rows)
    except InsightError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format == "json":
        click.echo(json.dumps(bundle.to_dict(), indent=2))
    else:
        click.echo(_render_text(bundle))


if __name__ == "__main__":
    main()
