"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.

Every threshold the engine applies lives here with its documented
default, so a journal operator can tune noise levels without code
changes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

# Fewer usable records than this and the engine reports "insufficient data".
MIN_TRADES_FOR_SUMMARY = 5


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class PatternConfig(BaseModel):
    min_trades: int = 5
    overtrading_daily_limit: int = 10  # More than this per day = overtrading
    revenge_window_minutes: float = 30.0
    revenge_size_multiplier: float = 1.5
    fomo_lookback: int = 10
    fomo_move_pct: float = 0.05  # 5% entry->exit move
    fomo_min_count: int = 3  # More than this in the lookback = FOMO
    sizing_cv_threshold: float = 0.5
    sizing_min_trades: int = 5  # More than this many sized trades required
    emotional_min_followups: int = 3  # More than this many follow-ups required
    tilt_min_streak: int = 3
    tilt_escalation: float = 1.5
    timing_min_trades: int = 2  # Per-bucket minimum for best/worst timing
    session_bias_share: float = 0.6


class IdeaConfig(BaseModel):
    direction_edge_min_gap: int = 10  # Win-rate points
    worst_symbol_min_trades: int = 3
    revisit_lookback_days: int = 7
    revisit_min_trades: int = 2
    great_rr: float = 2.0


class CoachingConfig(BaseModel):
    recent_window: int = 10
    low_win_rate: float = 40.0
    high_win_rate: float = 60.0
    low_rr: float = 1.5
    high_rr: float = 2.0
    streak_length: int = 3
    recent_shift: float = 10.0  # Win-rate points vs overall
    small_sample: int = 20
    weak_profit_factor: float = 1.5
    strong_profit_factor: float = 2.0
    drawdown_ratio_warning: float = 0.5
    sharpe_strong: float = 0.5
    largest_loss_ratio_warning: float = 3.0


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return value


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class InsightSettings(BaseSettings):
    """Top-level engine settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    min_trades: int = Field(default=MIN_TRADES_FOR_SUMMARY, ge=1)
    # IANA zone for hour/weekday bucketing of aware timestamps.
    # None = the host's local zone.
    timezone: str | None = None

    patterns: PatternConfig = Field(default_factory=PatternConfig)
    ideas: IdeaConfig = Field(default_factory=IdeaConfig)
    coaching: CoachingConfig = Field(default_factory=CoachingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "TRADE_INSIGHTS_", "env_nested_delimiter": "__"}

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    def tzinfo(self):
        """Resolved tzinfo, or None for the host's local zone."""
        if self.timezone is None:
            return None
        from zoneinfo import ZoneInfo

        return ZoneInfo(self.timezone)


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> InsightSettings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: the file is missing or the merged values fail validation.
    """
    from .errors import ConfigError

    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        import tomli

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        data.update(overrides)

    try:
        return InsightSettings(**data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
