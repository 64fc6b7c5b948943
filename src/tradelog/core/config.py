"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.

The defaults reproduce the journal's live scoring behaviour; every weight
and threshold can be tuned without code changes, e.g.::

    TRADELOG_ALERTS__PERIODIC_EVERY=20
    TRADELOG_SCORING__RISK_PASS=15
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class ScoringConfig(BaseModel):
    """Point weights of the discipline scorer."""

    risk_pass: float = 12
    risk_fail: float = 12
    no_trade_zone_penalty: float = 7
    active_hours_bonus: float = 7
    neutral_hours_bonus: float = 3
    instrument_pass: float = 6
    instrument_fail: float = 6
    strategy_rules_pass: float = 8
    strategy_rules_fail: float = 7
    # Timeframe step function: (max minutes, points); last step is open-ended
    timeframe_steps: list[tuple[int, float]] = Field(
        default_factory=lambda: [(10, 3), (60, 5), (480, 7)]
    )
    timeframe_max_points: float = 9
    sentiment_positive: float = 5
    sentiment_negative: float = 5
    custom_field_points: float = 3
    points_per_image: float = 2
    excursion_data_bonus: float = 2
    lessons_min_length: int = 10
    lessons_bonus: float = 5
    lessons_penalty: float = 3
    min_rr_points: float = 5
    plan_limit_points: float = 5
    green_threshold: float = 75
    yellow_threshold: float = 50


class TiltConfig(BaseModel):
    """Weights and caps of the tilt index."""

    score_weight: float = 0.30
    sentiment_weight: float = 0.20
    custom_field_weight: float = 0.20
    r_weight: float = 0.10
    result_weight: float = 0.10
    pl_weight: float = 0.10
    r_pivot: float = 1.5
    r_upper_cap: float = 5.0
    r_lower_cap: float = -3.0
    neutral_result: float = 0.1
    default_avg_score: float = 50.0
    # Aggregate view: average P/L as % of capital mapping to +1 / -1
    aggregate_pl_pct_max: float = 5.0
    aggregate_pl_pct_min: float = 2.5

    @model_validator(mode="after")
    def _caps_bracket_pivot(self) -> TiltConfig:
        if not self.r_lower_cap < self.r_pivot < self.r_upper_cap:
            raise ValueError("r_lower_cap < r_pivot < r_upper_cap must hold")
        return self


class AlertConfig(BaseModel):
    """Thresholds of the alert detectors."""

    periodic_every: int = Field(10, ge=1)
    streak_lengths: list[int] = Field(default_factory=lambda: [3, 5])
    largest_loss_min_losses: int = 5
    closed_before_tp_min_gap: float = 1.0
    bias_lookback: int = 30
    bias_min_samples: int = 10
    bias_win_rate_delta: float = 15.0
    risk_min_trades: int = 20
    risk_min_losses: int = 5
    risk_high_multiplier: float = 1.5
    risk_low_multiplier: float = 0.5
    profit_taking_min_trades: int = 15
    profit_taking_r: float = 1.5
    rule_breach_score: float = 70
    overconfidence_lot_multiplier: float = 1.5
    discipline_window: int = 20
    discipline_high_score: float = 90
    discipline_low_win_rate: float = 40
    discipline_low_score: float = 70
    discipline_profit_factor: float = 1.5
    best_setup_min_trades: int = 20
    best_setup_min_uses: int = 5
    best_setup_min_r: float = 1.5
    best_setup_max_share: float = 0.2
    weekday_min_trades: int = 30
    weekday_min_samples: int = 5
    weekday_loss_threshold: float = -100.0
    breakeven_window: int = 10
    breakeven_min_count: int = 4
    low_rr_min_trades: int = 20
    low_rr_threshold: float = 1.5


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class EngineSettings(BaseSettings):
    """Top-level engine settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    tilt: TiltConfig = Field(default_factory=TiltConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "TRADELOG_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> EngineSettings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
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

    return EngineSettings(**data)


_default_settings: EngineSettings | None = None


def default_settings() -> EngineSettings:
    """Process-wide settings built from the environment on first use."""
    global _default_settings
    if _default_settings is None:
        _default_settings = EngineSettings()
    return _default_settings
