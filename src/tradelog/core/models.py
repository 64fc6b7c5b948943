"""Core domain models used across the journal engine.

These are the canonical "truth models" for the system.  Inputs (trades,
journals, settings) are frozen snapshots; the engine never mutates them
and always returns new derived values.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import (
    AlertCategory,
    AlertType,
    AmountUnit,
    BreakevenType,
    CustomFieldType,
    Direction,
    Impact,
    JournalType,
    KeywordKind,
    NewsImpact,
    Outcome,
    RuleUnit,
    ScoreColor,
    ScoreImpact,
    SentimentStage,
    TradeResult,
    TradeStatus,
)

_FROZEN = {"frozen": True}

# Trade times are naive New York wall clock, the clock sessions are defined on
TRADING_TZ = ZoneInfo("America/New_York")


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

class PairConfig(BaseModel):
    """Pricing profile of one instrument."""

    pip_size: float = Field(0.0001, gt=0)
    pip_value: float = 10.0  # account currency per pip per standard lot
    spread: float = 0.0  # in pips

    model_config = _FROZEN


OTHER_PAIR = "Other"


# ---------------------------------------------------------------------------
# Analysis taxonomy
# ---------------------------------------------------------------------------

class ModifierOption(BaseModel):
    value: str
    label: str = ""

    model_config = _FROZEN


class Modifier(BaseModel):
    key: str
    label: str = ""
    options: list[ModifierOption] = Field(default_factory=list)
    type: Literal["select", "text"] = "select"

    model_config = _FROZEN


class AnalysisOption(BaseModel):
    id: str
    value: str
    modifiers: list[Modifier] = Field(default_factory=list)

    model_config = _FROZEN


class AnalysisSubCategory(BaseModel):
    id: str  # "bias", "volatility", "zone", ...
    title: str = ""
    options: list[AnalysisOption] = Field(default_factory=list)
    modifiers: list[Modifier] = Field(default_factory=list)

    model_config = _FROZEN

    def find_option(self, option_id: str) -> AnalysisOption | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class AnalysisCategory(BaseModel):
    id: str
    title: str = ""
    is_single_choice: bool = False
    sub_categories: list[AnalysisSubCategory] = Field(default_factory=list)

    model_config = _FROZEN


class AnalysisSelection(BaseModel):
    """One selected analysis option, with free-form modifier values.

    Legacy inputs are accepted: a bare option id string, or a
    ``{"value": id, <modifier>: <value>, ...}`` mapping.
    """

    option_id: str
    modifiers: dict[str, str] = Field(default_factory=dict)

    model_config = _FROZEN

    @model_validator(mode="before")
    @classmethod
    def _coerce_legacy(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"option_id": data}
        if isinstance(data, dict) and "option_id" not in data and "value" in data:
            modifiers = {
                str(k): str(v)
                for k, v in data.items()
                if k != "value" and v is not None
            }
            return {"option_id": data["value"], "modifiers": modifiers}
        return data


# timeframe -> sub-category id -> selections
AnalysisSelections = dict[str, dict[str, list[AnalysisSelection]]]


# ---------------------------------------------------------------------------
# Strategy rule requirements (tagged union)
# ---------------------------------------------------------------------------

class OptionRule(BaseModel):
    """Requires a plain analysis option."""

    kind: Literal["option"] = "option"
    value: str

    model_config = _FROZEN

    @property
    def option_id(self) -> str:
        return self.value


class PoiRule(BaseModel):
    """Requires a point-of-interest option, optionally swept/broken/picked."""

    kind: Literal["poi"] = "poi"
    value: str
    modifier: Literal["Swept", "Break", "Pick"] | None = None

    model_config = _FROZEN

    @property
    def option_id(self) -> str:
        return self.value


class ZoneRule(BaseModel):
    """Requires a zone option, optionally qualified (extreme, decisive...)."""

    kind: Literal["zone"] = "zone"
    value: str
    modifier: Literal["Extreme", "Decisive", "Start"] | None = None

    model_config = _FROZEN

    @property
    def option_id(self) -> str:
        return self.value


class IndicatorRule(BaseModel):
    """Requires an indicator option compared against a number."""

    kind: Literal["indicator"] = "indicator"
    value: str
    condition: Literal[">", "<", "="] = "="
    num_value: str = ""

    model_config = _FROZEN

    @property
    def option_id(self) -> str:
        return self.value


RuleRequirement = Annotated[
    Union[OptionRule, PoiRule, ZoneRule, IndicatorRule],
    Field(discriminator="kind"),
]

_POI_MODIFIERS = {"Swept", "Break", "Pick"}


def _tag_rule(raw: Any) -> Any:
    """Attach a ``kind`` tag to legacy untagged rule shapes."""
    if isinstance(raw, str):
        return {"kind": "option", "value": raw}
    if isinstance(raw, dict) and "kind" not in raw:
        if "condition" in raw:
            return {**raw, "kind": "indicator"}
        if "modifier" in raw:
            kind = "poi" if raw.get("modifier") in _POI_MODIFIERS else "zone"
            return {**raw, "kind": kind}
        return {**raw, "kind": "option"}
    return raw


class RuleCombination(BaseModel):
    """Per-timeframe requirements: sub-category id -> required options."""

    timeframe: str
    selected_rules: dict[str, list[RuleRequirement]] = Field(default_factory=dict)

    model_config = _FROZEN

    @field_validator("selected_rules", mode="before")
    @classmethod
    def _tag_legacy_rules(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {
            sub_cat: [_tag_rule(r) for r in (rules or [])]
            for sub_cat, rules in v.items()
        }

    def required_option_ids(self) -> set[str]:
        return {
            rule.option_id
            for rules in self.selected_rules.values()
            for rule in rules
        }


class Setup(BaseModel):
    id: str = ""
    name: str
    rules: list[RuleCombination] = Field(default_factory=list)

    model_config = _FROZEN


class Strategy(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    rules: list[RuleCombination] = Field(default_factory=list)
    setups: list[Setup] = Field(default_factory=list)
    analysis_configurations: list[AnalysisCategory] | None = None

    model_config = _FROZEN

    def required_rule_ids(self) -> set[str]:
        """Every option id referenced by the strategy's rule combinations."""
        ids: set[str] = set()
        for combination in self.rules:
            ids |= combination.required_option_ids()
        return ids


# ---------------------------------------------------------------------------
# Custom fields & keyword table
# ---------------------------------------------------------------------------

class CustomFieldOption(BaseModel):
    value: str
    impact: ScoreImpact | None = None

    model_config = _FROZEN


class CustomField(BaseModel):
    id: str
    title: str = ""
    type: CustomFieldType = CustomFieldType.LIST
    allow_multiple: bool = False
    options: list[CustomFieldOption] = Field(default_factory=list)

    model_config = _FROZEN

    @property
    def is_selectable(self) -> bool:
        return self.type in (CustomFieldType.LIST, CustomFieldType.BUTTON)

    def find_option(self, value: str) -> CustomFieldOption | None:
        for option in self.options:
            if option.value == value:
                return option
        return None


class KeywordScore(BaseModel):
    keyword: str
    impact: Impact
    kind: KeywordKind = KeywordKind.SENTIMENT

    model_config = _FROZEN


class AppSettings(BaseModel):
    """Application-wide settings the engine reads."""

    pairs_config: dict[str, PairConfig] = Field(
        default_factory=lambda: {OTHER_PAIR: PairConfig(pip_size=0.0001, pip_value=10, spread=2.0)}
    )
    analysis_configurations: list[AnalysisCategory] = Field(default_factory=list)
    custom_fields: list[CustomField] = Field(default_factory=list)
    keyword_scores: list[KeywordScore] = Field(default_factory=list)

    model_config = _FROZEN

    def find_custom_field(self, field_id: str) -> CustomField | None:
        for custom_field in self.custom_fields:
            if custom_field.id == field_id:
                return custom_field
        return None

    def find_keyword(
        self, keyword: str, kind: KeywordKind | None = None
    ) -> KeywordScore | None:
        """Case-insensitive keyword lookup, optionally restricted by kind."""
        needle = keyword.lower()
        for entry in self.keyword_scores:
            if entry.keyword.lower() != needle:
                continue
            if kind is None or entry.kind == kind:
                return entry
        return None


# ---------------------------------------------------------------------------
# Trading plan & journal rules
# ---------------------------------------------------------------------------

class TimeWindow(BaseModel):
    """A ``[start, end)`` wall-clock window; ``end < start`` wraps midnight."""

    start: str  # "HH:MM"
    end: str

    model_config = _FROZEN


class TradingPlan(BaseModel):
    instruments: list[str] = Field(default_factory=list)
    risk_per_trade: float = 1.0
    risk_unit: AmountUnit = AmountUnit.PERCENT
    daily_loss_limit: float = 0.0  # % of capital
    weekly_loss_limit: float = 0.0  # % of capital
    monthly_loss_limit: float = 0.0
    monthly_loss_limit_unit: AmountUnit = AmountUnit.PERCENT
    daily_target: float = 0.0
    daily_target_unit: AmountUnit = AmountUnit.PERCENT
    weekly_profit_limit: float = 0.0
    weekly_profit_limit_unit: AmountUnit = AmountUnit.PERCENT
    monthly_profit_limit: float = 0.0
    monthly_profit_limit_unit: AmountUnit = AmountUnit.PERCENT
    max_trades_per_day: int = 0
    min_risk_to_reward: float = 0.0
    active_hours: list[TimeWindow] = Field(default_factory=list)
    no_trade_zones: list[TimeWindow] = Field(default_factory=list)

    model_config = _FROZEN


class Rule(BaseModel):
    value: float = 0.0
    type: RuleUnit = RuleUnit.PERCENTAGE
    enabled: bool = False

    model_config = _FROZEN

    def limit(self, capital: float) -> float:
        if self.type == RuleUnit.AMOUNT:
            return self.value
        return capital * self.value / 100


class JournalRules(BaseModel):
    max_drawdown: Rule = Field(default_factory=lambda: Rule(value=10.0, enabled=True))
    daily_drawdown: Rule = Field(default_factory=lambda: Rule(value=5.0, enabled=True))

    model_config = _FROZEN


# ---------------------------------------------------------------------------
# Trade
# ---------------------------------------------------------------------------

class PartialClose(BaseModel):
    lot_size: float = Field(..., ge=0)
    price: float

    model_config = _FROZEN


class LayeredEntry(BaseModel):
    """An additional tranche opened at its own price."""

    lot_size: float = Field(..., ge=0)
    entry_price: float
    close_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None

    model_config = _FROZEN


class NewsEventSelection(BaseModel):
    id: str = ""
    name: str
    currency: str = ""
    time: str = ""
    impact: NewsImpact | None = None

    model_config = _FROZEN


class BiasDeclaration(BaseModel):
    """A declared higher-timeframe market structure, e.g. Bearish on 4H."""

    structure: str
    timeframe: str = ""

    model_config = _FROZEN

    def conflicts_with(self, direction: Direction) -> bool:
        return (
            (direction == Direction.BUY and self.structure == "Bearish")
            or (direction == Direction.SELL and self.structure == "Bullish")
        )


class DisciplineScore(BaseModel):
    value: float = 0.0
    remark: str = "N/A"
    color: ScoreColor = ScoreColor.GREY

    model_config = _FROZEN


class TiltScore(BaseModel):
    final_tilt: float = 0.0
    score_component: float = 0.0
    sentiment_component: float = 0.0
    custom_field_component: float = 0.0
    r_component: float = 0.0
    result_component: float = 0.0
    pl_component: float = 0.0

    model_config = _FROZEN


class AutoCalculated(BaseModel):
    """Derived block of a trade.  Always recomputable, never hand-edited."""

    session: str = "N/A"
    zone: str = "N/A"
    result: TradeResult = TradeResult.RUNNING
    status: TradeStatus = TradeStatus.OPEN
    outcome: Outcome = Outcome.NEUTRAL
    pips: float = 0.0
    gross_pl: float = 0.0
    pl: float = 0.0
    rr: float = 0.0
    realized_r: float = 0.0
    risk_amount: float = 0.0
    # Money the main position makes at its take-profit
    reward_amount: float = 0.0
    risk_percent: float = 0.0
    gain_percent: float = 0.0
    holding_time: str = "Open"
    duration_minutes: float = 0.0
    score: DisciplineScore = Field(default_factory=DisciplineScore)
    tilt: TiltScore = Field(default_factory=TiltScore)
    matched_setups: list[str] = Field(default_factory=list)
    news_impact: NewsImpact | None = None
    mfe_pips: float = 0.0
    mae_pips: float = 0.0
    spread_cost: float = 0.0
    commission_cost: float = 0.0
    swap_cost: float = 0.0
    expectancy: float = 0.0

    model_config = _FROZEN

    @classmethod
    def fallback(cls) -> AutoCalculated:
        """Zeroed metrics used when computation cannot proceed."""
        return cls()


class Trade(BaseModel):
    """A journaled trade: user-entered fields plus the derived ``auto`` block."""

    id: str
    symbol: str
    direction: Direction
    lot_size: float = Field(0.0, ge=0)
    entry_price: float
    close_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    opened_at: datetime
    closed_at: datetime | None = None

    partials: list[PartialClose] = Field(default_factory=list)
    layers: list[LayeredEntry] = Field(default_factory=list)
    breakeven: BreakevenType = BreakevenType.NONE
    commission: float = 0.0
    swap: float = 0.0

    analysis_selections: AnalysisSelections = Field(default_factory=dict)
    sentiment: dict[SentimentStage, list[str]] = Field(default_factory=dict)
    custom_stats: dict[str, list[str]] = Field(default_factory=dict)
    news_events: list[NewsEventSelection] = Field(default_factory=list)
    selected_rule_ids: list[str] = Field(default_factory=list)
    strategy: str | None = None
    bias: list[BiasDeclaration] = Field(default_factory=list)

    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    lessons_learned: str = ""
    images: list[str] = Field(default_factory=list)
    images_by_timeframe: dict[str, list[str]] = Field(default_factory=dict)

    mfe_price: float | None = None
    mae_price: float | None = None
    was_tp_hit: bool | None = None

    is_missing: bool = False
    avg_score_at_time: float | None = None
    avg_pl_at_time: float | None = None

    auto: AutoCalculated | None = None

    model_config = _FROZEN

    @field_validator("opened_at", "closed_at")
    @classmethod
    def _to_trading_wall_clock(cls, v: datetime | None) -> datetime | None:
        if v is None or v.tzinfo is None:
            return v
        return v.astimezone(TRADING_TZ).replace(tzinfo=None)

    @field_validator("custom_stats", mode="before")
    @classmethod
    def _listify_custom_stats(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {
            k: [str(x) for x in val] if isinstance(val, (list, tuple)) else [str(val)]
            for k, val in v.items()
            if val is not None
        }

    @model_validator(mode="after")
    def _partials_within_lot_size(self) -> Trade:
        closed = sum(p.lot_size for p in self.partials)
        if closed > self.lot_size + 1e-9:
            raise ValueError(
                f"partial closes ({closed}) exceed lot size ({self.lot_size})"
            )
        return self

    # ------------------------------------------------------------------ #
    # Convenience views                                                    #
    # ------------------------------------------------------------------ #

    @property
    def open_date(self) -> date:
        return self.opened_at.date()

    @property
    def is_closed(self) -> bool:
        return self.close_price is not None and self.close_price > 0

    @property
    def total_lots(self) -> float:
        """Main position plus all layered tranches."""
        return self.lot_size + sum(layer.lot_size for layer in self.layers)

    @property
    def all_sentiments(self) -> list[str]:
        """Selected sentiments in Before, During, After order."""
        return [
            s
            for stage in (SentimentStage.BEFORE, SentimentStage.DURING, SentimentStage.AFTER)
            for s in self.sentiment.get(stage, [])
        ]

    @property
    def image_count(self) -> int:
        return len(self.images) + sum(len(v) for v in self.images_by_timeframe.values())

    @property
    def conflicts_with_bias(self) -> bool:
        return any(b.conflicts_with(self.direction) for b in self.bias)

    def with_auto(self, auto: AutoCalculated) -> Trade:
        """Return a copy carrying a freshly computed ``auto`` block."""
        return self.model_copy(update={"auto": auto})


# ---------------------------------------------------------------------------
# Alerts & journal
# ---------------------------------------------------------------------------

class Alert(BaseModel):
    id: str
    category: AlertCategory
    type: AlertType
    message: str
    timestamp: datetime
    seen: bool = False
    trade_id: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    model_config = _FROZEN


class Journal(BaseModel):
    id: str = ""
    title: str = ""
    type: JournalType = JournalType.REAL
    capital: float = 0.0
    balance: float = 0.0
    trades: list[Trade] = Field(default_factory=list)
    plan: TradingPlan = Field(default_factory=TradingPlan)
    strategies: list[Strategy] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    rules: JournalRules = Field(default_factory=JournalRules)
    current_max_drawdown: float = 0.0

    model_config = _FROZEN

    @property
    def charges_swap(self) -> bool:
        return self.type in (JournalType.FUNDED, JournalType.COMPETITION)

    @property
    def live_trades(self) -> list[Trade]:
        """Trades that count toward statistics (placeholders excluded)."""
        return [t for t in self.trades if not t.is_missing]

    def find_strategy(self, name: str | None) -> Strategy | None:
        if not name:
            return None
        for strategy in self.strategies:
            if strategy.name == name:
                return strategy
        return None

    def find_trade(self, trade_id: str) -> Trade | None:
        for trade in self.trades:
            if trade.id == trade_id:
                return trade
        return None
