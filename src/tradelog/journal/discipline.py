"""Discipline scoring of a single trade against the journal's plan.

The score is a running point tally.  Each check either credits points or
deducts them and, on a failure worth telling the trader about, records a
remark.  The tally is clamped to [0, 100] and banded into a colour.

Usage::

    score = score_discipline(
        trade, journal, settings, risk_amount=500.0, planned_rr=2.0,
    )
    print(score.value, score.remark)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date

from tradelog.core.config import ScoringConfig, default_settings
from tradelog.core.enums import (
    AmountUnit,
    Direction,
    Impact,
    KeywordKind,
    ScoreColor,
)
from tradelog.core.models import (
    AnalysisSubCategory,
    AppSettings,
    DisciplineScore,
    Journal,
    TimeWindow,
    Trade,
    TradingPlan,
)

from .pnl import calculate_pnl
from .pricing import normalize_symbol, resolve_pricing
from .sessions import parse_hhmm, time_in_range, to_minutes
from .taxonomy import taxonomy_for

logger = logging.getLogger(__name__)

DEFAULT_REMARK = "Excellent discipline!"

_TIMEFRAME_RE = re.compile(r"^\s*(\d+)\s*([A-Za-z]+)\s*$")

# Unit suffix -> minutes.  "M" alone is a month; lower-case "m" is minutes.
_TIMEFRAME_UNITS = {
    "m": 1,
    "min": 1,
    "h": 60,
    "d": 1440,
    "w": 10080,
    "M": 43200,
    "mo": 43200,
    "mn": 43200,
}


def timeframe_minutes(label: str) -> int | None:
    """Parse a timeframe label into minutes.

    Accepts ``"15m"``, ``"1h"``, ``"4H"``, ``"1D"``, ``"1W"``, ``"1M"``
    (month) and ``"HH:MM"``.  Returns ``None`` for anything else.
    """
    match = _TIMEFRAME_RE.match(label)
    if match:
        count, unit = int(match.group(1)), match.group(2)
        factor = _TIMEFRAME_UNITS.get(unit)
        if factor is None:
            factor = _TIMEFRAME_UNITS.get(unit.lower())
        return count * factor if factor is not None else None
    if ":" in label:
        try:
            return parse_hhmm(label)
        except ValueError:
            return None
    return None


def timeframe_points(label: str, config: ScoringConfig) -> float:
    """Points per checklist item on ``label``; longer horizons weigh more."""
    minutes = timeframe_minutes(label)
    if minutes is None:
        logger.debug("Unrecognised timeframe %r, using the lowest weight", label)
        return config.timeframe_steps[0][1] if config.timeframe_steps else 0.0
    for upper, points in config.timeframe_steps:
        if minutes <= upper:
            return points
    return config.timeframe_max_points


def score_color(value: float, config: ScoringConfig) -> ScoreColor:
    if value >= config.green_threshold:
        return ScoreColor.GREEN
    if value >= config.yellow_threshold:
        return ScoreColor.YELLOW
    return ScoreColor.RED


def plan_amount(value: float, unit: AmountUnit, capital: float) -> float:
    """Resolve a plan figure given in percent of capital or currency."""
    if unit == AmountUnit.PERCENT:
        return capital * value / 100
    return value


def _in_any_window(minutes: int, windows: list[TimeWindow]) -> bool:
    for window in windows:
        try:
            if time_in_range(minutes, window.start, window.end):
                return True
        except ValueError:
            logger.warning("Ignoring malformed plan window %s-%s", window.start, window.end)
    return False


@dataclass
class _ScoreSheet:
    """Running tally plus the remarks that explain deductions."""

    points: float = 0.0
    remarks: list[str] = field(default_factory=list)

    def credit(self, points: float) -> None:
        self.points += points

    def debit(self, points: float, remark: str | None = None) -> None:
        self.points -= points
        if remark:
            self.remarks.append(remark)


# ------------------------------------------------------------------ #
# Peer trades (same day / week / month)                                #
# ------------------------------------------------------------------ #

def trade_net_pl(trade: Trade, journal: Journal, app_settings: AppSettings) -> float:
    """Net P/L of another journal trade, preferring its stored auto block."""
    if trade.auto is not None:
        return trade.auto.pl
    pricing = resolve_pricing(trade.symbol, app_settings.pairs_config)
    return calculate_pnl(trade, pricing, charge_swap=journal.charges_swap).net_pl


def _peers(trade: Trade, journal: Journal, same_period) -> list[Trade]:
    return [
        t for t in journal.live_trades
        if t.id != trade.id and same_period(t.open_date, trade.open_date)
    ]


def _same_day(a: date, b: date) -> bool:
    return a == b


def _same_week(a: date, b: date) -> bool:
    return a.isocalendar()[:2] == b.isocalendar()[:2]


def _same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


# ------------------------------------------------------------------ #
# Individual checks                                                    #
# ------------------------------------------------------------------ #

def _check_risk(sheet: _ScoreSheet, plan: TradingPlan, capital: float,
                risk_amount: float, config: ScoringConfig) -> None:
    max_risk = plan_amount(plan.risk_per_trade, plan.risk_unit, capital)
    if risk_amount <= max_risk:
        sheet.credit(config.risk_pass)
    else:
        sheet.debit(config.risk_fail, "Exceeded max risk.")


def _check_time(sheet: _ScoreSheet, trade: Trade, plan: TradingPlan,
                config: ScoringConfig) -> None:
    minutes = to_minutes(trade.opened_at)
    if minutes is not None and _in_any_window(minutes, plan.no_trade_zones):
        sheet.debit(config.no_trade_zone_penalty, "Traded in no-trade zone.")
    elif minutes is not None and _in_any_window(minutes, plan.active_hours):
        sheet.credit(config.active_hours_bonus)
    else:
        sheet.credit(config.neutral_hours_bonus)


def _check_instrument(sheet: _ScoreSheet, trade: Trade, plan: TradingPlan,
                      config: ScoringConfig) -> None:
    allowed = {normalize_symbol(s) for s in plan.instruments}
    if normalize_symbol(trade.symbol) in allowed:
        sheet.credit(config.instrument_pass)
    else:
        sheet.debit(config.instrument_fail, "Pair not in plan.")


def _check_strategy_rules(sheet: _ScoreSheet, trade: Trade, journal: Journal,
                          config: ScoringConfig) -> None:
    strategy = journal.find_strategy(trade.strategy)
    if strategy is None:
        return
    required = strategy.required_rule_ids()
    if required <= set(trade.selected_rule_ids):
        sheet.credit(config.strategy_rules_pass)
    else:
        sheet.debit(config.strategy_rules_fail, "Missed one or more required strategy rules.")


def _check_selection(sheet: _ScoreSheet, direction: Direction, timeframe: str,
                     sub_category: AnalysisSubCategory, value: str, points: float) -> None:
    if sub_category.id == "bias":
        aligned = (
            (direction == Direction.BUY and value == "Bullish")
            or (direction == Direction.SELL and value == "Bearish")
        )
        opposed = (
            (direction == Direction.BUY and value == "Bearish")
            or (direction == Direction.SELL and value == "Bullish")
        )
        if aligned:
            sheet.credit(points)
        elif opposed:
            sheet.debit(points, f"Traded against {timeframe} {value} bias.")
    elif sub_category.id == "volatility":
        if value == "Low":
            sheet.debit(points, f"Traded in low volatility on {timeframe}.")
        else:
            sheet.credit(points)
    elif sub_category.id == "zone":
        if value == "Equilibrium":
            sheet.credit(points / 2)
        elif (
            (direction == Direction.BUY and value == "Discount")
            or (direction == Direction.SELL and value == "Premium")
        ):
            sheet.credit(points)
        else:
            sheet.debit(points, f"Traded from opposing {value} zone on {timeframe}.")
    else:
        sheet.credit(points)


def _check_analysis(sheet: _ScoreSheet, trade: Trade, journal: Journal,
                    app_settings: AppSettings, config: ScoringConfig) -> None:
    if not trade.analysis_selections:
        return
    taxonomy = taxonomy_for(
        app_settings.analysis_configurations, journal.find_strategy(trade.strategy)
    )
    for timeframe, by_sub_category in trade.analysis_selections.items():
        points = timeframe_points(timeframe, config)
        for sub_category_id, selections in by_sub_category.items():
            sub_category = taxonomy.get(sub_category_id)
            if sub_category is None:
                continue
            for selection in selections:
                option = sub_category.find_option(selection.option_id)
                if option is None:
                    continue
                _check_selection(
                    sheet, trade.direction, timeframe, sub_category, option.value, points
                )


def _check_sentiments(sheet: _ScoreSheet, trade: Trade, app_settings: AppSettings,
                      config: ScoringConfig) -> None:
    for sentiment in trade.all_sentiments:
        entry = app_settings.find_keyword(sentiment, KeywordKind.SENTIMENT)
        if entry is None:
            continue
        if entry.impact == Impact.POSITIVE:
            sheet.credit(config.sentiment_positive)
        else:
            sheet.debit(config.sentiment_negative, f"Negative sentiment: {sentiment}.")


def _check_custom_fields(sheet: _ScoreSheet, trade: Trade, app_settings: AppSettings,
                         config: ScoringConfig) -> None:
    for field_id, values in trade.custom_stats.items():
        definition = app_settings.find_custom_field(field_id)
        if definition is None or not definition.is_selectable:
            continue
        for value in values:
            option = definition.find_option(value)
            if option is None or option.impact is None:
                continue
            if option.impact.sign > 0:
                sheet.credit(config.custom_field_points)
            else:
                sheet.debit(config.custom_field_points)


def _check_journaling(sheet: _ScoreSheet, trade: Trade, config: ScoringConfig) -> None:
    sheet.credit(trade.image_count * config.points_per_image)
    if trade.mfe_price and trade.mae_price and trade.was_tp_hit is not None:
        sheet.credit(config.excursion_data_bonus)
    if len(trade.lessons_learned.strip()) > config.lessons_min_length:
        sheet.credit(config.lessons_bonus)
    else:
        sheet.debit(config.lessons_penalty)


def _check_plan_limits(sheet: _ScoreSheet, trade: Trade, journal: Journal,
                       app_settings: AppSettings, planned_rr: float,
                       config: ScoringConfig) -> None:
    plan = journal.plan
    capital = journal.capital
    pts = config.plan_limit_points

    if plan.min_risk_to_reward > 0:
        if planned_rr >= plan.min_risk_to_reward:
            sheet.credit(config.min_rr_points)
        else:
            sheet.debit(config.min_rr_points, "R:R below plan minimum.")

    day = _peers(trade, journal, _same_day)
    day_pl = sum(trade_net_pl(t, journal, app_settings) for t in day)

    target = plan_amount(plan.daily_target, plan.daily_target_unit, capital)
    if plan.daily_target > 0 and day_pl >= target:
        sheet.debit(pts, "Traded after hitting daily target.")
    else:
        sheet.credit(pts)

    loss_limit = plan_amount(plan.daily_loss_limit, AmountUnit.PERCENT, capital)
    if plan.daily_loss_limit > 0 and -day_pl >= loss_limit:
        sheet.debit(pts, "Traded after hitting daily loss limit.")
    else:
        sheet.credit(pts)

    if plan.max_trades_per_day > 0 and len(day) >= plan.max_trades_per_day:
        sheet.debit(pts, "Exceeded daily trade limit.")
    else:
        sheet.credit(pts)

    # Longer horizons only penalise; staying inside them earns nothing extra.
    periodic = (
        ("weekly", _same_week, plan.weekly_loss_limit, AmountUnit.PERCENT,
         plan.weekly_profit_limit, plan.weekly_profit_limit_unit),
        ("monthly", _same_month, plan.monthly_loss_limit, plan.monthly_loss_limit_unit,
         plan.monthly_profit_limit, plan.monthly_profit_limit_unit),
    )
    for label, same_period, loss_value, loss_unit, profit_value, profit_unit in periodic:
        if loss_value <= 0 and profit_value <= 0:
            continue
        period_pl = sum(
            trade_net_pl(t, journal, app_settings)
            for t in _peers(trade, journal, same_period)
        )
        if loss_value > 0 and -period_pl >= plan_amount(loss_value, loss_unit, capital):
            sheet.debit(pts, f"Traded after hitting {label} loss limit.")
        if profit_value > 0 and period_pl >= plan_amount(profit_value, profit_unit, capital):
            sheet.debit(pts, f"Traded after hitting {label} profit limit.")


# ------------------------------------------------------------------ #
# Public API                                                           #
# ------------------------------------------------------------------ #

def score_discipline(
    trade: Trade,
    journal: Journal,
    app_settings: AppSettings,
    *,
    risk_amount: float,
    planned_rr: float,
    config: ScoringConfig | None = None,
) -> DisciplineScore:
    """Score how closely ``trade`` followed the journal's plan.

    Parameters
    ----------
    trade : Trade
        The trade being scored.
    journal : Journal
        Supplies capital, plan, strategies and the peer trades used for
        the daily / weekly / monthly limit checks.
    app_settings : AppSettings
        Analysis taxonomy, keyword table and custom-field definitions.
    risk_amount : float
        Money at risk as computed by the risk calculator.
    planned_rr : float
        Planned reward-to-risk ratio.
    config : ScoringConfig, optional
        Point weights; defaults to the process settings.

    Returns
    -------
    DisciplineScore
        Value clamped to [0, 100], joined remarks and colour band.
    """
    config = config or default_settings().scoring
    plan = journal.plan
    sheet = _ScoreSheet()

    _check_risk(sheet, plan, journal.capital, risk_amount, config)
    _check_time(sheet, trade, plan, config)
    _check_instrument(sheet, trade, plan, config)
    _check_strategy_rules(sheet, trade, journal, config)
    _check_analysis(sheet, trade, journal, app_settings, config)
    _check_sentiments(sheet, trade, app_settings, config)
    _check_custom_fields(sheet, trade, app_settings, config)
    _check_journaling(sheet, trade, config)
    _check_plan_limits(sheet, trade, journal, app_settings, planned_rr, config)

    value = max(0.0, min(100.0, sheet.points))
    return DisciplineScore(
        value=value,
        remark=" ".join(sheet.remarks) if sheet.remarks else DEFAULT_REMARK,
        color=score_color(value, config),
    )
