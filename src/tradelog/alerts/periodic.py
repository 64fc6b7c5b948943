"""Detectors that run every N live trades.

These look for slower-moving patterns over the whole history or a recent
window and lean on the aggregate analytics for their figures.  None of
them is tied to the triggering trade, so their findings carry no trade id.
"""

from __future__ import annotations

from tradelog.core.config import AlertConfig
from tradelog.core.enums import AlertCategory, AlertType
from tradelog.core.models import AppSettings, Journal, Trade
from tradelog.journal.analytics import (
    GroupMetrics,
    bucket_by,
    calculate_group_metrics,
    weekday_name,
)
from tradelog.journal.pricing import default_pairs_config

from .base import Detector, Finding, insight

# Only pricing-independent group fields are read below
_SETTINGS = AppSettings(pairs_config=default_pairs_config())


def _metrics(trades: list[Trade], journal: Journal) -> GroupMetrics:
    return calculate_group_metrics(trades, _SETTINGS, journal.capital)


def detect_discipline_vs_performance(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.discipline_window:
        return None
    recent = _metrics(history[-config.discipline_window:], journal)

    if recent.avg_score > config.discipline_high_score and recent.win_rate < config.discipline_low_win_rate:
        return Finding(
            AlertCategory.DISCIPLINE_VS_PERFORMANCE,
            AlertType.ACTIONABLE_INSIGHT,
            insight(
                "You are following your rules with high discipline, but your win rate "
                "has been low recently.",
                "This often means your strategy itself is not aligned with current "
                "market conditions.",
                "Don't change your disciplined execution. Instead, review your Strategy "
                "in the 'Plans' section. It may need adjustment.",
            ),
            meta={"avg_score": round(recent.avg_score, 2), "win_rate": round(recent.win_rate, 2)},
        )
    if recent.avg_score < config.discipline_low_score and recent.profit_factor > config.discipline_profit_factor:
        return Finding(
            AlertCategory.DISCIPLINE_VS_PERFORMANCE,
            AlertType.ACTIONABLE_INSIGHT,
            insight(
                "You are profitable, but your discipline score is low.",
                "This indicates your strategy is robust, but you are leaving money on "
                "the table by breaking rules.",
                "Focus on following your Execution Checklist for every trade to "
                "maximize your strategy's potential.",
            ),
            meta={"avg_score": round(recent.avg_score, 2)},
        )
    return None


def detect_best_setup_underused(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.best_setup_min_trades:
        return None
    candidates = [
        (name, stats)
        for name, stats in bucket_by(history, lambda t: t.strategy or None).items()
        if stats.trades >= config.best_setup_min_uses
    ]
    if not candidates:
        return None
    # Stable tie-break on name keeps the pick deterministic
    name, stats = max(candidates, key=lambda item: (item[1].avg_r, item[0]))
    if stats.avg_r <= config.best_setup_min_r:
        return None
    if stats.trades >= len(history) * config.best_setup_max_share:
        return None
    return Finding(
        AlertCategory.BEST_SETUP_UNDERUSED,
        AlertType.ACTIONABLE_INSIGHT,
        insight(
            f"Your best setup, '{name}', has an impressive average of {stats.avg_r:.1f}R.",
            f"Despite its high performance, you've only used it {stats.trades} times.",
            "You should actively look for more opportunities that fit this "
            "high-expectancy setup.",
        ),
        meta={"strategy": name, "avg_r": round(stats.avg_r, 2), "uses": stats.trades},
    )


def detect_unprofitable_weekday(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.weekday_min_trades:
        return None
    days = [
        (day, stats)
        for day, stats in bucket_by(history, weekday_name).items()
        if stats.trades > config.weekday_min_samples
    ]
    if not days:
        return None
    day, stats = min(days, key=lambda item: item[1].total_pl)
    if stats.total_pl >= config.weekday_loss_threshold:
        return None
    return Finding(
        AlertCategory.UNPROFITABLE_PATTERN,
        AlertType.ACTIONABLE_INSIGHT,
        insight(
            f"You are consistently unprofitable on {day}s.",
            f"Review your {day} trades to see if market behavior on that day doesn't "
            "suit your strategy.",
            "Consider reducing your risk or avoiding trading altogether on that day.",
        ),
        meta={"weekday": day, "total_pl": round(stats.total_pl, 2), "trades": stats.trades},
    )


def detect_breakeven_rut(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.breakeven_window:
        return None
    count = _metrics(history[-config.breakeven_window:], journal).breakeven_count
    if count < config.breakeven_min_count:
        return None
    return Finding(
        AlertCategory.BREAK_EVEN_RUT,
        AlertType.INFORMATIONAL,
        insight(
            f"You've had {count} break-even trades in your last {config.breakeven_window}.",
            "This can happen in choppy markets or if your SL is moved to BE too "
            "aggressively.",
            "Review these trades. Would they have been profitable if you hadn't moved "
            "your stop? Consider adjusting your BE strategy.",
        ),
        meta={"breakeven_count": count},
    )


def detect_low_risk_reward(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.low_rr_min_trades:
        return None
    avg_rr = _metrics(history, journal).avg_planned_rr
    if avg_rr >= config.low_rr_threshold:
        return None
    return Finding(
        AlertCategory.LOW_RISK_TO_REWARD,
        AlertType.ACTIONABLE_INSIGHT,
        insight(
            f"Your average planned R:R is {avg_rr:.1f}:1.",
            "A low R:R requires a very high win rate to be profitable.",
            "Seek setups with a minimum of 2:1 R:R to improve your strategy's "
            "expectancy.",
        ),
        meta={"avg_planned_rr": round(avg_rr, 2)},
    )


PERIODIC_DETECTORS: list[Detector] = [
    detect_discipline_vs_performance,
    detect_best_setup_underused,
    detect_unprofitable_weekday,
    detect_breakeven_rut,
    detect_low_risk_reward,
]
