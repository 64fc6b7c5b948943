"""Tilt index: a six-factor emotional-state composite in [-1, 1].

Each component is normalised to [-1, 1] before weighting:

- score: discipline score against the trader's running average
- sentiment: ratio of positive to negative selected sentiments
- custom field: mean impact sign of tagged custom-field selections
- R: realised R through a piecewise-linear map around a pivot
- result: Win / Loss / Neutral
- P/L: net P/L against the running average P/L

The same components can be rebuilt from group aggregates for a
dashboard-level reading (``compute_aggregate_tilt``).
"""

from __future__ import annotations

from tradelog.core.config import TiltConfig, default_settings
from tradelog.core.enums import Impact, Outcome
from tradelog.core.models import AppSettings, Journal, TiltScore, Trade


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


# ------------------------------------------------------------------ #
# Components                                                           #
# ------------------------------------------------------------------ #

def sentiment_counts(sentiments: list[str], app_settings: AppSettings) -> tuple[int, int]:
    """(positive, negative) counts; unknown sentiments count as negative."""
    positive = 0
    for sentiment in sentiments:
        entry = app_settings.find_keyword(sentiment)
        if entry is not None and entry.impact == Impact.POSITIVE:
            positive += 1
    return positive, len(sentiments) - positive


def sentiment_component(sentiments: list[str], app_settings: AppSettings) -> float:
    if not sentiments:
        return 0.0
    positive, negative = sentiment_counts(sentiments, app_settings)
    return (positive - negative) / len(sentiments)


def custom_field_signs(trade: Trade, app_settings: AppSettings) -> list[int]:
    """Impact sign of every impact-tagged custom-field selection."""
    signs: list[int] = []
    for field_id, values in trade.custom_stats.items():
        definition = app_settings.find_custom_field(field_id)
        if definition is None or not definition.is_selectable:
            continue
        for value in values:
            option = definition.find_option(value)
            if option is not None and option.impact is not None:
                signs.append(option.impact.sign)
    return signs


def custom_field_component(signs: list[int]) -> float:
    return sum(signs) / len(signs) if signs else 0.0


def r_component(realized_r: float, config: TiltConfig) -> float:
    """Map realised R onto [-1, 1]; the pivot maps to 0."""
    capped = clamp(realized_r, config.r_lower_cap, config.r_upper_cap)
    if capped >= config.r_pivot:
        scaled = (capped - config.r_pivot) / (config.r_upper_cap - config.r_pivot)
    else:
        scaled = (capped - config.r_pivot) / (config.r_pivot - config.r_lower_cap)
    return clamp(scaled)


def result_component(outcome: Outcome, config: TiltConfig) -> float:
    if outcome == Outcome.WIN:
        return 1.0
    if outcome == Outcome.LOSS:
        return -1.0
    return config.neutral_result


def pl_component(net_pl: float, average_pl: float) -> float:
    if average_pl != 0:
        return clamp((net_pl - average_pl) / abs(average_pl))
    if net_pl > 0:
        return 1.0
    if net_pl < 0:
        return -1.0
    return 0.0


def _weighted(
    config: TiltConfig,
    score: float,
    sentiment: float,
    custom: float,
    r_value: float,
    result: float,
    pl: float,
) -> TiltScore:
    total = (
        score * config.score_weight
        + sentiment * config.sentiment_weight
        + custom * config.custom_field_weight
        + r_value * config.r_weight
        + result * config.result_weight
        + pl * config.pl_weight
    )
    return TiltScore(
        final_tilt=clamp(total),
        score_component=score,
        sentiment_component=sentiment,
        custom_field_component=custom,
        r_component=r_value,
        result_component=result,
        pl_component=pl,
    )


# ------------------------------------------------------------------ #
# Per trade                                                            #
# ------------------------------------------------------------------ #

def historical_averages(
    trade: Trade, journal: Journal, default_score: float
) -> tuple[float, float]:
    """Average score and P/L of the trader before ``trade`` was opened.

    Snapshot values stored on the trade win; otherwise the averages are
    taken over earlier live trades that already carry metrics.
    """
    earlier = [
        t for t in journal.live_trades
        if t.id != trade.id and t.auto is not None and t.opened_at < trade.opened_at
    ]
    avg_score = trade.avg_score_at_time
    if avg_score is None:
        avg_score = (
            sum(t.auto.score.value for t in earlier) / len(earlier)
            if earlier else default_score
        )
    avg_pl = trade.avg_pl_at_time
    if avg_pl is None:
        avg_pl = sum(t.auto.pl for t in earlier) / len(earlier) if earlier else 0.0
    return avg_score, avg_pl


def compute_tilt(
    trade: Trade,
    journal: Journal,
    app_settings: AppSettings,
    *,
    score: float,
    realized_r: float,
    outcome: Outcome,
    net_pl: float,
    config: TiltConfig | None = None,
) -> TiltScore:
    """Tilt index of one trade given its freshly computed metrics."""
    config = config or default_settings().tilt
    avg_score, avg_pl = historical_averages(trade, journal, config.default_avg_score)
    return _weighted(
        config,
        score=1.0 if score > avg_score else -1.0,
        sentiment=sentiment_component(trade.all_sentiments, app_settings),
        custom=custom_field_component(custom_field_signs(trade, app_settings)),
        r_value=r_component(realized_r, config),
        result=result_component(outcome, config),
        pl=pl_component(net_pl, avg_pl),
    )


# ------------------------------------------------------------------ #
# Aggregate                                                            #
# ------------------------------------------------------------------ #

def compute_aggregate_tilt(
    trades: list[Trade],
    app_settings: AppSettings,
    capital: float,
    *,
    config: TiltConfig | None = None,
) -> TiltScore:
    """Tilt index of a trade group, each component from group aggregates.

    Trades without metrics and missing placeholders are ignored; an empty
    group reads neutral.
    """
    config = config or default_settings().tilt
    scored = [t for t in trades if t.auto is not None and not t.is_missing]
    if not scored:
        return TiltScore()

    n = len(scored)
    avg_score = sum(t.auto.score.value for t in scored) / n
    sentiments = [s for t in scored for s in t.all_sentiments]
    signs = [sign for t in scored for sign in custom_field_signs(t, app_settings)]
    avg_r = sum(t.auto.realized_r for t in scored) / n
    win_rate = sum(1 for t in scored if t.auto.outcome == Outcome.WIN) / n

    avg_pl = sum(t.auto.pl for t in scored) / n
    pl_pct = avg_pl / capital * 100 if capital > 0 else 0.0
    if pl_pct >= 0:
        pl = clamp(pl_pct / config.aggregate_pl_pct_max)
    else:
        pl = clamp(pl_pct / config.aggregate_pl_pct_min)

    return _weighted(
        config,
        score=clamp((avg_score - 50) / 50),
        sentiment=sentiment_component(sentiments, app_settings),
        custom=custom_field_component(signs),
        r_value=r_component(avg_r, config),
        result=clamp((win_rate - 0.5) * 2),
        pl=pl,
    )
