"""Full metric computation for one trade.

``compute_trade_metrics`` chains the pricing resolver, session and zone
classifier, P/L and risk calculators, discipline scorer, tilt index and
setup matcher into the trade's ``auto`` block.  It is total: any internal
fault is logged and the neutral fallback block is returned instead.
"""

from __future__ import annotations

from tradelog.core.config import EngineSettings, default_settings
from tradelog.core.enums import (
    BreakevenType,
    Direction,
    NewsImpact,
    Outcome,
    TradeResult,
    TradeStatus,
)
from tradelog.core.models import AppSettings, AutoCalculated, Journal, PairConfig, Trade
from tradelog.observability.logger import get_logger

from .discipline import score_discipline
from .pnl import calculate_pnl
from .pricing import resolve_pricing
from .risk import calculate_risk, level_distance_pips
from .sessions import classify_session, classify_zone
from .setups import match_setups
from .tilt import compute_tilt

logger = get_logger(__name__)

# A close within this many pips of a level counts as hitting it
LEVEL_TOLERANCE_PIPS = 2


def _near(price: float, level: float | None, tolerance: float) -> bool:
    return level is not None and level > 0 and abs(price - level) < tolerance


def classify_result(trade: Trade, pricing: PairConfig, net_pl: float) -> tuple[TradeResult, Outcome]:
    """How the trade ended relative to its levels, and whether it paid.

    An open trade is ``Running``/``Neutral``.  A stop that had been moved
    to or beyond entry is a protective ``Stop``, not an ``SL``.
    """
    if not trade.is_closed:
        return TradeResult.RUNNING, Outcome.NEUTRAL

    close = trade.close_price
    tolerance = pricing.pip_size * LEVEL_TOLERANCE_PIPS
    result = TradeResult.STOP
    if trade.breakeven == BreakevenType.BREAK_EVEN and _near(close, trade.entry_price, tolerance):
        result = TradeResult.BE
    elif _near(close, trade.take_profit, tolerance):
        result = TradeResult.TP
    elif _near(close, trade.stop_loss, tolerance):
        safe_stop = (
            (trade.direction == Direction.BUY and trade.stop_loss >= trade.entry_price)
            or (trade.direction == Direction.SELL and trade.stop_loss <= trade.entry_price)
        )
        result = TradeResult.STOP if safe_stop else TradeResult.SL

    if net_pl > 0:
        outcome = Outcome.WIN
    elif net_pl < 0:
        outcome = Outcome.LOSS
    else:
        outcome = Outcome.NEUTRAL
    return result, outcome


def format_holding_time(minutes: float) -> str:
    """``"1d 2h 5m"`` style duration; ``"0m"`` for instant round trips."""
    whole = int(max(0.0, minutes))
    days, rest = divmod(whole, 1440)
    hours, mins = divmod(rest, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if mins or not parts:
        parts.append(f"{mins}m")
    return " ".join(parts)


def highest_news_impact(trade: Trade) -> NewsImpact | None:
    impacts = [e.impact for e in trade.news_events if e.impact is not None]
    if not impacts:
        return None
    return max(impacts, key=lambda impact: impact.rank)


def journal_expectancy(trade: Trade, journal: Journal, net_pl: float, outcome: Outcome) -> float:
    """Expectancy of the journal with this trade's fresh result included."""
    results = [
        (t.auto.outcome, t.auto.pl)
        for t in journal.live_trades
        if t.id != trade.id and t.auto is not None
    ]
    if not trade.is_missing:
        results.append((outcome, net_pl))
    if not results:
        return 0.0
    wins = [pl for o, pl in results if o == Outcome.WIN]
    losses = [pl for o, pl in results if o == Outcome.LOSS]
    win_rate = len(wins) / len(results)
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = abs(sum(losses) / len(losses)) if losses else 0.0
    return win_rate * avg_win - (1 - win_rate) * avg_loss


def _build(
    trade: Trade,
    journal: Journal,
    app_settings: AppSettings,
    settings: EngineSettings,
) -> AutoCalculated:
    pricing = resolve_pricing(trade.symbol, app_settings.pairs_config)
    pnl = calculate_pnl(trade, pricing, charge_swap=journal.charges_swap)
    risk = calculate_risk(trade, pricing, pnl.net_pl, journal.capital)
    result, outcome = classify_result(trade, pricing, pnl.net_pl)

    status = TradeStatus.CLOSED if trade.is_closed else TradeStatus.OPEN
    duration = 0.0
    holding_time = "Open"
    if status == TradeStatus.CLOSED and trade.closed_at is not None:
        duration = max(0.0, (trade.closed_at - trade.opened_at).total_seconds() / 60)
        holding_time = format_holding_time(duration)

    score = score_discipline(
        trade,
        journal,
        app_settings,
        risk_amount=risk.risk_amount,
        planned_rr=risk.planned_rr,
        config=settings.scoring,
    )
    tilt = compute_tilt(
        trade,
        journal,
        app_settings,
        score=score.value,
        realized_r=risk.realized_r,
        outcome=outcome,
        net_pl=pnl.net_pl,
        config=settings.tilt,
    )

    return AutoCalculated(
        session=classify_session(trade.opened_at),
        zone=classify_zone(trade.opened_at),
        result=result,
        status=status,
        outcome=outcome,
        pips=round(pnl.pips, 2),
        gross_pl=round(pnl.gross_pl, 2),
        pl=round(pnl.net_pl, 2),
        rr=round(risk.planned_rr, 2),
        realized_r=round(risk.realized_r, 2),
        risk_amount=round(risk.risk_amount, 2),
        reward_amount=round(risk.reward_amount, 2),
        risk_percent=round(risk.risk_percent, 2),
        gain_percent=round(risk.gain_percent, 2),
        holding_time=holding_time,
        duration_minutes=duration,
        score=score,
        tilt=tilt,
        matched_setups=match_setups(
            journal.find_strategy(trade.strategy), trade.analysis_selections
        ),
        news_impact=highest_news_impact(trade),
        mfe_pips=round(level_distance_pips(trade.entry_price, trade.mfe_price, pricing.pip_size), 2),
        mae_pips=round(level_distance_pips(trade.entry_price, trade.mae_price, pricing.pip_size), 2),
        spread_cost=round(pnl.spread_cost, 2),
        commission_cost=round(pnl.commission_cost, 2),
        swap_cost=round(pnl.swap_cost, 2),
        expectancy=round(journal_expectancy(trade, journal, pnl.net_pl, outcome), 2),
    )


def compute_trade_metrics(
    trade: Trade,
    journal: Journal,
    app_settings: AppSettings,
    *,
    config: EngineSettings | None = None,
) -> AutoCalculated:
    """Derive the ``auto`` block of ``trade``.

    Parameters
    ----------
    trade : Trade
        The trade, with or without a stale ``auto`` block.
    journal : Journal
        Capital, plan, strategies and the peer trades.
    app_settings : AppSettings
        Pricing table, taxonomy, custom fields and keyword table.
    config : EngineSettings, optional
        Scoring and tilt weights; defaults to the process settings.

    Returns
    -------
    AutoCalculated
        Never raises; faults yield ``AutoCalculated.fallback()``.
    """
    try:
        return _build(trade, journal, app_settings, config or default_settings())
    except Exception:
        logger.exception(
            "trade_metrics_failed",
            trade_id=getattr(trade, "id", None),
            journal_id=getattr(journal, "id", None),
        )
        return AutoCalculated.fallback()
