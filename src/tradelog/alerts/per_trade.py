"""Detectors that run on every trade save.

Each looks at the triggering trade against the live history and returns
a ``Finding`` or ``None``.  Insufficient history is never an error: the
check simply stays silent.
"""

from __future__ import annotations

from tradelog.core.config import AlertConfig
from tradelog.core.enums import AlertCategory, AlertType, Outcome, TradeResult
from tradelog.core.models import Journal, Trade
from tradelog.journal.discipline import DEFAULT_REMARK

from .base import Detector, Finding, insight, position_of, trades_before


def _win_rate(trades: list[Trade]) -> float:
    if not trades:
        return 0.0
    return sum(1 for t in trades if t.auto.outcome == Outcome.WIN) / len(trades) * 100


def detect_largest_loss(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if trade.auto.outcome != Outcome.LOSS:
        return None
    losses = [t.auto.pl for t in trades_before(trade, history) if t.auto.outcome == Outcome.LOSS]
    if len(losses) < config.largest_loss_min_losses:
        return None
    if trade.auto.pl >= min(losses):
        return None
    return Finding(
        AlertCategory.LARGEST_LOSS,
        AlertType.WARNING,
        insight(
            "This trade is your largest loss in recent history.",
            "This can happen due to oversized risk or a failure to cut losses.",
            "It's crucial to review this trade's log to understand what happened "
            "and prevent a repeat.",
        ),
        trade_id=trade.id,
        meta={"pl": trade.auto.pl, "previous_worst": min(losses)},
    )


def detect_closed_before_tp(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if (
        trade.auto.outcome != Outcome.WIN
        or trade.auto.result != TradeResult.STOP
        or not trade.take_profit
        or trade.take_profit <= 0
    ):
        return None
    left_on_table = trade.auto.reward_amount - trade.auto.pl
    if left_on_table < config.closed_before_tp_min_gap:
        return None
    return Finding(
        AlertCategory.CLOSED_BEFORE_TP,
        AlertType.INFORMATIONAL,
        insight(
            "This winning trade was closed manually.",
            f"This means you left ~${left_on_table:.2f} on the table. Was this a "
            "strategic decision or was it driven by fear?",
            "Reflecting on this can improve your profit-taking.",
        ),
        trade_id=trade.id,
        meta={"left_on_table": round(left_on_table, 2)},
    )


def detect_bias_conflict(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if not trade.conflicts_with_bias:
        return None
    index = position_of(trade, history)
    recent = history[: index + 1][-config.bias_lookback:]
    biased = [t for t in recent if t.bias]
    if len(biased) < config.bias_min_samples:
        return None

    aligned = [t for t in biased if not t.conflicts_with_bias]
    conflicting = [t for t in biased if t.conflicts_with_bias]
    delta = _win_rate(aligned) - _win_rate(conflicting)
    if delta <= config.bias_win_rate_delta:
        return None
    return Finding(
        AlertCategory.TRADING_AGAINST_BIAS,
        AlertType.WARNING,
        insight(
            "You traded against your defined bias.",
            f"This is risky. Your win rate is {round(delta)}% higher when trading "
            "WITH your bias.",
            "Prioritize setups that align with your HTF bias.",
        ),
        trade_id=trade.id,
        meta={"win_rate_delta": round(delta, 2)},
    )


def detect_risk_drift(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if len(history) < config.risk_min_trades:
        return None
    losses = [t for t in trades_before(trade, history) if t.auto.outcome == Outcome.LOSS]
    if len(losses) < config.risk_min_losses:
        return None

    avg_loss_risk = sum(t.auto.risk_percent for t in losses) / len(losses)
    risk = trade.auto.risk_percent
    meta = {"risk_percent": risk, "avg_loss_risk_percent": round(avg_loss_risk, 2)}

    if trade.auto.outcome == Outcome.LOSS and risk > avg_loss_risk * config.risk_high_multiplier:
        return Finding(
            AlertCategory.RISK_MANAGEMENT,
            AlertType.WARNING,
            insight(
                f"You risked {risk:.1f}% on this loss, which is significantly higher "
                "than your average risk on losing trades.",
                "Increasing risk size during a losing period often leads to larger "
                "drawdowns.",
                "Re-read your trading plan and stick to your defined risk-per-trade.",
            ),
            trade_id=trade.id,
            meta=meta,
        )
    if trade.auto.outcome == Outcome.WIN and risk < avg_loss_risk * config.risk_low_multiplier:
        return Finding(
            AlertCategory.RISK_MANAGEMENT,
            AlertType.INFORMATIONAL,
            insight(
                f"You risked only {risk:.1f}% on this winning trade.",
                "This is great risk management. Your successful trades are using less "
                "risk than your average losing trade.",
                "Keep up this habit of applying smaller risk on high-conviction setups.",
            ),
            trade_id=trade.id,
            meta=meta,
        )
    return None


def detect_profit_taking(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    if trade.auto.outcome != Outcome.WIN or len(history) < config.profit_taking_min_trades:
        return None
    if trade.auto.risk_amount <= 0:
        return None
    r_value = trade.auto.realized_r
    if r_value >= config.profit_taking_r:
        return None

    wins = [t for t in history if t.auto.outcome == Outcome.WIN and t.auto.risk_amount > 0]
    avg_win_r = sum(t.auto.realized_r for t in wins) / len(wins) if wins else 0.0
    if avg_win_r >= config.profit_taking_r:
        return None
    return Finding(
        AlertCategory.PROFIT_TAKING,
        AlertType.ACTIONABLE_INSIGHT,
        insight(
            f"This winning trade had a small R-multiple ({r_value:.1f}R).",
            f"Your recent winning trades average less than {config.profit_taking_r:g}R. "
            "This suggests you may be cutting winners short.",
            "For your next trade, try to hold for at least 2R.",
        ),
        trade_id=trade.id,
        meta={"realized_r": r_value, "avg_win_r": round(avg_win_r, 2)},
    )


def detect_rule_breach(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    score = trade.auto.score
    if score.value >= config.rule_breach_score:
        return None
    if score.remark in (DEFAULT_REMARK, "N/A", ""):
        return None
    remarks = [r.strip().rstrip(".") for r in score.remark.split(". ") if r.strip()]
    if not remarks:
        return None
    return Finding(
        AlertCategory.RULE_BREACHED,
        AlertType.WARNING,
        insight(
            f"You breached your trading plan ({remarks[0]}).",
            "Violating rules is the primary cause of unprofitable trading.",
            "Before your next trade, re-read your Trading Plan and commit to "
            "following it.",
        ),
        trade_id=trade.id,
        meta={"score": score.value, "breaches": remarks},
    )


def detect_overconfidence(
    trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
) -> Finding | None:
    index = position_of(trade, history)
    if index < 1:
        return None
    previous = history[index - 1]
    if not (
        previous.auto.pl > 0
        and trade.auto.pl < 0
        and trade.lot_size > previous.lot_size * config.overconfidence_lot_multiplier
    ):
        return None
    return Finding(
        AlertCategory.POTENTIAL_OVERCONFIDENCE,
        AlertType.WARNING,
        insight(
            "You significantly increased your lot size on this trade after a winner.",
            "This pattern, known as 'winner's euphoria', can lead to giving back "
            "profits.",
            "Stick to your consistent position sizing strategy, regardless of the "
            "previous outcome.",
        ),
        trade_id=trade.id,
        meta={"lot_size": trade.lot_size, "previous_lot_size": previous.lot_size},
    )


def streak_detector(length: int) -> Detector:
    """Win/loss streak check that fires only on the trade completing the streak.

    The run ending at the triggering trade must be exactly ``length`` long
    at that point: the ``length`` trades up to it share one outcome and the
    trade before them (if any) does not.
    """

    def detect_streak(
        trade: Trade, history: list[Trade], journal: Journal, config: AlertConfig
    ) -> Finding | None:
        index = position_of(trade, history)
        if index + 1 < length:
            return None
        window = history[index - length + 1: index + 1]
        outcome = trade.auto.outcome
        if outcome not in (Outcome.WIN, Outcome.LOSS):
            return None
        if any(t.auto.outcome != outcome for t in window):
            return None
        if index - length >= 0 and history[index - length].auto.outcome == outcome:
            return None

        if outcome == Outcome.WIN:
            return Finding(
                AlertCategory.WIN_STREAK,
                AlertType.SUCCESS,
                insight(
                    f"You're on a {length}-trade winning streak!",
                    "This is a great sign that your strategy is in sync with current "
                    "market conditions.",
                    "Stay disciplined, don't get overconfident, and stick to your plan.",
                ),
                trade_id=trade.id,
                meta={"streak": length},
            )
        return Finding(
            AlertCategory.LOSING_STREAK,
            AlertType.WARNING,
            insight(
                f"You have now lost {length} trades in a row.",
                "This is a critical time. It could be your strategy is out of sync or "
                "you are breaking rules.",
                "Consider taking a break, reducing risk, and reviewing your journal for "
                "common patterns in these losses.",
            ),
            trade_id=trade.id,
            meta={"streak": length},
        )

    detect_streak.__name__ = f"detect_streak_{length}"
    return detect_streak


PER_TRADE_DETECTORS: list[Detector] = [
    detect_largest_loss,
    detect_closed_before_tp,
    detect_bias_conflict,
    detect_risk_drift,
    detect_profit_taking,
    detect_rule_breach,
    detect_overconfidence,
]
