"""Planned risk, planned reward and realised R-multiple.

All distances are measured in pips from the entry price.  Unset stops
and targets (``None`` or ``<= 0``) contribute zero distance, and every
ratio is guarded so a zero denominator yields ``0.0`` rather than
``inf``/``nan``.
"""

from __future__ import annotations

from dataclasses import dataclass

from tradelog.core.models import PairConfig, Trade


@dataclass(frozen=True)
class RiskReward:
    risk_pips: float = 0.0
    risk_amount: float = 0.0
    reward_pips: float = 0.0
    reward_amount: float = 0.0
    planned_rr: float = 0.0
    realized_r: float = 0.0
    risk_percent: float = 0.0
    gain_percent: float = 0.0


def level_distance_pips(entry: float, level: float | None, pip_size: float) -> float:
    """Absolute pip distance between entry and a stop/target level."""
    if level is None or level <= 0 or pip_size <= 0:
        return 0.0
    return abs(entry - level) / pip_size


def risk_amount(trade: Trade, pricing: PairConfig) -> float:
    """Money at risk between entry and stop, layered tranches included."""
    amount = (
        level_distance_pips(trade.entry_price, trade.stop_loss, pricing.pip_size)
        * trade.lot_size
        * pricing.pip_value
    )
    for layer in trade.layers:
        amount += (
            level_distance_pips(layer.entry_price, layer.stop_loss, pricing.pip_size)
            * layer.lot_size
            * pricing.pip_value
        )
    return amount


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def calculate_risk(
    trade: Trade,
    pricing: PairConfig,
    net_pl: float,
    capital: float,
) -> RiskReward:
    """Compute the risk/reward block for a trade.

    ``capital`` is the journal's current capital; percentages are 0 when
    it is not positive.
    """
    risk_pips = level_distance_pips(trade.entry_price, trade.stop_loss, pricing.pip_size)
    reward_pips = level_distance_pips(trade.entry_price, trade.take_profit, pricing.pip_size)
    amount = risk_amount(trade, pricing)
    capital = capital if capital and capital > 0 else 0.0

    return RiskReward(
        risk_pips=risk_pips,
        risk_amount=amount,
        reward_pips=reward_pips,
        reward_amount=reward_pips * trade.lot_size * pricing.pip_value,
        planned_rr=safe_ratio(reward_pips, risk_pips),
        realized_r=safe_ratio(net_pl, amount),
        risk_percent=safe_ratio(amount, capital) * 100,
        gain_percent=safe_ratio(net_pl, capital) * 100,
    )
