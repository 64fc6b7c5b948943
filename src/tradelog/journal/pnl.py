"""Profit/loss and pip computation for whole, partial and layered trades.

A trade's gross P/L is assembled from up to three sources:

1. partial closes, each valued against the main entry price and removed
   from the remaining lot size;
2. the overall close price applied to whatever lot size remains;
3. layered entries, each an independent tranche with its own entry and
   close price.

Costs (spread, commission, swap) are subtracted to obtain net P/L once
any tranche has been realised; a position that is still fully open has
zero net P/L and only reports what its costs will be.
"""

from __future__ import annotations

from dataclasses import dataclass

from tradelog.core.enums import Direction
from tradelog.core.models import PairConfig, Trade


@dataclass(frozen=True)
class PnlBreakdown:
    """P/L of one trade in account currency."""

    gross_pl: float = 0.0
    net_pl: float = 0.0
    pips: float = 0.0
    remaining_lots: float = 0.0
    partial_pl: float = 0.0
    layer_pl: float = 0.0
    spread_cost: float = 0.0
    commission_cost: float = 0.0
    swap_cost: float = 0.0

    @property
    def total_costs(self) -> float:
        return self.spread_cost + self.commission_cost + self.swap_cost


def price_pips(direction: Direction, entry: float, exit_price: float, pip_size: float) -> float:
    """Signed pip distance from entry to exit in the trade's favour."""
    if pip_size <= 0:
        return 0.0
    move = exit_price - entry if direction == Direction.BUY else entry - exit_price
    return move / pip_size


def tranche_pl(
    direction: Direction,
    entry: float,
    exit_price: float,
    lots: float,
    pricing: PairConfig,
) -> float:
    """P/L of ``lots`` moved from ``entry`` to ``exit_price``."""
    return price_pips(direction, entry, exit_price, pricing.pip_size) * lots * pricing.pip_value


def calculate_pnl(
    trade: Trade,
    pricing: PairConfig,
    *,
    charge_swap: bool = False,
) -> PnlBreakdown:
    """Compute gross/net P/L and pips for a trade.

    Parameters
    ----------
    trade : Trade
        The trade to value.  Without a close price only layers that carry
        their own close price contribute.
    pricing : PairConfig
        Pip size / pip value / spread of the instrument.
    charge_swap : bool
        Whether the journal type deducts swap (funded / competition
        accounts).

    Returns
    -------
    PnlBreakdown
        All-zero for a position with no lots.
    """
    total_lots = trade.total_lots
    if total_lots <= 0:
        return PnlBreakdown()

    partial_pl = 0.0
    remaining = trade.lot_size
    gross = 0.0

    if trade.is_closed:
        for partial in trade.partials:
            partial_pl += tranche_pl(
                trade.direction, trade.entry_price, partial.price, partial.lot_size, pricing
            )
            remaining -= partial.lot_size
        gross += partial_pl
        if remaining > 0:
            gross += tranche_pl(
                trade.direction, trade.entry_price, trade.close_price, remaining, pricing
            )

    layer_pl = 0.0
    realized = trade.is_closed
    for layer in trade.layers:
        if layer.close_price is None or layer.close_price <= 0:
            continue
        realized = True
        layer_pl += tranche_pl(
            trade.direction, layer.entry_price, layer.close_price, layer.lot_size, pricing
        )
    gross += layer_pl

    spread = pricing.spread * pricing.pip_value * total_lots
    commission = trade.commission or 0.0
    swap = (trade.swap or 0.0) if charge_swap else 0.0
    net = gross - (spread + commission + swap) if realized else 0.0

    denominator = total_lots * pricing.pip_value
    pips = gross / denominator if denominator else 0.0

    return PnlBreakdown(
        gross_pl=gross,
        net_pl=net,
        pips=pips,
        remaining_lots=max(0.0, remaining),
        partial_pl=partial_pl,
        layer_pl=layer_pl,
        spread_cost=spread,
        commission_cost=commission,
        swap_cost=swap,
    )
