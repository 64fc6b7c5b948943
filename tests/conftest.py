"""Shared fixtures and builders for the tradelog test suite."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tradelog.core.clock import FixedClock
from tradelog.core.config import EngineSettings
from tradelog.core.enums import Direction, Outcome, TradeResult, TradeStatus
from tradelog.core.models import (
    AppSettings,
    AutoCalculated,
    DisciplineScore,
    Journal,
    PairConfig,
    Trade,
)

# 2024-03-04 was a Monday
T0 = datetime(2024, 3, 4, 9, 30)

# Zero-spread profiles so worked examples come out in round numbers
EURUSD = PairConfig(pip_size=0.0001, pip_value=10, spread=0)
USDJPY = PairConfig(pip_size=0.01, pip_value=10, spread=0)


@pytest.fixture
def app_settings():
    return make_app_settings()


@pytest.fixture
def engine_settings():
    return EngineSettings()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 6, 1, 12, 0))


def make_app_settings(**overrides) -> AppSettings:
    """AppSettings with zero-spread EURUSD / USDJPY and an ``Other`` profile."""
    data = {
        "pairs_config": {
            "EURUSD": EURUSD,
            "USDJPY": USDJPY,
            "Other": PairConfig(pip_size=0.0001, pip_value=10, spread=0),
        },
    }
    data.update(overrides)
    return AppSettings(**data)


def make_trade(
    trade_id: str = "t1",
    symbol: str = "EURUSD",
    direction: Direction = Direction.BUY,
    lot_size: float = 1.0,
    entry_price: float = 1.1000,
    close_price: float | None = None,
    stop_loss: float | None = 1.0950,
    take_profit: float | None = 1.1100,
    opened_at: datetime | None = None,
    closed_at: datetime | None = None,
    **kwargs,
) -> Trade:
    """Helper to create a Trade; open unless ``close_price`` is given."""
    opened_at = opened_at or T0
    if close_price is not None and closed_at is None:
        closed_at = opened_at + timedelta(hours=2, minutes=15)
    return Trade(
        id=trade_id,
        symbol=symbol,
        direction=direction,
        lot_size=lot_size,
        entry_price=entry_price,
        close_price=close_price,
        stop_loss=stop_loss,
        take_profit=take_profit,
        opened_at=opened_at,
        closed_at=closed_at,
        **kwargs,
    )


def make_winning_trade(trade_id: str = "t1", **kwargs) -> Trade:
    """EURUSD buy closed at its target: +100 pips, +$1,000 on 1 lot."""
    return make_trade(trade_id, close_price=1.1100, **kwargs)


def make_losing_trade(trade_id: str = "t1", **kwargs) -> Trade:
    """EURUSD buy stopped out: -50 pips, -$500 on 1 lot."""
    return make_trade(trade_id, close_price=1.0950, **kwargs)


def make_journal(trades=(), capital: float = 10_000, **kwargs) -> Journal:
    return Journal(id="j1", title="Main", capital=capital, trades=list(trades), **kwargs)


def make_scored(
    trade_id: str,
    outcome: Outcome,
    pl: float,
    *,
    opened_at: datetime | None = None,
    lot_size: float = 1.0,
    score: float = 80.0,
    remark: str = "Excellent discipline!",
    result: TradeResult | None = None,
    risk_amount: float = 500.0,
    risk_percent: float = 1.0,
    realized_r: float | None = None,
    rr: float = 2.0,
    reward_amount: float | None = None,
    **kwargs,
) -> Trade:
    """Closed trade carrying a hand-built ``auto`` block.

    Detector and analytics tests build histories this way so each case
    states exactly the metrics it depends on.
    """
    if result is None:
        result = {Outcome.WIN: TradeResult.TP, Outcome.LOSS: TradeResult.SL}.get(
            outcome, TradeResult.BE
        )
    if realized_r is None:
        realized_r = pl / risk_amount if risk_amount else 0.0
    auto = AutoCalculated(
        result=result,
        status=TradeStatus.CLOSED,
        outcome=outcome,
        pl=pl,
        gross_pl=pl,
        rr=rr,
        realized_r=realized_r,
        risk_amount=risk_amount,
        reward_amount=rr * risk_amount if reward_amount is None else reward_amount,
        risk_percent=risk_percent,
        duration_minutes=60,
        score=DisciplineScore(value=score, remark=remark),
    )
    trade = make_trade(
        trade_id,
        close_price=1.1000,
        opened_at=opened_at or T0,
        lot_size=lot_size,
        **kwargs,
    )
    return trade.with_auto(auto)


def make_history(outcomes, *, start: datetime | None = None, pl: float = 100.0, **kwargs) -> list[Trade]:
    """One scored trade per outcome, an hour apart, ids ``h0``, ``h1`` ...

    Wins earn ``pl``, losses lose it and anything else is flat.
    """
    start = start or T0
    trades = []
    for i, outcome in enumerate(outcomes):
        signed = {Outcome.WIN: pl, Outcome.LOSS: -pl}.get(outcome, 0.0)
        trades.append(
            make_scored(
                f"h{i}", outcome, signed, opened_at=start + timedelta(hours=i), **kwargs
            )
        )
    return trades
