"""Property-based tests for the bounded quantities of the journal engine.

Uses hypothesis to generate trades and check that scores, tilt values
and P/L stay within their documented ranges for arbitrary input.
"""

from __future__ import annotations

from datetime import timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from tradelog.core.config import TiltConfig
from tradelog.core.enums import Direction, Outcome, SentimentStage
from tradelog.core.models import PartialClose, TradingPlan
from tradelog.journal.discipline import score_discipline
from tradelog.journal.metrics import compute_trade_metrics
from tradelog.journal.pnl import calculate_pnl, tranche_pl
from tradelog.journal.tilt import compute_aggregate_tilt, r_component

from tests.conftest import EURUSD, T0, make_app_settings, make_journal, make_scored, make_trade

APP_SETTINGS = make_app_settings()

# ------------------------------------------------------------------ #
# Strategies                                                           #
# ------------------------------------------------------------------ #

lots = st.floats(min_value=0.01, max_value=50.0, allow_nan=False, allow_infinity=False)
prices = st.floats(min_value=0.5, max_value=2.0, allow_nan=False, allow_infinity=False)
moneys = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
directions = st.sampled_from([Direction.BUY, Direction.SELL])
sentiment_words = st.lists(
    st.sampled_from(["Calm", "Confident", "Fearful", "Greedy", "Bored", "Focused"]),
    max_size=5,
)


@st.composite
def closed_trades(draw):
    direction = draw(directions)
    entry = draw(prices)
    return make_trade(
        "p1",
        direction=direction,
        lot_size=draw(lots),
        entry_price=entry,
        close_price=draw(prices),
        stop_loss=entry - 0.005 if direction == Direction.BUY else entry + 0.005,
        take_profit=draw(st.none() | prices),
        opened_at=T0 + timedelta(minutes=draw(st.integers(0, 60 * 24 * 6))),
        sentiment={SentimentStage.BEFORE: draw(sentiment_words)},
        lessons_learned=draw(st.text(max_size=30)),
    )


# ------------------------------------------------------------------ #
# Discipline score                                                     #
# ------------------------------------------------------------------ #

class TestScoreBounds:

    @given(
        trade=closed_trades(),
        risk=st.floats(min_value=0, max_value=1e6, allow_nan=False),
        rr=st.floats(min_value=0, max_value=20, allow_nan=False),
        risk_per_trade=st.floats(min_value=0.1, max_value=100, allow_nan=False),
    )
    @settings(max_examples=50, deadline=None)
    def test_score_within_0_and_100(self, trade, risk, rr, risk_per_trade):
        journal = make_journal([trade], plan=TradingPlan(risk_per_trade=risk_per_trade))
        score = score_discipline(trade, journal, APP_SETTINGS, risk_amount=risk, planned_rr=rr)
        assert 0.0 <= score.value <= 100.0


# ------------------------------------------------------------------ #
# Tilt                                                                 #
# ------------------------------------------------------------------ #

class TestTiltBounds:

    @given(r=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
    @settings(max_examples=50, deadline=None)
    def test_r_component_in_range(self, r):
        assert -1.0 <= r_component(r, TiltConfig()) <= 1.0

    @given(
        r=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
        delta=st.floats(min_value=0, max_value=100, allow_nan=False),
    )
    @settings(max_examples=50, deadline=None)
    def test_r_component_monotone(self, r, delta):
        config = TiltConfig()
        assert r_component(r, config) <= r_component(r + delta, config)

    @given(trade=closed_trades())
    @settings(max_examples=50, deadline=None)
    def test_trade_tilt_in_range(self, trade):
        auto = compute_trade_metrics(trade, make_journal([trade]), APP_SETTINGS)
        assert -1.0 <= auto.tilt.final_tilt <= 1.0

    @given(
        rows=st.lists(
            st.tuples(
                st.sampled_from(list(Outcome)),
                moneys,
                st.floats(min_value=0, max_value=100, allow_nan=False),
                st.floats(min_value=-50, max_value=50, allow_nan=False),
            ),
            min_size=1,
            max_size=20,
        ),
        capital=st.floats(min_value=0, max_value=1e6, allow_nan=False),
    )
    @settings(max_examples=50, deadline=None)
    def test_aggregate_tilt_in_range(self, rows, capital):
        trades = [
            make_scored(f"a{i}", outcome, pl, opened_at=T0 + timedelta(hours=i),
                        score=score, realized_r=r)
            for i, (outcome, pl, score, r) in enumerate(rows)
        ]
        tilt = compute_aggregate_tilt(trades, APP_SETTINGS, capital)
        assert -1.0 <= tilt.final_tilt <= 1.0


# ------------------------------------------------------------------ #
# P/L                                                                  #
# ------------------------------------------------------------------ #

class TestPnlProperties:

    @given(direction=directions, entry=prices, close=prices)
    @settings(max_examples=50, deadline=None)
    def test_zero_lot_is_flat(self, direction, entry, close):
        trade = make_trade(direction=direction, lot_size=0.0, entry_price=entry,
                           close_price=close, stop_loss=None)
        auto = compute_trade_metrics(trade, make_journal([trade]), APP_SETTINGS)
        assert auto.pl == 0.0
        assert auto.risk_percent == 0.0

    @given(
        direction=directions,
        lot=lots,
        share=st.floats(min_value=0, max_value=1, allow_nan=False),
        entry=prices,
        partial_price=prices,
        close=prices,
    )
    @settings(max_examples=50, deadline=None)
    def test_partials_add_up(self, direction, lot, share, entry, partial_price, close):
        partial_lots = lot * share
        trade = make_trade(
            direction=direction, lot_size=lot, entry_price=entry, close_price=close,
            partials=[PartialClose(lot_size=partial_lots, price=partial_price)],
        )
        expected = (
            tranche_pl(direction, entry, partial_price, partial_lots, EURUSD)
            + tranche_pl(direction, entry, close, lot - partial_lots, EURUSD)
        )
        result = calculate_pnl(trade, EURUSD)
        assert abs(result.gross_pl - expected) <= 1e-6 * max(1.0, abs(expected))

    @given(trade=closed_trades())
    @settings(max_examples=50, deadline=None)
    def test_metrics_are_deterministic(self, trade):
        journal = make_journal([trade])
        first = compute_trade_metrics(trade, journal, APP_SETTINGS)
        second = compute_trade_metrics(trade, journal, APP_SETTINGS)
        assert first == second
