"""Tests for the per-trade alert detectors."""

from datetime import timedelta

import pytest

from tradelog.core.config import AlertConfig
from tradelog.core.enums import AlertCategory, AlertType, Direction, Outcome, TradeResult
from tradelog.core.models import BiasDeclaration, PairConfig
from tradelog.journal.metrics import compute_trade_metrics
from tradelog.alerts.per_trade import (
    detect_bias_conflict,
    detect_closed_before_tp,
    detect_largest_loss,
    detect_overconfidence,
    detect_profit_taking,
    detect_risk_drift,
    detect_rule_breach,
    streak_detector,
)

from tests.conftest import T0, make_app_settings, make_history, make_journal, make_scored, make_trade

W, L, N = Outcome.WIN, Outcome.LOSS, Outcome.NEUTRAL
CONFIG = AlertConfig()


def _run(detector, history, trade=None):
    trade = trade or history[-1]
    return detector(trade, history, make_journal(history), CONFIG)


def _after(history, trade):
    return [*history, trade]


def _next_time(history):
    return T0 + timedelta(hours=len(history))


class TestLargestLoss:

    def test_new_worst_loss(self):
        history = make_history([L] * 5)
        worst = make_scored("x", L, -300.0, opened_at=_next_time(history))
        finding = _run(detect_largest_loss, _after(history, worst))
        assert finding.category == AlertCategory.LARGEST_LOSS
        assert finding.type == AlertType.WARNING
        assert finding.trade_id == "x"
        assert finding.message.startswith("What: This trade is your largest loss")

    def test_not_below_previous_worst(self):
        history = make_history([L] * 5)
        equal = make_scored("x", L, -100.0, opened_at=_next_time(history))
        assert _run(detect_largest_loss, _after(history, equal)) is None

    def test_needs_five_prior_losses(self):
        history = make_history([L] * 4 + [W])
        worst = make_scored("x", L, -300.0, opened_at=_next_time(history))
        assert _run(detect_largest_loss, _after(history, worst)) is None

    def test_wins_ignored(self):
        assert _run(detect_largest_loss, make_history([L] * 5 + [W])) is None

    def test_only_earlier_losses_count(self):
        history = make_history([L] * 5)
        earliest = make_scored("x", L, -300.0, opened_at=T0 - timedelta(hours=1))
        assert _run(detect_largest_loss, [earliest, *history], trade=earliest) is None


class TestClosedBeforeTp:

    def test_manual_close_leaves_money(self):
        trade = make_scored("x", W, 400.0, result=TradeResult.STOP)
        finding = _run(detect_closed_before_tp, [trade])
        assert finding.category == AlertCategory.CLOSED_BEFORE_TP
        assert finding.type == AlertType.INFORMATIONAL
        assert finding.meta["left_on_table"] == pytest.approx(600)
        assert "~$600.00" in finding.message

    def test_target_hit(self):
        trade = make_scored("x", W, 1000.0, result=TradeResult.TP)
        assert _run(detect_closed_before_tp, [trade]) is None

    def test_without_target(self):
        trade = make_scored("x", W, 400.0, result=TradeResult.STOP, take_profit=None)
        assert _run(detect_closed_before_tp, [trade]) is None

    def test_gap_below_a_dollar(self):
        trade = make_scored("x", W, 999.5, result=TradeResult.STOP)
        assert _run(detect_closed_before_tp, [trade]) is None

    def test_valued_with_trade_pricing(self):
        app_settings = make_app_settings(
            pairs_config={"NAS100": PairConfig(pip_size=1, pip_value=1, spread=0)}
        )
        trade = make_trade(
            "nas", symbol="NAS100", entry_price=15000, stop_loss=14950,
            take_profit=15100, close_price=15050,
        )
        trade = trade.with_auto(compute_trade_metrics(trade, make_journal([trade]), app_settings))
        assert trade.auto.pl == pytest.approx(50)
        assert trade.auto.result == TradeResult.STOP

        finding = _run(detect_closed_before_tp, [trade])
        assert finding.meta["left_on_table"] == pytest.approx(50)
        assert "~$50.00" in finding.message


class TestBiasConflict:

    BULL = [BiasDeclaration(structure="Bullish", timeframe="4h")]
    BEAR = [BiasDeclaration(structure="Bearish", timeframe="4h")]

    def _history(self, aligned: int, conflicting: int):
        trades = []
        for i in range(aligned):
            trades.append(make_scored(f"a{i}", W, 100.0, opened_at=T0 + timedelta(hours=i),
                                      bias=self.BULL))
        for i in range(conflicting):
            trades.append(make_scored(f"c{i}", L, -100.0,
                                      opened_at=T0 + timedelta(hours=aligned + i), bias=self.BEAR))
        return trades

    def test_conflict_with_worse_record(self):
        history = self._history(aligned=6, conflicting=4)
        finding = _run(detect_bias_conflict, history)
        assert finding.category == AlertCategory.TRADING_AGAINST_BIAS
        assert "100% higher" in finding.message

    def test_aligned_trade_is_silent(self):
        history = self._history(aligned=6, conflicting=4)
        assert _run(detect_bias_conflict, history, trade=history[0]) is None

    def test_too_few_biased_trades(self):
        assert _run(detect_bias_conflict, self._history(aligned=5, conflicting=4)) is None

    def test_sell_against_bullish_bias(self):
        history = self._history(aligned=9, conflicting=0)
        trade = make_scored("s", L, -100.0, opened_at=_next_time(history),
                            direction=Direction.SELL, bias=self.BULL)
        assert _run(detect_bias_conflict, _after(history, trade)) is not None


class TestRiskDrift:

    def _history(self):
        return make_history([W, L] * 10, risk_percent=1.0)

    def test_oversized_loss(self):
        history = self._history()
        trade = make_scored("x", L, -300.0, opened_at=_next_time(history), risk_percent=2.0)
        finding = _run(detect_risk_drift, _after(history, trade))
        assert finding.type == AlertType.WARNING
        assert "You risked 2.0%" in finding.message

    def test_small_risk_win(self):
        history = self._history()
        trade = make_scored("x", W, 100.0, opened_at=_next_time(history), risk_percent=0.4)
        finding = _run(detect_risk_drift, _after(history, trade))
        assert finding.type == AlertType.INFORMATIONAL
        assert finding.category == AlertCategory.RISK_MANAGEMENT

    def test_normal_risk(self):
        history = self._history()
        trade = make_scored("x", L, -100.0, opened_at=_next_time(history), risk_percent=1.2)
        assert _run(detect_risk_drift, _after(history, trade)) is None

    def test_short_history(self):
        history = make_history([L] * 10, risk_percent=1.0)
        trade = make_scored("x", L, -300.0, opened_at=_next_time(history), risk_percent=5.0)
        assert _run(detect_risk_drift, _after(history, trade)) is None


class TestProfitTaking:

    def test_cutting_winners_short(self):
        history = make_history([W, L, W] * 5, realized_r=1.0)
        finding = _run(detect_profit_taking, history)
        assert finding.category == AlertCategory.PROFIT_TAKING
        assert finding.type == AlertType.ACTIONABLE_INSIGHT
        assert "(1.0R)" in finding.message

    def test_healthy_average_win(self):
        history = make_history([W, L, W] * 5, realized_r=2.5)
        trade = make_scored("x", W, 100.0, opened_at=_next_time(history), realized_r=1.0)
        assert _run(detect_profit_taking, _after(history, trade)) is None

    def test_big_win_is_silent(self):
        history = make_history([W, L, W] * 5, realized_r=1.0)
        trade = make_scored("x", W, 100.0, opened_at=_next_time(history), realized_r=2.0)
        assert _run(detect_profit_taking, _after(history, trade)) is None

    def test_short_history(self):
        assert _run(detect_profit_taking, make_history([W] * 5, realized_r=1.0)) is None


class TestRuleBreach:

    def test_low_score_with_remarks(self):
        trade = make_scored("x", L, -100.0, score=40,
                            remark="Exceeded max risk. Pair not in plan.")
        finding = _run(detect_rule_breach, [trade])
        assert "(Exceeded max risk)" in finding.message
        assert finding.meta["breaches"] == ["Exceeded max risk", "Pair not in plan"]

    def test_high_score(self):
        trade = make_scored("x", L, -100.0, score=85, remark="Pair not in plan.")
        assert _run(detect_rule_breach, [trade]) is None

    def test_low_score_without_remarks(self):
        assert _run(detect_rule_breach, [make_scored("x", L, -100.0, score=20)]) is None


class TestOverconfidence:

    def test_bigger_lot_after_win(self):
        history = make_history([W])
        trade = make_scored("x", L, -200.0, opened_at=_next_time(history), lot_size=2.0)
        finding = _run(detect_overconfidence, _after(history, trade))
        assert finding.category == AlertCategory.POTENTIAL_OVERCONFIDENCE
        assert finding.meta == {"lot_size": 2.0, "previous_lot_size": 1.0}

    def test_lot_increase_at_threshold(self):
        history = make_history([W])
        trade = make_scored("x", L, -200.0, opened_at=_next_time(history), lot_size=1.5)
        assert _run(detect_overconfidence, _after(history, trade)) is None

    def test_first_trade(self):
        assert _run(detect_overconfidence, [make_scored("x", L, -1.0, lot_size=5.0)]) is None


class TestStreaks:
    """A streak alert fires only on the trade that completes the run."""

    @pytest.mark.parametrize("length", [3, 5])
    def test_fires_exactly_once_per_run(self, length):
        detector = streak_detector(length)
        history = make_history([L] * (length + 2))
        fired = [
            i for i, trade in enumerate(history)
            if _run(detector, history, trade=trade) is not None
        ]
        assert fired == [length - 1]

    def test_win_streak(self):
        history = make_history([L, W, W, W])
        finding = _run(streak_detector(3), history)
        assert finding.category == AlertCategory.WIN_STREAK
        assert finding.type == AlertType.SUCCESS
        assert "3-trade winning streak" in finding.message

    def test_losing_streak_message(self):
        finding = _run(streak_detector(5), make_history([W] + [L] * 5))
        assert finding.category == AlertCategory.LOSING_STREAK
        assert "lost 5 trades in a row" in finding.message

    def test_neutral_breaks_run(self):
        assert _run(streak_detector(3), make_history([W, N, W, W])) is None

    def test_named_by_length(self):
        assert streak_detector(5).__name__ == "detect_streak_5"
