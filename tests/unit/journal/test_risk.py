"""Tests for the risk / reward calculator."""

import pytest

from tradelog.core.models import LayeredEntry
from tradelog.journal.risk import calculate_risk, level_distance_pips, risk_amount

from tests.conftest import EURUSD, make_trade


class TestLevelDistance:

    def test_distance_in_pips(self):
        assert level_distance_pips(1.1000, 1.0950, 0.0001) == pytest.approx(50)
        assert level_distance_pips(1.1000, 1.1100, 0.0001) == pytest.approx(100)

    @pytest.mark.parametrize("level", [None, 0, -1.0])
    def test_unset_level_is_zero(self, level):
        assert level_distance_pips(1.1000, level, 0.0001) == 0.0


class TestCalculateRisk:

    def test_eurusd_worked_example(self):
        trade = make_trade(close_price=1.1100)
        rr = calculate_risk(trade, EURUSD, net_pl=1000.0, capital=10_000)
        assert rr.risk_pips == pytest.approx(50)
        assert rr.risk_amount == pytest.approx(500)
        assert rr.reward_pips == pytest.approx(100)
        assert rr.reward_amount == pytest.approx(1000)
        assert rr.planned_rr == pytest.approx(2.0)
        assert rr.realized_r == pytest.approx(2.0)
        assert rr.risk_percent == pytest.approx(5.0)
        assert rr.gain_percent == pytest.approx(10.0)

    def test_no_stop_means_no_ratios(self):
        trade = make_trade(stop_loss=None, close_price=1.1100)
        rr = calculate_risk(trade, EURUSD, net_pl=1000.0, capital=10_000)
        assert rr.risk_amount == 0.0
        assert rr.planned_rr == 0.0
        assert rr.realized_r == 0.0

    def test_no_capital_means_no_percentages(self):
        rr = calculate_risk(make_trade(), EURUSD, net_pl=0.0, capital=0)
        assert rr.risk_percent == 0.0
        assert rr.gain_percent == 0.0

    def test_zero_lot_has_no_risk(self):
        rr = calculate_risk(make_trade(lot_size=0), EURUSD, net_pl=0.0, capital=10_000)
        assert rr.risk_amount == 0.0
        assert rr.risk_percent == 0.0


class TestRiskAmount:

    def test_layers_add_their_own_stop_distance(self):
        layer = LayeredEntry(lot_size=1.0, entry_price=1.1020, stop_loss=1.0970)
        assert risk_amount(make_trade(layers=[layer]), EURUSD) == pytest.approx(1000)

    def test_layer_without_stop_adds_nothing(self):
        layer = LayeredEntry(lot_size=1.0, entry_price=1.1020)
        assert risk_amount(make_trade(layers=[layer]), EURUSD) == pytest.approx(500)
