"""Tests for the save-trade workflow and the in-memory store."""

from datetime import timedelta

import pytest

from tradelog.core.enums import AlertCategory
from tradelog.core.errors import JournalNotFound
from tradelog.core.interfaces import IAlertSink, IJournalStore, IJournalWriter
from tradelog.core.models import TradingPlan
from tradelog.service import InMemoryJournalStore, TradeService, replace_trade

from tests.conftest import T0, make_journal, make_losing_trade, make_trade, make_winning_trade


@pytest.fixture
def store(app_settings):
    # A plan the test trades follow, so only pattern alerts fire
    plan = TradingPlan(instruments=["EURUSD"], risk_per_trade=10.0)
    return InMemoryJournalStore([make_journal(plan=plan)], app_settings)


@pytest.fixture
def service(store, engine_settings, clock):
    return TradeService(store, store, store, settings=engine_settings, clock=clock)


class TestInMemoryJournalStore:

    def test_implements_store_protocols(self, store):
        assert isinstance(store, IJournalStore)
        assert isinstance(store, IJournalWriter)
        assert isinstance(store, IAlertSink)

    def test_unknown_journal(self, store):
        with pytest.raises(JournalNotFound) as exc_info:
            store.get_journal("nope")
        assert exc_info.value.journal_id == "nope"

    def test_default_settings(self):
        assert InMemoryJournalStore().get_app_settings().pairs_config


class TestReplaceTrade:

    def test_insert_then_update(self):
        journal = replace_trade(make_journal(), make_trade("a"))
        assert [t.id for t in journal.trades] == ["a"]
        updated = replace_trade(journal, make_trade("a", notes="edited"))
        assert [t.notes for t in updated.trades] == ["edited"]
        assert journal.trades[0].notes == ""


class TestTradeService:

    def test_save_computes_and_stores(self, service, store):
        result = service.save_trade("j1", make_winning_trade())
        assert result.trade.auto.pl == pytest.approx(1000)
        stored = store.get_journal("j1").find_trade("t1")
        assert stored.auto == result.trade.auto

    def test_resave_updates_in_place(self, service, store):
        service.save_trade("j1", make_winning_trade())
        service.save_trade("j1", make_losing_trade())
        journal = store.get_journal("j1")
        assert len(journal.trades) == 1
        assert journal.trades[0].auto.pl == pytest.approx(-500)

    def test_alerts_appended_once(self, service, store):
        for i in range(3):
            service.save_trade("j1", make_losing_trade(f"l{i}", opened_at=T0 + timedelta(hours=i)))
        journal = store.get_journal("j1")
        assert [a.category for a in journal.alerts] == [AlertCategory.LOSING_STREAK]

        result = service.save_trade("j1", make_losing_trade("l2", opened_at=T0 + timedelta(hours=2)))
        assert [a.category for a in result.alerts] == [AlertCategory.LOSING_STREAK]
        assert len(store.get_journal("j1").alerts) == 1

    def test_unknown_journal_raises(self, service):
        with pytest.raises(JournalNotFound):
            service.save_trade("missing", make_winning_trade())
