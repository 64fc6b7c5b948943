"""Save-trade workflow around the pure engine.

``TradeService`` is the one place that touches storage: it reads the
journal and settings through ``IJournalStore``, recomputes the saved
trade's metrics, writes the new journal snapshot and hands freshly
raised alerts to an ``IAlertSink``.

``InMemoryJournalStore`` implements all three store seams for tests and
single-process use.
"""

from __future__ import annotations

from dataclasses import dataclass

from tradelog.alerts import run_alert_engine
from tradelog.core.clock import IClock, WallClock
from tradelog.core.config import EngineSettings, default_settings
from tradelog.core.errors import JournalNotFound
from tradelog.core.interfaces import IAlertSink, IJournalStore, IJournalWriter
from tradelog.core.models import Alert, AppSettings, Journal, Trade
from tradelog.journal import compute_trade_metrics
from tradelog.observability.logger import get_logger, journal_context

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# InMemoryJournalStore
# ---------------------------------------------------------------------------


class InMemoryJournalStore:
    """Journals and settings held in process memory.

    Parameters
    ----------
    journals:
        Initial journals, keyed by their ``id``.
    app_settings:
        Application settings; defaults to an empty configuration.
    """

    def __init__(
        self,
        journals: list[Journal] | None = None,
        app_settings: AppSettings | None = None,
    ) -> None:
        self._journals: dict[str, Journal] = {j.id: j for j in journals or []}
        self._app_settings = app_settings or AppSettings()

    def get_journal(self, journal_id: str) -> Journal:
        journal = self._journals.get(journal_id)
        if journal is None:
            raise JournalNotFound(journal_id)
        return journal

    def get_app_settings(self) -> AppSettings:
        return self._app_settings

    def put_journal(self, journal: Journal) -> None:
        self._journals[journal.id] = journal

    def append_alerts(self, journal_id: str, alerts: list[Alert]) -> None:
        if not alerts:
            return
        journal = self.get_journal(journal_id)
        known = {a.id for a in journal.alerts}
        fresh = [a for a in alerts if a.id not in known]
        self._journals[journal_id] = journal.model_copy(
            update={"alerts": [*journal.alerts, *fresh]}
        )


# ---------------------------------------------------------------------------
# TradeService
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SaveResult:
    trade: Trade
    journal: Journal
    alerts: list[Alert]


def replace_trade(journal: Journal, trade: Trade) -> Journal:
    """Journal snapshot with ``trade`` inserted or replacing its old version."""
    if journal.find_trade(trade.id) is None:
        trades = [*journal.trades, trade]
    else:
        trades = [trade if t.id == trade.id else t for t in journal.trades]
    return journal.model_copy(update={"trades": trades})


class TradeService:
    """Recompute, store and scan a trade on every save.

    Parameters
    ----------
    store:
        Source of journals and app settings.
    writer:
        Receives the updated journal snapshot.
    sink:
        Receives the alerts raised by the save.
    settings:
        Engine weights and thresholds; defaults to the process settings.
    clock:
        Alert timestamp source.
    """

    def __init__(
        self,
        store: IJournalStore,
        writer: IJournalWriter,
        sink: IAlertSink,
        *,
        settings: EngineSettings | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._store = store
        self._writer = writer
        self._sink = sink
        self._settings = settings or default_settings()
        self._clock = clock or WallClock()

    def save_trade(self, journal_id: str, trade: Trade) -> SaveResult:
        """Insert or update ``trade`` in the journal.

        Raises
        ------
        JournalNotFound
            When the store has no journal ``journal_id``.
        """
        with journal_context(journal_id, trade.id):
            journal = self._store.get_journal(journal_id)
            app_settings = self._store.get_app_settings()

            auto = compute_trade_metrics(trade, journal, app_settings, config=self._settings)
            saved = trade.with_auto(auto)
            updated = replace_trade(journal, saved)

            alerts = run_alert_engine(
                updated, saved, config=self._settings.alerts, clock=self._clock
            )
            self._writer.put_journal(updated)
            self._sink.append_alerts(journal_id, alerts)

            logger.info("trade_saved", score=auto.score.value, alerts=len(alerts))
        return SaveResult(trade=saved, journal=updated, alerts=alerts)

