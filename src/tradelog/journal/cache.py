"""Memoisation of per-trade metrics.

Metrics are a pure function of the trade and its context, so a reader
that re-renders the same journal can reuse earlier results.  Entries are
keyed on ``(trade_id, trade content hash, settings_version)``, where the
settings version covers everything else ``compute_trade_metrics`` reads:
capital, plan, strategies, the rest of the trade ledger and AppSettings.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from tradelog.core.config import EngineSettings
from tradelog.core.ids import payload_hash
from tradelog.core.models import AppSettings, AutoCalculated, Journal, Trade

from .metrics import compute_trade_metrics

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str, str]


def trade_fingerprint(trade: Trade) -> str:
    """Content hash of the user-entered fields (the ``auto`` block excluded)."""
    return payload_hash(trade.model_dump(mode="json", exclude={"auto"}))


def settings_version(journal: Journal, app_settings: AppSettings) -> str:
    """Hash of every input besides the trade that metrics depend on."""
    return payload_hash({
        "type": journal.type.value,
        "capital": journal.capital,
        "plan": journal.plan.model_dump(mode="json"),
        "strategies": [s.model_dump(mode="json") for s in journal.strategies],
        "ledger": [
            (t.id, trade_fingerprint(t), t.auto.model_dump(mode="json") if t.auto else None)
            for t in journal.trades
        ],
        "settings": app_settings.model_dump(mode="json"),
    })


class MetricsCache:
    """Bounded LRU cache in front of ``compute_trade_metrics``.

    Parameters
    ----------
    max_entries : int
        Entries kept before the least recently used is evicted.
    config : EngineSettings, optional
        Weights passed through to the computation.
    """

    def __init__(
        self,
        *,
        max_entries: int = 10_000,
        config: EngineSettings | None = None,
    ) -> None:
        self._max_entries = max_entries
        self._config = config
        self._entries: OrderedDict[_CacheKey, AutoCalculated] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def get(
        self,
        trade: Trade,
        journal: Journal,
        app_settings: AppSettings,
        *,
        version: str | None = None,
    ) -> AutoCalculated:
        """Cached metrics of ``trade``, computing them on a miss.

        Pass ``version`` when looking up many trades of one snapshot so
        the settings hash is computed once.
        """
        if version is None:
            version = settings_version(journal, app_settings)
        key = (trade.id, trade_fingerprint(trade), version)

        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached

        self.misses += 1
        auto = compute_trade_metrics(trade, journal, app_settings, config=self._config)
        self._entries[key] = auto
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted metrics for trade %s", evicted[0])
        return auto

    def compute_all(self, journal: Journal, app_settings: AppSettings) -> list[Trade]:
        """Every journal trade with its metrics attached, in journal order."""
        version = settings_version(journal, app_settings)
        return [
            trade.with_auto(self.get(trade, journal, app_settings, version=version))
            for trade in journal.trades
        ]
