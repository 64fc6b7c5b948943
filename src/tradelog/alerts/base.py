"""Shared types for alert detectors.

A detector is a plain function::

    def detect(trade, history, journal, config) -> Finding | None

``trade`` is the triggering trade (with fresh metrics), ``history`` the
chronologically sorted live trades including it.  Detectors return a
``Finding`` or ``None``; the engine turns findings into ``Alert`` records
with a deterministic id and a clock timestamp.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tradelog.core.config import AlertConfig
from tradelog.core.enums import AlertCategory, AlertType
from tradelog.core.ids import content_hash
from tradelog.core.models import Alert, Journal, Trade


@dataclass(frozen=True)
class Finding:
    """A single behavioural pattern spotted by a detector."""

    category: AlertCategory
    type: AlertType
    message: str
    trade_id: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def to_alert(self, timestamp: datetime, trigger_id: str = "") -> Alert:
        """Stamp the finding; findings without a trade hash on ``trigger_id``."""
        alert_id = content_hash(
            self.category.value, self.type.value, self.trade_id or trigger_id, self.message
        )
        return Alert(
            id=alert_id,
            category=self.category,
            type=self.type,
            message=self.message,
            timestamp=timestamp,
            trade_id=self.trade_id,
            meta=dict(self.meta),
        )


Detector = Callable[[Trade, list[Trade], Journal, AlertConfig], "Finding | None"]


def insight(what: str, why: str, next_step: str) -> str:
    """Alert text in the journal's What / Why / Next layout."""
    return f"What: {what} Why: {why} Next: {next_step}"


def position_of(trade: Trade, history: list[Trade]) -> int:
    """Index of ``trade`` in ``history`` (by id), -1 when absent."""
    for index, candidate in enumerate(history):
        if candidate.id == trade.id:
            return index
    return -1


def trades_before(trade: Trade, history: list[Trade]) -> list[Trade]:
    """History up to, not including, ``trade``."""
    index = position_of(trade, history)
    return history[:index] if index >= 0 else list(history)
