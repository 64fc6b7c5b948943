"""Alert engine orchestration.

Runs the per-trade detectors on every save and the periodic detectors
every ``AlertConfig.periodic_every`` live trades.  Each detector runs in
its own guard: an exception, or a return value that is not a
``Finding``, is logged and skipped so the other detectors still report.

Usage::

    alerts = run_alert_engine(journal, saved_trade, clock=FixedClock())
"""

from __future__ import annotations

from tradelog.core.clock import IClock, WallClock
from tradelog.core.config import AlertConfig, default_settings
from tradelog.core.errors import DetectorError
from tradelog.core.models import Alert, Journal, Trade
from tradelog.observability.logger import get_logger

from .base import Detector, Finding
from .per_trade import PER_TRADE_DETECTORS, streak_detector
from .periodic import PERIODIC_DETECTORS

logger = get_logger(__name__)


def build_history(journal: Journal, trade: Trade) -> list[Trade]:
    """Live trades with metrics, ``trade`` replacing its stored version.

    Sorted by open time; ``sorted`` is stable, so trades opened at the
    same instant keep their journal order.
    """
    others = [
        t for t in journal.trades
        if t.id != trade.id and not t.is_missing and t.auto is not None
    ]
    return sorted([*others, trade], key=lambda t: t.opened_at)


def per_trade_catalogue(config: AlertConfig) -> list[Detector]:
    return [*PER_TRADE_DETECTORS, *(streak_detector(n) for n in config.streak_lengths)]


def is_periodic_run(history: list[Trade], config: AlertConfig) -> bool:
    return bool(history) and len(history) % config.periodic_every == 0


def _run_guarded(
    detector: Detector,
    trade: Trade,
    history: list[Trade],
    journal: Journal,
    config: AlertConfig,
) -> Finding | None:
    name = getattr(detector, "__name__", repr(detector))
    try:
        finding = detector(trade, history, journal, config)
        if finding is not None and not isinstance(finding, Finding):
            raise DetectorError(name, f"returned {type(finding).__name__}")
        return finding
    except Exception:
        logger.exception("alert_detector_failed", detector=name, trade_id=trade.id)
        return None


def _collect(
    journal: Journal,
    trade: Trade,
    config: AlertConfig,
    clock: IClock,
) -> list[Alert]:
    if trade.is_missing:
        return []
    if trade.auto is None:
        logger.warning("alert_engine_skipped", reason="trade has no metrics", trade_id=trade.id)
        return []

    history = build_history(journal, trade)
    detectors = per_trade_catalogue(config)
    if is_periodic_run(history, config):
        detectors.extend(PERIODIC_DETECTORS)

    findings = [
        finding
        for finding in (_run_guarded(d, trade, history, journal, config) for d in detectors)
        if finding is not None
    ]
    now = clock.now()
    alerts = [f.to_alert(now, trigger_id=trade.id) for f in findings]
    if alerts:
        logger.info(
            "alerts_raised",
            trade_id=trade.id,
            categories=[a.category.value for a in alerts],
        )
    return alerts


def run_alert_engine(
    journal: Journal,
    trade: Trade,
    *,
    config: AlertConfig | None = None,
    clock: IClock | None = None,
) -> list[Alert]:
    """Scan the history for patterns triggered by saving ``trade``.

    Parameters
    ----------
    journal : Journal
        Journal snapshot; its stored copy of ``trade`` (if any) is replaced
        by the argument.
    trade : Trade
        The inserted or updated trade, carrying fresh metrics.
    config : AlertConfig, optional
        Detector thresholds; defaults to the process settings.
    clock : IClock, optional
        Source of alert timestamps; defaults to wall-clock time.

    Returns
    -------
    list[Alert]
        Possibly empty.  Never raises.
    """
    try:
        return _collect(
            journal,
            trade,
            config or default_settings().alerts,
            clock or WallClock(),
        )
    except Exception:
        logger.exception("alert_engine_failed", trade_id=getattr(trade, "id", None))
        return []
