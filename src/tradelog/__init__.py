"""tradelog: trade analytics, discipline scoring and behavioural alerts.

Two pure entry points::

    from tradelog import compute_trade_metrics, run_alert_engine

    auto = compute_trade_metrics(trade, journal, app_settings)
    alerts = run_alert_engine(journal, trade.with_auto(auto))
"""

from tradelog.alerts import run_alert_engine
from tradelog.journal import compute_trade_metrics

__version__ = "0.1.0"

__all__ = ["compute_trade_metrics", "run_alert_engine"]
