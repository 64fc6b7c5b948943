"""Per-trade analytics: pricing, sessions, P/L, risk, discipline and tilt.

``compute_trade_metrics`` is the entry point; the other modules are its
building blocks and are importable on their own for dashboards.
"""

from .analytics import (
    GroupMetrics,
    MdScore,
    OverallStats,
    calculate_group_metrics,
    calculate_md_score,
    calculate_overall_stats,
)
from .cache import MetricsCache
from .discipline import score_discipline
from .metrics import compute_trade_metrics
from .pnl import PnlBreakdown, calculate_pnl
from .pricing import resolve_pricing
from .risk import RiskReward, calculate_risk
from .sessions import classify_session, classify_zone
from .setups import match_setups
from .taxonomy import merge_analysis_configurations
from .tilt import compute_aggregate_tilt, compute_tilt

__all__ = [
    "GroupMetrics",
    "MdScore",
    "MetricsCache",
    "OverallStats",
    "PnlBreakdown",
    "RiskReward",
    "calculate_group_metrics",
    "calculate_md_score",
    "calculate_overall_stats",
    "calculate_pnl",
    "calculate_risk",
    "classify_session",
    "classify_zone",
    "compute_aggregate_tilt",
    "compute_tilt",
    "compute_trade_metrics",
    "match_setups",
    "merge_analysis_configurations",
    "resolve_pricing",
    "score_discipline",
]
