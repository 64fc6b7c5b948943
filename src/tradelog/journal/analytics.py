"""Group-level trade statistics.

Consumed by dashboards and by the alert engine's periodic checks.  All
functions read the ``auto`` block of each trade; trades that were never
computed and missing placeholders are left out.

Usage::

    metrics = calculate_group_metrics(journal.trades, settings, journal.capital)
    print(metrics.win_rate, metrics.profit_factor)
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date

from tradelog.core.enums import Outcome, TradeResult
from tradelog.core.models import AppSettings, Journal, Trade

from .pricing import resolve_pricing
from .risk import risk_amount

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MD_MIN_TRADES = 5


def scored_trades(trades: Iterable[Trade]) -> list[Trade]:
    """Live trades that carry computed metrics."""
    return [t for t in trades if t.auto is not None and not t.is_missing]


def format_duration(minutes: float) -> str:
    if minutes < 1:
        return "<1m"
    if minutes < 60:
        return f"{minutes:.0f}m"
    if minutes < 1440:
        return f"{minutes / 60:.1f}h"
    return f"{minutes / 1440:.1f}d"


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """``gross_profit / gross_loss``; ``inf`` with profit and no losses."""
    if gross_loss > 0:
        return gross_profit / gross_loss
    return float("inf") if gross_profit > 0 else 0.0


def max_streaks(outcomes: Iterable[Outcome]) -> tuple[int, int]:
    """Longest (win, loss) runs; neutral results break both."""
    best_win = best_loss = win = loss = 0
    for outcome in outcomes:
        if outcome == Outcome.WIN:
            win, loss = win + 1, 0
        elif outcome == Outcome.LOSS:
            win, loss = 0, loss + 1
        else:
            win = loss = 0
        best_win = max(best_win, win)
        best_loss = max(best_loss, loss)
    return best_win, best_loss


# ------------------------------------------------------------------ #
# Buckets                                                              #
# ------------------------------------------------------------------ #

@dataclass
class BucketStats:
    """Accumulator for one group of trades (a weekday, a strategy ...)."""

    trades: int = 0
    wins: int = 0
    total_pl: float = 0.0
    total_r: float = 0.0

    def record(self, trade: Trade) -> None:
        self.trades += 1
        self.total_pl += trade.auto.pl
        self.total_r += trade.auto.realized_r
        if trade.auto.outcome == Outcome.WIN:
            self.wins += 1

    @property
    def avg_r(self) -> float:
        return self.total_r / self.trades if self.trades else 0.0

    @property
    def win_rate(self) -> float:
        return self.wins / self.trades * 100 if self.trades else 0.0


def bucket_by(
    trades: Iterable[Trade], key: Callable[[Trade], str | None]
) -> dict[str, BucketStats]:
    """Group scored trades by ``key``; a ``None`` key drops the trade."""
    buckets: dict[str, BucketStats] = defaultdict(BucketStats)
    for trade in scored_trades(trades):
        name = key(trade)
        if name is not None:
            buckets[name].record(trade)
    return dict(buckets)


def weekday_name(trade: Trade) -> str:
    return DAY_NAMES[trade.opened_at.weekday()]


# ------------------------------------------------------------------ #
# Group metrics                                                        #
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class GroupMetrics:
    trades: int = 0
    win_count: int = 0
    loss_count: int = 0
    breakeven_count: int = 0
    profit: float = 0.0
    loss: float = 0.0  # negative
    total_pl: float = 0.0
    gain_percent: float = 0.0
    win_rate: float = 0.0  # percent
    profit_factor: float = 0.0
    expectancy: float = 0.0
    avg_pl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    avg_lot_size: float = 0.0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    avg_duration_minutes: float = 0.0
    avg_duration: str = "0m"
    avg_score: float = 0.0
    avg_win_score: float = 0.0
    avg_loss_score: float = 0.0
    avg_planned_rr: float = 0.0
    total_r: float = 0.0
    avg_r: float = 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_group_metrics(
    trades: Iterable[Trade],
    app_settings: AppSettings,
    capital: float,
) -> GroupMetrics:
    """Aggregate statistics of a trade set.

    Parameters
    ----------
    trades : iterable of Trade
        Trades in chronological order (streaks depend on it).
    app_settings : AppSettings
        Pricing table used to derive each trade's risk amount for R.
    capital : float
        Journal capital for ``gain_percent``.
    """
    group = scored_trades(trades)
    if not group:
        return GroupMetrics()

    n = len(group)
    wins = [t for t in group if t.auto.outcome == Outcome.WIN]
    losses = [t for t in group if t.auto.outcome == Outcome.LOSS]
    gross_profit = sum(t.auto.pl for t in wins)
    gross_loss = abs(sum(t.auto.pl for t in losses))
    total_pl = gross_profit - gross_loss
    win_rate = len(wins) / n
    loss_rate = len(losses) / n
    avg_win = gross_profit / len(wins) if wins else 0.0
    avg_loss = gross_loss / len(losses) if losses else 0.0

    total_r = 0.0
    for trade in group:
        amount = risk_amount(trade, resolve_pricing(trade.symbol, app_settings.pairs_config))
        if amount > 0:
            total_r += trade.auto.pl / amount

    max_win, max_loss = max_streaks(t.auto.outcome for t in group)
    avg_duration = _mean([t.auto.duration_minutes for t in group])

    return GroupMetrics(
        trades=n,
        win_count=len(wins),
        loss_count=len(losses),
        breakeven_count=sum(1 for t in group if t.auto.result == TradeResult.BE),
        profit=gross_profit,
        loss=-gross_loss,
        total_pl=total_pl,
        gain_percent=total_pl / capital * 100 if capital > 0 else 0.0,
        win_rate=win_rate * 100,
        profit_factor=profit_factor(gross_profit, gross_loss),
        expectancy=win_rate * avg_win - loss_rate * avg_loss,
        avg_pl=total_pl / n,
        avg_win=avg_win,
        avg_loss=avg_loss,
        avg_lot_size=_mean([t.lot_size for t in group]),
        max_win_streak=max_win,
        max_loss_streak=max_loss,
        avg_duration_minutes=avg_duration,
        avg_duration=format_duration(avg_duration),
        avg_score=_mean([t.auto.score.value for t in group]),
        avg_win_score=_mean([t.auto.score.value for t in wins]),
        avg_loss_score=_mean([t.auto.score.value for t in losses]),
        avg_planned_rr=_mean([t.auto.rr for t in group]),
        total_r=total_r,
        avg_r=total_r / n,
    )


# ------------------------------------------------------------------ #
# Overall stats                                                        #
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class OverallStats:
    total_trades: int
    win_count: int
    loss_count: int
    gross_win_pl: float
    gross_loss_pl: float
    total_pl: float
    day_count: int
    avg_pl: float
    per_day_pl: float
    avg_duration: str
    avg_trade_gap: str
    best_time: str
    avg_score: float
    highest_score: float
    lowest_score: float
    current_streak: tuple[Outcome, int]
    max_win_streak: int
    max_loss_streak: int
    pl_by_day: dict[date, float] = field(default_factory=dict)


def calculate_overall_stats(trades: Iterable[Trade]) -> OverallStats | None:
    """Headline statistics of a journal; ``None`` when nothing is scored."""
    ordered = sorted(scored_trades(trades), key=lambda t: t.opened_at)
    if not ordered:
        return None

    n = len(ordered)
    pls = [t.auto.pl for t in ordered]
    gross_win = sum(pl for pl in pls if pl > 0)
    gross_loss = sum(pl for pl in pls if pl < 0)
    total_pl = gross_win + gross_loss

    first_day = ordered[0].open_date
    last = ordered[-1]
    last_day = (last.closed_at or last.opened_at).date()
    day_count = max(1, (last_day - first_day).days)

    gaps = [
        (cur.opened_at - (prev.closed_at or prev.opened_at)).total_seconds() / 60
        for prev, cur in zip(ordered, ordered[1:])
    ]

    by_hour: dict[int, float] = defaultdict(float)
    by_day: dict[date, float] = defaultdict(float)
    for trade in ordered:
        by_hour[trade.opened_at.hour] += trade.auto.pl
        by_day[trade.open_date] += trade.auto.pl
    best_hour = max(by_hour.items(), key=lambda kv: kv[1])[0]

    last_outcome = ordered[-1].auto.outcome
    run = 0
    for trade in reversed(ordered):
        if trade.auto.outcome != last_outcome:
            break
        run += 1
    max_win, max_loss = max_streaks(t.auto.outcome for t in ordered)
    scores = [t.auto.score.value for t in ordered]

    return OverallStats(
        total_trades=n,
        win_count=sum(1 for t in ordered if t.auto.outcome == Outcome.WIN),
        loss_count=sum(1 for t in ordered if t.auto.outcome == Outcome.LOSS),
        gross_win_pl=gross_win,
        gross_loss_pl=abs(gross_loss),
        total_pl=total_pl,
        day_count=day_count,
        avg_pl=total_pl / n,
        per_day_pl=total_pl / day_count,
        avg_duration=format_duration(_mean([t.auto.duration_minutes for t in ordered])),
        avg_trade_gap=format_duration(_mean(gaps)),
        best_time=f"{best_hour:02d}:00",
        avg_score=_mean(scores),
        highest_score=max(scores),
        lowest_score=min(scores),
        current_streak=(last_outcome, run),
        max_win_streak=max_win,
        max_loss_streak=max_loss,
        pl_by_day=dict(by_day),
    )


# ------------------------------------------------------------------ #
# MD score                                                             #
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class MdScore:
    """100-point composite: profitability 30, consistency 30, risk 20, discipline 20."""

    total_score: float = 0.0
    profitability_score: float = 0.0
    consistency_score: float = 0.0
    risk_management_score: float = 0.0
    discipline_score: float = 0.0
    feedback: str = f"Need at least {MD_MIN_TRADES} trades to calculate a meaningful MD Score."


def _md_feedback(score: MdScore) -> str:
    # Weak components override the overall band, last one checked wins
    feedback = "A solid, balanced performance. Keep refining your edge."
    if score.total_score >= 85:
        feedback = "Exceptional performance! You are demonstrating mastery across all key areas."
    elif score.total_score >= 70:
        feedback = "Very good performance. You have a profitable and consistent approach."
    elif score.total_score < 50:
        feedback = "Area for improvement. Focus on strengthening your weakest component."
    if score.profitability_score < 10:
        feedback = "Profitability is low. Review your strategy for a better risk/reward profile."
    if score.consistency_score < 10:
        feedback = "Consistency needs work. Analyze your win rate and the volatility of your returns."
    if score.risk_management_score < 10:
        feedback = "Risk management is a concern. Re-evaluate your position sizing and stop loss strategy."
    if score.discipline_score < 10:
        feedback = "Discipline is lacking. Adhere more closely to your trading plan and checklists."
    return feedback


def calculate_md_score(journal: Journal) -> MdScore:
    """Composite journal grade; neutral below ``MD_MIN_TRADES`` scored trades."""
    group = scored_trades(journal.trades)
    if len(group) < MD_MIN_TRADES:
        return MdScore()

    pls = [t.auto.pl for t in group]
    gross_profit = sum(pl for pl in pls if pl > 0)
    gross_loss = abs(sum(pl for pl in pls if pl < 0))
    # No losses caps the factor at 3, the level that earns full marks
    factor = gross_profit / gross_loss if gross_loss > 0 else (3.0 if gross_profit > 0 else 0.0)
    profitability = min(30.0, max(0.0, factor / 3 * 30))

    win_rate = sum(1 for t in group if t.auto.outcome == Outcome.WIN) / len(group)
    mean_return = statistics.fmean(pls)
    std_dev = statistics.pstdev(pls)
    sharpe = mean_return / std_dev if std_dev > 0 else 0.0
    consistency = min(30.0, max(0.0, win_rate * 20 + max(0.0, sharpe) * 10))

    limit = journal.rules.max_drawdown.limit(journal.capital)
    usage = journal.current_max_drawdown / limit * 100 if limit > 0 else 0.0
    risk_management = max(0.0, 20 - usage / 5)

    discipline = statistics.fmean(t.auto.score.value for t in group) / 100 * 20

    score = MdScore(
        total_score=profitability + consistency + risk_management + discipline,
        profitability_score=profitability,
        consistency_score=consistency,
        risk_management_score=risk_management,
        discipline_score=discipline,
    )
    return replace(score, feedback=_md_feedback(score))
