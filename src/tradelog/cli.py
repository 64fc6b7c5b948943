"""CLI entry point for the journal engine.

Commands read a JSON snapshot, either a bare journal or
``{"journal": {...}, "app_settings": {...}}``, and print JSON to stdout.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from .alerts import run_alert_engine
from .core.config import EngineSettings, load_settings
from .core.errors import DataError, TradeLogError
from .core.models import AppSettings, Journal
from .journal import (
    MetricsCache,
    calculate_group_metrics,
    calculate_md_score,
    calculate_overall_stats,
)
from .journal.pricing import default_pairs_config
from .observability.logger import new_run_id, setup_logging


def _bootstrap(config: str | None) -> EngineSettings:
    try:
        settings = load_settings(config_path=config)
    except TradeLogError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )
    new_run_id()
    return settings


def load_snapshot(path: str | Path) -> tuple[Journal, AppSettings]:
    """Parse a snapshot file into a journal and its app settings.

    Without an ``app_settings`` block the shipped pricing table is used.
    """
    try:
        raw = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise DataError(f"Cannot read snapshot {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise DataError(f"Snapshot {path} must hold a JSON object")

    journal_data = raw.get("journal", raw)
    settings_data = raw.get("app_settings")
    try:
        journal = Journal.model_validate(journal_data)
        if settings_data is None:
            app_settings = AppSettings(pairs_config=default_pairs_config())
        else:
            app_settings = AppSettings.model_validate(settings_data)
    except ValidationError as exc:
        raise DataError(f"Invalid snapshot {path}: {exc}") from exc
    return journal, app_settings


def _read(path: str) -> tuple[Journal, AppSettings]:
    try:
        return load_snapshot(path)
    except DataError as exc:
        raise click.ClickException(str(exc)) from exc


def _finite(value: Any) -> Any:
    """Replace non-finite floats (an all-winning profit factor) with null."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    return value


def _emit(payload: Any) -> None:
    click.echo(json.dumps(_finite(payload), indent=2, default=str, allow_nan=False))


@click.group()
def main() -> None:
    """Trading journal analytics engine."""


@main.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", default=None, help="Engine settings TOML file")
@click.option("--trade", "trade_id", default=None, help="Only this trade id")
def metrics(snapshot: str, config: str | None, trade_id: str | None) -> None:
    """Recompute the derived metrics of every trade."""
    settings = _bootstrap(config)
    journal, app_settings = _read(snapshot)

    trades = MetricsCache(config=settings).compute_all(journal, app_settings)
    if trade_id is not None:
        trades = [t for t in trades if t.id == trade_id]
        if not trades:
            raise click.ClickException(f"Trade not found: {trade_id}")
    _emit({t.id: t.auto.model_dump(mode="json") for t in trades})


@main.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--trade", "trade_id", required=True, help="Triggering trade id")
@click.option("--config", default=None, help="Engine settings TOML file")
def alerts(snapshot: str, trade_id: str, config: str | None) -> None:
    """Run the alert engine as if TRADE had just been saved."""
    settings = _bootstrap(config)
    journal, app_settings = _read(snapshot)

    trades = MetricsCache(config=settings).compute_all(journal, app_settings)
    computed = journal.model_copy(update={"trades": trades})
    trade = computed.find_trade(trade_id)
    if trade is None:
        raise click.ClickException(f"Trade not found: {trade_id}")

    found = run_alert_engine(computed, trade, config=settings.alerts)
    _emit([a.model_dump(mode="json") for a in found])


@main.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", default=None, help="Engine settings TOML file")
def stats(snapshot: str, config: str | None) -> None:
    """Print group metrics, headline statistics and the MD score."""
    settings = _bootstrap(config)
    journal, app_settings = _read(snapshot)

    trades = MetricsCache(config=settings).compute_all(journal, app_settings)
    computed = journal.model_copy(update={"trades": trades})
    overall = calculate_overall_stats(trades)
    overall_data = None
    if overall is not None:
        overall_data = asdict(overall)
        overall_data["pl_by_day"] = {d.isoformat(): pl for d, pl in overall.pl_by_day.items()}
    _emit({
        "group": asdict(calculate_group_metrics(trades, app_settings, journal.capital)),
        "overall": overall_data,
        "md_score": asdict(calculate_md_score(computed)),
    })


if __name__ == "__main__":
    main()
