"""structlog configuration for the journal engine.

Entry points (trade saves, CLI commands) open a run with ``new_run_id``
or ``journal_context``; every entry logged inside carries that ``run_id``,
so a detector failure can be tied back to the save that triggered it.

Output goes to stderr; stdout is left to the CLI's JSON payloads.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TextIO

import structlog

_run_id: ContextVar[str] = ContextVar("run_id", default="")


def new_run_id() -> str:
    """Start a new run and return its id."""
    rid = uuid.uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def current_run_id() -> str:
    """Id of the active run, starting one if none is open."""
    return _run_id.get() or new_run_id()


@contextmanager
def journal_context(journal_id: str, trade_id: str | None = None) -> Iterator[str]:
    """Open a run bound to a journal (and trade) for the ``with`` block.

    Yields the run id.  The bound fields are dropped on exit.
    """
    rid = new_run_id()
    fields: dict[str, Any] = {"journal_id": journal_id}
    if trade_id is not None:
        fields["trade_id"] = trade_id
    with structlog.contextvars.bound_contextvars(**fields):
        yield rid


def _stamp_run(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict["run_id"] = current_run_id()
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """Route engine logs through structlog.

    Args:
        level: Threshold name (DEBUG, INFO, WARNING, ERROR).
        format: "json" renders one object per line with structured
            tracebacks; "console" renders coloured, human-readable lines.
        stream: Destination; stderr when omitted.
    """
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _stamp_run,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if format == "json":
        tail: list[Any] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        tail = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[*shared, *tail],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
