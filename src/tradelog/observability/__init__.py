"""Structured logging for the journal engine."""

from .logger import get_logger, journal_context, new_run_id, setup_logging

__all__ = ["get_logger", "journal_context", "new_run_id", "setup_logging"]
