"""Behavioural alert detection over a journal's trade history."""

from .base import Finding
from .engine import run_alert_engine

__all__ = ["Finding", "run_alert_engine"]
