"""Protocol interfaces for the engine's external collaborators.

The engine itself is pure; reading journals/settings and persisting
alerts happen behind these narrow seams.  Implementations can be swapped
(in-memory, database, remote) without changing callers.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Alert, AppSettings, Journal


@runtime_checkable
class IJournalStore(Protocol):
    """Read-only access to journals and app-wide settings."""

    def get_journal(self, journal_id: str) -> Journal: ...

    def get_app_settings(self) -> AppSettings: ...


@runtime_checkable
class IJournalWriter(Protocol):
    """Replaces a journal snapshot after a trade was saved."""

    def put_journal(self, journal: Journal) -> None: ...


@runtime_checkable
class IAlertSink(Protocol):
    """Appends produced alerts to a journal's alert log."""

    def append_alerts(self, journal_id: str, alerts: list[Alert]) -> None: ...
