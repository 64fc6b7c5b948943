"""Custom exception hierarchy for the journal engine."""


class TradeLogError(Exception):
    """Base exception for all journal engine errors."""


# --- Configuration ---
class ConfigError(TradeLogError):
    """Invalid or missing configuration."""


# --- Data ---
class DataError(TradeLogError):
    """Malformed trade, journal or settings data."""


# --- Alerts ---
class DetectorError(TradeLogError):
    """An alert detector failed or returned an unexpected value."""

    def __init__(self, detector: str, reason: str):
        self.detector = detector
        self.reason = reason
        super().__init__(f"Detector [{detector}]: {reason}")


# --- Store ---
class StoreError(TradeLogError):
    """Journal store lookup or write failure."""


class JournalNotFound(StoreError):
    """No journal with the requested id."""

    def __init__(self, journal_id: str):
        self.journal_id = journal_id
        super().__init__(f"Journal not found: {journal_id}")
