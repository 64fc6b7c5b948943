"""Enumerations used across the journal engine."""

from enum import Enum


class Direction(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class TradeStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class TradeResult(str, Enum):
    """How a closed trade ended relative to its planned levels."""

    TP = "TP"
    SL = "SL"
    BE = "BE"
    STOP = "Stop"  # Closed manually / at a protective stop
    RUNNING = "Running"


class Outcome(str, Enum):
    WIN = "Win"
    LOSS = "Loss"
    NEUTRAL = "Neutral"


class SentimentStage(str, Enum):
    BEFORE = "Before"
    DURING = "During"
    AFTER = "After"


class Impact(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"


class ScoreImpact(str, Enum):
    """Impact tag carried by a custom-field option."""

    MOST_POSITIVE = "Most Positive"
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    MOST_NEGATIVE = "Most Negative"

    @property
    def sign(self) -> int:
        return 1 if self in (ScoreImpact.MOST_POSITIVE, ScoreImpact.POSITIVE) else -1


class KeywordKind(str, Enum):
    SENTIMENT = "Sentiment"
    KEYWORD = "Keyword"


class CustomFieldType(str, Enum):
    LIST = "List"
    BUTTON = "Button"
    PLAIN_TEXT = "Plain Text"
    NUMERIC = "Numeric"
    DATE = "Date"
    TIME = "Time"


class NewsImpact(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    HOLIDAY = "Holiday"

    @property
    def rank(self) -> int:
        return {"High": 3, "Medium": 2, "Low": 1, "Holiday": 0}[self.value]


class AmountUnit(str, Enum):
    PERCENT = "%"
    AMOUNT = "$"


class BreakevenType(str, Enum):
    NONE = "No Break Even"
    BREAK_EVEN = "Break Even"
    TRAIL_SL = "Trail SL"


class JournalType(str, Enum):
    REAL = "Real"
    DEMO = "Demo"
    BACKTEST = "Backtest"
    FUNDED = "Funded"
    COMPETITION = "Competition"
    OTHER = "Other"


class RuleUnit(str, Enum):
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


class ScoreColor(str, Enum):
    GREEN = "#16a34a"
    YELLOW = "#f59e0b"
    RED = "#ef4444"
    GREY = "#888888"


class AlertType(str, Enum):
    WARNING = "Warning"
    SUCCESS = "Success"
    INFORMATIONAL = "Informational"
    ACTIONABLE_INSIGHT = "Actionable Insight"


class AlertCategory(str, Enum):
    LARGEST_LOSS = "Largest Loss"
    WIN_STREAK = "Win Streak"
    LOSING_STREAK = "Losing Streak"
    CLOSED_BEFORE_TP = "Closed Before TP"
    BEST_SETUP_UNDERUSED = "Best Setup Underused"
    UNPROFITABLE_PATTERN = "Unprofitable Pattern"
    DISCIPLINE_VS_PERFORMANCE = "Discipline vs. Performance"
    TRADING_AGAINST_BIAS = "Trading against Bias"
    RISK_MANAGEMENT = "Risk Management"
    PROFIT_TAKING = "Profit Taking"
    BREAK_EVEN_RUT = "Break-Even Rut"
    LOW_RISK_TO_REWARD = "Low Risk-to-Reward"
    RULE_BREACHED = "Rule Breached"
    POTENTIAL_OVERCONFIDENCE = "Potential Overconfidence"
