"""
Tunable constants for the learner and the analyzers.

Defaults are the production values. ``from_env`` reads overrides through
``spendlens.core.settings`` so a ``.env`` file or ``config.yaml`` can adjust
them without code changes.
"""
from dataclasses import dataclass, field

from spendlens.core import settings

SENTINEL_CATEGORIES = frozenset({"Uncategorized", "Categorizing..."})


@dataclass(frozen=True)
class LearningPolicy:
    start_confidence: float = 0.3
    confidence_step: float = 0.05
    max_confidence: float = 0.95
    merchant_confidence: float = 0.9
    rules_confidence: float = 0.5
    high_confidence_threshold: float = 0.7
    max_patterns: int = 500
    min_token_length: int = 3
    min_gram_length: int = 3
    max_gram_size: int = 3
    sentinel_categories: frozenset[str] = SENTINEL_CATEGORIES

    @classmethod
    def from_env(cls) -> "LearningPolicy":
        return cls(
            start_confidence=settings.get_env_float("PATTERN_START_CONFIDENCE", cls.start_confidence),
            confidence_step=settings.get_env_float("PATTERN_CONFIDENCE_STEP", cls.confidence_step),
            max_confidence=settings.get_env_float("PATTERN_MAX_CONFIDENCE", cls.max_confidence),
            merchant_confidence=settings.get_env_float("MERCHANT_CONFIDENCE", cls.merchant_confidence),
            rules_confidence=settings.get_env_float("RULES_CONFIDENCE", cls.rules_confidence),
            high_confidence_threshold=settings.get_env_float(
                "HIGH_CONFIDENCE_THRESHOLD", cls.high_confidence_threshold
            ),
            max_patterns=settings.get_env_int("MEMORY_MAX_PATTERNS", cls.max_patterns, min_value=1),
        )


# Inclusive (low, high) bounds on the mean gap between charges, in days.
# Checked in this order; the first window that fits wins.
FREQUENCY_WINDOWS: dict[str, tuple[float, float]] = {
    "monthly": (25, 35),
    "weekly": (6, 10),
    "biweekly": (12, 18),
    "quarterly": (80, 100),
    "yearly": (350, 380),
}

MONTHLY_MULTIPLIERS: dict[str, float] = {
    "monthly": 1.0,
    "weekly": 4.33,
    "biweekly": 2.17,
    "quarterly": 0.33,
    "yearly": 0.083,
}

BILL_STOP_WORDS = frozenset({"payment", "charge", "debit", "credit", "auto", "ach", "transfer"})


@dataclass(frozen=True)
class RecurrencePolicy:
    min_amount: float = 20.0
    min_occurrences: int = 2
    merchant_key_words: int = 3
    recent_window: int = 3
    trend_threshold: float = 5.0
    unusual_threshold: float = 15.0
    excluded_categories: frozenset[str] = frozenset({"Account Transfer"})
    stop_words: frozenset[str] = BILL_STOP_WORDS
    frequency_windows: dict[str, tuple[float, float]] = field(
        default_factory=lambda: dict(FREQUENCY_WINDOWS)
    )
    monthly_multipliers: dict[str, float] = field(
        default_factory=lambda: dict(MONTHLY_MULTIPLIERS)
    )

    @classmethod
    def from_env(cls) -> "RecurrencePolicy":
        return cls(
            min_amount=settings.get_env_float("BILL_MIN_AMOUNT", cls.min_amount),
            unusual_threshold=settings.get_env_float("BILL_UNUSUAL_THRESHOLD", cls.unusual_threshold),
        )


@dataclass(frozen=True)
class AnalyticsPolicy:
    pareto_target: float = 0.8
    pareto_concentrated_below: float = 20.0
    pareto_diversified_above: float = 40.0
    drift_window_months: int = 3
    drift_top_categories: int = 5
    # Upper bounds of the low, moderate and high bands; anything above is extreme.
    severity_bands: tuple[float, float, float] = (5.0, 15.0, 30.0)
    essential_categories: frozenset[str] = frozenset({"Housing", "Bills & Utilities", "Transport"})
    regret_savings_factor: float = 0.3
    weekend_binge_min_amount: float = 50.0
    habit_trend_threshold: float = 15.0
    short_term_rate: float = 0.05
    long_term_rate: float = 0.07
    max_equivalents: int = 3

    @classmethod
    def from_env(cls) -> "AnalyticsPolicy":
        return cls(
            regret_savings_factor=settings.get_env_float("REGRET_SAVINGS_FACTOR", cls.regret_savings_factor),
            short_term_rate=settings.get_env_float("SHORT_TERM_RATE", cls.short_term_rate),
            long_term_rate=settings.get_env_float("LONG_TERM_RATE", cls.long_term_rate),
        )


DEFAULT_LEARNING_POLICY = LearningPolicy()
DEFAULT_RECURRENCE_POLICY = RecurrencePolicy()
DEFAULT_ANALYTICS_POLICY = AnalyticsPolicy()
