from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

from spendlens.analytics.common import group_by_month, percent_change, spending_only, total_amount
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction

Severity = Literal["low", "moderate", "high", "extreme"]


class MonthTotal(BaseModel):
    month: str
    total: float


class CategoryChange(BaseModel):
    category: str
    change: float


class LifestyleInflationResult(BaseModel):
    inflation_rate: float
    early_avg: float
    recent_avg: float
    monthly_increase: float
    annual_impact: float
    top_increases: list[CategoryChange]
    trend: list[MonthTotal]
    severity: Severity
    insight: str


def classify_severity(rate: float, policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY) -> Severity:
    low, moderate, high = policy.severity_bands
    if rate < low:
        return "low"
    if rate < moderate:
        return "moderate"
    if rate < high:
        return "high"
    return "extreme"


def _window_average(
    months: Sequence[tuple[str, list[Transaction]]],
    category: str | None = None,
) -> float:
    total = 0.0
    for _, txs in months:
        total += total_amount(t for t in txs if category is None or t.category == category)
    return total / len(months)


def _build_insight(rate: float, severity: Severity, driver: CategoryChange | None) -> str:
    if severity == "low" or rate < 0:
        state = "decreasing" if rate < 0 else "stable"
        return f"Your spending is {state}. You're maintaining good financial discipline."

    pct = round(rate)
    if severity == "moderate":
        text = f"Your spending has increased {pct}%"
        if driver:
            text += f", primarily driven by {driver.category} (+{round(driver.change)}%)"
        return text + ". This is worth monitoring."
    if severity == "high":
        text = f"Warning: Your spending has increased {pct}%."
        if driver:
            text += f" {driver.category} spending is up {round(driver.change)}%."
        return text + " Consider reviewing your budget."
    text = f"Alert: Your spending has increased {pct}%! This is significant lifestyle inflation."
    if driver:
        text += f" {driver.category} has increased {round(driver.change)}%."
    return text


def detect_lifestyle_inflation(
    transactions: Sequence[Transaction],
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> LifestyleInflationResult | None:
    """
    Compare average monthly spend of the first three months with the last
    three. With exactly three months both windows are the same months.
    Income and internal transfers are ignored. Returns None for fewer than
    three months of spending or a zero baseline.
    """
    transactions = spending_only(transactions)
    months = group_by_month(transactions)
    window = policy.drift_window_months
    if len(months) < window:
        return None

    early = months[:window]
    recent = months[-window:]
    early_avg = _window_average(early)
    recent_avg = _window_average(recent)
    if early_avg == 0:
        return None

    rate = percent_change(early_avg, recent_avg)
    severity = classify_severity(rate, policy)

    changes = []
    for category in dict.fromkeys(t.category for t in transactions):
        before = _window_average(early, category)
        if before > 0:
            after = _window_average(recent, category)
            changes.append(CategoryChange(category=category, change=percent_change(before, after)))
    changes.sort(key=lambda c: c.change, reverse=True)
    top_increases = changes[:policy.drift_top_categories]

    return LifestyleInflationResult(
        inflation_rate=rate,
        early_avg=early_avg,
        recent_avg=recent_avg,
        monthly_increase=recent_avg - early_avg,
        annual_impact=(recent_avg - early_avg) * 12,
        top_increases=top_increases,
        trend=[MonthTotal(month=month, total=total_amount(txs)) for month, txs in months],
        severity=severity,
        insight=_build_insight(rate, severity, top_increases[0] if top_increases else None),
    )
