from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from statistics import mean, pstdev
from typing import Literal

from pydantic import BaseModel

from spendlens.analytics.common import count_months, income_only, spending_only, total_amount
from spendlens.analytics.habits import HabitTaxResult
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction

Grade = Literal["A", "B", "C", "D", "F"]

_GRADE_THRESHOLDS: tuple[tuple[int, Grade], ...] = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))

_GRADE_INSIGHTS: dict[Grade, str] = {
    "A": "Excellent financial health! You're crushing it.",
    "B": "Strong financial position with room for improvement.",
    "C": "Decent foundation, but some areas need attention.",
    "D": "Financial habits need work. Focus on essentials and savings.",
    "F": "Time for a financial reset. Let's build better habits together.",
}


class HealthBreakdown(BaseModel):
    essentials_ratio: int
    savings_rate: int
    consistency: int
    habit_control: int


class FinancialHealthScore(BaseModel):
    score: int
    breakdown: HealthBreakdown
    grade: Grade
    insight: str


def grade_for(score: int) -> Grade:
    for threshold, grade in _GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def essentials_score(essential_spend: float, total_spend: float) -> float:
    """30 points while essentials stay under half of spend, one point lost per percent above."""
    ratio = essential_spend / total_spend * 100 if total_spend > 0 else 0.0
    if ratio < 50:
        return 30.0
    return max(0.0, 30 - (ratio - 50))


def savings_score(total_income: float, total_spend: float) -> float:
    """A 20% savings rate earns the full 30 points."""
    rate = (total_income - total_spend) / total_income * 100 if total_income > 0 else 0.0
    return min(30.0, max(0.0, rate * 1.5))


def consistency_score(daily_totals: Sequence[float]) -> float:
    avg = mean(daily_totals) if daily_totals else 0.0
    cv = pstdev(daily_totals) / avg * 100 if avg > 0 else 100.0
    return max(0.0, 20 - cv / 5)


def habit_score(habit_results: Sequence[HabitTaxResult], monthly_spend: float) -> float:
    """Monthly habit spend as a share of monthly spend, one point lost per percent."""
    monthly_habits = sum(h.annual_spend for h in habit_results) / 12
    ratio = monthly_habits / monthly_spend * 100 if monthly_spend > 0 else 0.0
    return max(0.0, 20 - ratio)


def calculate_financial_health_score(
    transactions: Sequence[Transaction],
    habit_results: Sequence[HabitTaxResult] = (),
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> FinancialHealthScore | None:
    """None when there is neither spending nor income to score."""
    spending = spending_only(transactions)
    income = income_only(transactions)
    if not spending and not income:
        return None
    total_spend = total_amount(spending)
    total_income = total_amount(income)
    essential_spend = total_amount(t for t in spending if t.category in policy.essential_categories)

    by_day: dict[date, float] = defaultdict(float)
    for t in spending:
        by_day[t.date] += t.amount

    essentials = essentials_score(essential_spend, total_spend)
    savings = savings_score(total_income, total_spend)
    consistency = consistency_score(list(by_day.values()))
    habits = habit_score(habit_results, total_spend / count_months(spending))

    score = round(essentials + savings + consistency + habits)
    grade = grade_for(score)
    return FinancialHealthScore(
        score=score,
        breakdown=HealthBreakdown(
            essentials_ratio=round(essentials),
            savings_rate=round(savings),
            consistency=round(consistency),
            habit_control=round(habits),
        ),
        grade=grade,
        insight=_GRADE_INSIGHTS[grade],
    )
