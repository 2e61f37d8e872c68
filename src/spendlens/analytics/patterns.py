import math
from collections import defaultdict
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

from spendlens.analytics.common import spending_only
from spendlens.analytics.habits import calculate_future_value
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class DayOfWeekPattern(BaseModel):
    day: str
    day_number: int  # 0 = Sunday
    total_spend: float
    avg_spend: float
    transaction_count: int


class BestMonth(BaseModel):
    month: str
    total_spend: float
    total_income: float
    net_savings: float
    savings_rate: float
    why_best: str


class Alternative(BaseModel):
    description: str
    value: str
    emoji: str


class OpportunityCostResult(BaseModel):
    monthly_savings: float
    annual_savings: float
    five_year_value: float
    ten_year_value: float
    alternatives: list[Alternative]


def analyze_spending_by_day_of_week(transactions: Sequence[Transaction]) -> list[DayOfWeekPattern]:
    totals = [0.0] * 7
    counts = [0] * 7
    for t in spending_only(transactions):
        # date.weekday() is Monday=0; shift so Sunday leads the week
        day = (t.date.weekday() + 1) % 7
        totals[day] += t.amount
        counts[day] += 1

    return [
        DayOfWeekPattern(
            day=name,
            day_number=index,
            total_spend=totals[index],
            avg_spend=totals[index] / counts[index] if counts[index] else 0.0,
            transaction_count=counts[index],
        )
        for index, name in enumerate(DAY_NAMES)
    ]


def _why_best(savings_rate: float) -> str:
    if savings_rate > 30:
        return "You showed incredible discipline with a 30%+ savings rate."
    if savings_rate > 20:
        return "Strong financial control with healthy savings."
    if savings_rate > 10:
        return "Decent savings rate while managing expenses."
    return "Your most balanced month of income and expenses."


def find_best_month(transactions: Sequence[Transaction]) -> BestMonth | None:
    """The month with the highest savings rate; months without income are skipped."""
    spend: dict[str, float] = defaultdict(float)
    income: dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.is_internal_transfer:
            continue
        if t.is_income:
            income[t.month_key] += t.amount
        else:
            spend[t.month_key] += t.amount

    best: BestMonth | None = None
    for month in sorted(income):
        month_income = income[month]
        if month_income <= 0:
            continue
        month_spend = spend.get(month, 0.0)
        rate = (month_income - month_spend) / month_income * 100
        if best is None or rate > best.savings_rate:
            best = BestMonth(
                month=month,
                total_spend=month_spend,
                total_income=month_income,
                net_savings=month_income - month_spend,
                savings_rate=rate,
                why_best=_why_best(rate),
            )
    return best


def calculate_opportunity_cost(
    saved_amount: float,
    timeframe: Literal["monthly", "annual"] = "monthly",
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> OpportunityCostResult:
    monthly = saved_amount if timeframe == "monthly" else saved_amount / 12
    annual = monthly * 12
    five_year = calculate_future_value(annual, policy.short_term_rate, 5)
    ten_year = calculate_future_value(annual, policy.long_term_rate, 10)

    alternatives = []
    if annual >= 1200:
        alternatives.append(Alternative(
            description="Nice vacation every year",
            value=f"{math.floor(annual / 1200)} trips",
            emoji="✈️",
        ))
    if annual >= 500:
        alternatives.append(Alternative(
            description="Weekend getaways",
            value=f"{math.floor(annual / 500)} trips",
            emoji="🏖️",
        ))
    if ten_year >= 15000:
        alternatives.append(Alternative(
            description="Down payment on a car",
            value=f"{round(ten_year):,} in 10 years",
            emoji="🚗",
        ))
    if five_year >= 5000:
        alternatives.append(Alternative(
            description="Emergency fund cushion",
            value=f"{round(five_year):,} in 5 years",
            emoji="🛡️",
        ))
    alternatives.append(Alternative(
        description="Investment growth potential",
        value=f"{round(ten_year):,} in 10 years at {policy.long_term_rate:.0%}",
        emoji="📈",
    ))

    return OpportunityCostResult(
        monthly_savings=monthly,
        annual_savings=annual,
        five_year_value=five_year,
        ten_year_value=ten_year,
        alternatives=alternatives,
    )
