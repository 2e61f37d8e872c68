from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from typing import Literal

from pydantic import BaseModel

from spendlens.analytics.common import percent_change
from spendlens.core.policy import DEFAULT_RECURRENCE_POLICY, RecurrencePolicy
from spendlens.logger import get_logger
from spendlens.models import Transaction

logger = get_logger(__name__)

Trend = Literal["increasing", "decreasing", "stable"]


class BillPayment(BaseModel):
    date: date
    amount: float


class RecurringCharge(BaseModel):
    name: str
    category: str
    frequency: str
    occurrences: int
    average_amount: float
    recent_amounts: list[BillPayment]
    trend: Trend
    percent_change: float
    last_amount: float
    is_unusual: bool


class BillReport(BaseModel):
    bills: list[RecurringCharge] = []
    total_monthly: float = 0.0
    increasing_count: int = 0
    potential_savings: float = 0.0

    @property
    def unusual(self) -> list[RecurringCharge]:
        return [bill for bill in self.bills if bill.is_unusual]


def normalize_merchant(
    description: str,
    merchant_name: str | None = None,
    policy: RecurrencePolicy = DEFAULT_RECURRENCE_POLICY,
) -> str:
    """
    Grouping key for a charge: lowercase, one leading and one trailing
    billing word dropped ("ACH Netflix Payment" -> "netflix"), first three
    words kept.
    """
    words = (merchant_name or description).lower().split()
    if words and words[0] in policy.stop_words:
        words = words[1:]
    if words and words[-1] in policy.stop_words:
        words = words[:-1]
    return " ".join(words[:policy.merchant_key_words])


def detect_frequency(
    dates: Sequence[date],
    policy: RecurrencePolicy = DEFAULT_RECURRENCE_POLICY,
) -> str | None:
    if len(dates) < 2:
        return None
    ordered = sorted(dates)
    gaps = [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]
    avg_gap = sum(gaps) / len(gaps)
    for frequency, (low, high) in policy.frequency_windows.items():
        if low <= avg_gap <= high:
            return frequency
    return None


def calculate_trend(
    amounts: Sequence[float],
    policy: RecurrencePolicy = DEFAULT_RECURRENCE_POLICY,
) -> tuple[Trend, float]:
    """Trend and absolute percent change between the first and last amount."""
    if len(amounts) < 2 or amounts[0] == 0:
        return "stable", 0.0
    change = percent_change(amounts[0], amounts[-1])
    if change > policy.trend_threshold:
        trend: Trend = "increasing"
    elif change < -policy.trend_threshold:
        trend = "decreasing"
    else:
        trend = "stable"
    return trend, abs(change)


def to_monthly(
    amount: float,
    frequency: str,
    policy: RecurrencePolicy = DEFAULT_RECURRENCE_POLICY,
) -> float:
    return amount * policy.monthly_multipliers[frequency]


def _is_bill_candidate(t: Transaction, policy: RecurrencePolicy) -> bool:
    return (
        not t.is_income
        and not t.is_internal_transfer
        and t.category not in policy.excluded_categories
        and t.amount > policy.min_amount
    )


def _analyze_group(
    name: str,
    txs: list[Transaction],
    policy: RecurrencePolicy,
) -> RecurringCharge | None:
    ordered = sorted(txs, key=lambda t: t.date)
    frequency = detect_frequency([t.date for t in ordered], policy)
    if not frequency:
        return None

    recent = ordered[-policy.recent_window:]
    trend, change = calculate_trend([t.amount for t in recent], policy)
    return RecurringCharge(
        name=name,
        category=ordered[0].category,
        frequency=frequency,
        occurrences=len(ordered),
        average_amount=sum(t.amount for t in ordered) / len(ordered),
        recent_amounts=[BillPayment(date=t.date, amount=t.amount) for t in recent],
        trend=trend,
        percent_change=change,
        last_amount=recent[-1].amount,
        is_unusual=trend == "increasing" and change > policy.unusual_threshold,
    )


def detect_recurring_bills(
    transactions: Sequence[Transaction],
    policy: RecurrencePolicy = DEFAULT_RECURRENCE_POLICY,
) -> BillReport:
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        if _is_bill_candidate(t, policy):
            groups[normalize_merchant(t.description, t.merchant_name, policy)].append(t)

    bills = []
    for name, txs in groups.items():
        if len(txs) < policy.min_occurrences:
            continue
        bill = _analyze_group(name, txs, policy)
        if bill:
            bills.append(bill)

    bills.sort(key=lambda b: (not b.is_unusual, -b.last_amount))

    report = BillReport(
        bills=bills,
        total_monthly=sum(to_monthly(b.last_amount, b.frequency, policy) for b in bills),
        increasing_count=sum(1 for b in bills if b.trend == "increasing"),
        potential_savings=sum(
            to_monthly(b.last_amount - b.average_amount, b.frequency, policy)
            for b in bills
            if b.is_unusual
        ),
    )
    logger.debug(
        "[BILLS] %d recurring bills from %d groups (%d unusual).",
        len(bills),
        len(groups),
        len(report.unusual),
    )
    return report
