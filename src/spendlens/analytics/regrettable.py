"""
Best-effort detection of spending people tend to regret.

All three heuristics work at date granularity:

* late night relies on a clock time written into the description; most bank
  feeds carry none, so this bucket is usually empty;
* rapid fire pairs neighbouring purchases on the same day in the same
  category at different merchants, standing in for real timestamp clustering;
* weekend binge flags Friday to Sunday dining and drinking above $50.
"""
import re
from collections.abc import Sequence

from pydantic import BaseModel

from spendlens.analytics.common import spending_only, total_amount
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction

LATE_NIGHT_PATTERNS = (
    # 24-hour 20:00-23:59, and unmarked 11:xx or 12:xx
    re.compile(r"\b(?:1[1-2]|2[0-3]):[0-5][0-9](?!\s*[ap]\.?m)", re.IGNORECASE),
    re.compile(r"\b11:[0-5][0-9]\s*p\.?m", re.IGNORECASE),
    # just past midnight; 12:xx pm is noon
    re.compile(r"\b12:[0-5][0-9]\s*a\.?m", re.IGNORECASE),
)

BINGE_CATEGORIES = frozenset({"Food & Drink"})
BINGE_KEYWORDS = ("bar", "brewery", "wine", "liquor")
# date.weekday(): Friday=4, Saturday=5, Sunday=6
WEEKEND_DAYS = frozenset({4, 5, 6})


class RegretBucket(BaseModel):
    count: int = 0
    total: float = 0.0
    transactions: list[Transaction] = []

    @classmethod
    def of(cls, transactions: list[Transaction]) -> "RegretBucket":
        return cls(count=len(transactions), total=total_amount(transactions), transactions=transactions)


class RegrettableSpending(BaseModel):
    late_night: RegretBucket
    rapid_fire: RegretBucket
    weekend_binge: RegretBucket
    total_regrettable: float
    potential_savings: float


def is_late_night(transaction: Transaction) -> bool:
    return any(p.search(transaction.description) for p in LATE_NIGHT_PATTERNS)


def is_weekend_binge(transaction: Transaction, policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY) -> bool:
    if transaction.date.weekday() not in WEEKEND_DAYS:
        return False
    if transaction.amount <= policy.weekend_binge_min_amount:
        return False
    desc = transaction.description.lower()
    return transaction.category in BINGE_CATEGORIES or any(kw in desc for kw in BINGE_KEYWORDS)


def find_rapid_fire(spending: Sequence[Transaction]) -> list[Transaction]:
    ordered = sorted(spending, key=lambda t: t.date)
    flagged: dict[str, Transaction] = {}
    for prev, curr in zip(ordered, ordered[1:]):
        if (
            prev.date == curr.date
            and prev.category == curr.category
            and prev.merchant_name != curr.merchant_name
        ):
            flagged.setdefault(prev.id, prev)
            flagged.setdefault(curr.id, curr)
    return list(flagged.values())


def detect_regrettable_spending(
    transactions: Sequence[Transaction],
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> RegrettableSpending:
    spending = spending_only(transactions)

    late_night = [t for t in spending if is_late_night(t)]
    rapid_fire = find_rapid_fire(spending)
    weekend_binge = [t for t in spending if is_weekend_binge(t, policy)]

    # A transaction can land in several buckets; count it once.
    unique = {t.id: t for t in late_night + rapid_fire + weekend_binge}
    total = total_amount(unique.values())

    return RegrettableSpending(
        late_night=RegretBucket.of(late_night),
        rapid_fire=RegretBucket.of(rapid_fire),
        weekend_binge=RegretBucket.of(weekend_binge),
        total_regrettable=total,
        potential_savings=total * policy.regret_savings_factor,
    )
