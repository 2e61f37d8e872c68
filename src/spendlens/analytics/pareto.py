from collections.abc import Callable, Sequence

from pydantic import BaseModel

from spendlens.analytics.common import spending_only
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction


class ParetoPoint(BaseModel):
    name: str
    total: float
    percentage: float
    cumulative: float
    transaction_count: int
    avg_transaction: float


class ParetoResult(BaseModel):
    entries: list[ParetoPoint] = []
    percentage: float = 0.0
    insight: str = "No spending data available."
    top_name: str = ""
    top_spend: float = 0.0


def _aggregate(
    transactions: Sequence[Transaction],
    key: Callable[[Transaction], str],
) -> list[tuple[str, float, int]]:
    totals: dict[str, list[float]] = {}
    for t in transactions:
        bucket = totals.setdefault(key(t), [0.0, 0])
        bucket[0] += t.amount
        bucket[1] += 1
    rows = [(name, total, int(count)) for name, (total, count) in totals.items()]
    # sort is stable: equal totals keep first-seen order
    rows.sort(key=lambda row: row[1], reverse=True)
    return rows


def _pareto(
    transactions: Sequence[Transaction],
    key: Callable[[Transaction], str],
    policy: AnalyticsPolicy,
) -> ParetoResult | None:
    rows = _aggregate(spending_only(transactions), key)
    if not rows:
        return None

    grand_total = sum(total for _, total, _ in rows)
    target = grand_total * policy.pareto_target
    cumulative = 0.0
    entries: list[ParetoPoint] = []
    for name, total, count in rows:
        if cumulative >= target:
            break
        cumulative += total
        entries.append(ParetoPoint(
            name=name,
            total=total,
            percentage=total / grand_total * 100 if grand_total else 0.0,
            cumulative=cumulative / grand_total * 100 if grand_total else 0.0,
            transaction_count=count,
            avg_transaction=total / count,
        ))

    top_name, top_spend, _ = rows[0]
    return ParetoResult(
        entries=entries,
        percentage=len(entries) / len(rows) * 100,
        top_name=top_name,
        top_spend=top_spend,
    )


def _merchant_insight(result: ParetoResult, policy: AnalyticsPolicy) -> str:
    count = len(result.entries)
    text = (
        f"Just {count} merchants ({round(result.percentage)}%) represent 80% of your spending."
    )
    if result.percentage < policy.pareto_concentrated_below:
        text += (
            f" Your spending is highly concentrated, led by {result.top_name}:"
            " small changes here have big impact."
        )
    elif result.percentage > policy.pareto_diversified_above:
        text += " Your spending is well-diversified across many merchants."
    else:
        text += f" Focus here, starting with {result.top_name}, to make the biggest impact."
    return text


def find_pareto(
    transactions: Sequence[Transaction],
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> ParetoResult:
    """Smallest set of merchants that covers 80% of spend."""
    result = _pareto(transactions, lambda t: t.merchant_or_description, policy)
    if result is None:
        return ParetoResult()
    result.insight = _merchant_insight(result, policy)
    return result


def find_pareto_by_category(
    transactions: Sequence[Transaction],
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> ParetoResult:
    result = _pareto(transactions, lambda t: t.category or "Uncategorized", policy)
    if result is None:
        return ParetoResult()
    count = len(result.entries)
    result.insight = (
        f"{count} of your categories ({round(result.percentage)}%) account for 80% of spending,"
        f" led by {result.top_name}."
    )
    return result
