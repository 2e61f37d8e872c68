from collections import defaultdict
from collections.abc import Iterable

from spendlens.models import Transaction


def spending_only(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Outgoing money, internal transfers excluded."""
    return [t for t in transactions if not t.is_income and not t.is_internal_transfer]


def income_only(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.is_income and not t.is_internal_transfer]


def total_amount(transactions: Iterable[Transaction]) -> float:
    return sum(t.amount for t in transactions)


def group_by_month(transactions: Iterable[Transaction]) -> list[tuple[str, list[Transaction]]]:
    """``(YYYY-MM, transactions)`` pairs in chronological order."""
    months: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        months[t.month_key].append(t)
    return sorted(months.items())


def count_months(transactions: Iterable[Transaction]) -> int:
    """Distinct calendar months, never less than one."""
    return max(1, len({t.month_key for t in transactions}))


def percent_change(old: float, new: float) -> float:
    return (new - old) / old * 100
