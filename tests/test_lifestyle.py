from datetime import date

import pytest

from spendlens.analytics.lifestyle import classify_severity, detect_lifestyle_inflation
from spendlens.models import Transaction


def _month(tx_id, month, amount, category="Food & Drink", **kwargs):
    return Transaction(
        id=tx_id,
        date=date(2024, month, 15),
        description="Spending",
        amount=amount,
        category=category,
        **kwargs,
    )


def test_doubling_spend_is_extreme():
    transactions = [_month(str(m), m, 100.0 if m <= 3 else 200.0) for m in range(1, 7)]

    result = detect_lifestyle_inflation(transactions)
    assert result.inflation_rate == pytest.approx(100.0)
    assert result.early_avg == pytest.approx(100.0)
    assert result.recent_avg == pytest.approx(200.0)
    assert result.monthly_increase == pytest.approx(100.0)
    assert result.annual_impact == pytest.approx(1200.0)
    assert result.severity == "extreme"
    assert result.top_increases[0].category == "Food & Drink"
    assert result.top_increases[0].change == pytest.approx(100.0)
    assert [point.month for point in result.trend] == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
    ]
    assert result.insight.startswith("Alert: Your spending has increased 100%!")


def test_income_and_transfers_are_ignored():
    transactions = [_month(str(m), m, 100.0) for m in range(1, 7)]
    transactions.append(_month("salary", 6, 5000.0, "Income", is_income=True))
    transactions.append(_month("move", 6, 800.0, "Account Transfer", is_internal_transfer=True))

    result = detect_lifestyle_inflation(transactions)
    assert result.inflation_rate == pytest.approx(0.0)
    assert result.severity == "low"
    assert result.insight == "Your spending is stable. You're maintaining good financial discipline."


def test_exactly_three_months_compares_same_window():
    transactions = [_month(str(m), m, 100.0 * m) for m in range(1, 4)]

    result = detect_lifestyle_inflation(transactions)
    assert result.inflation_rate == pytest.approx(0.0)


def test_new_categories_do_not_count_as_increases():
    transactions = [_month(str(m), m, 100.0) for m in range(1, 7)]
    transactions.append(_month("new", 6, 30.0, "Travel"))

    result = detect_lifestyle_inflation(transactions)
    assert [c.category for c in result.top_increases] == ["Food & Drink"]
    assert result.severity == "moderate"


def test_insufficient_history():
    assert detect_lifestyle_inflation([_month("1", 1, 100.0), _month("2", 2, 100.0)]) is None
    assert detect_lifestyle_inflation([]) is None


def test_classify_severity():
    assert classify_severity(-10.0) == "low"
    assert classify_severity(4.9) == "low"
    assert classify_severity(5.0) == "moderate"
    assert classify_severity(15.0) == "high"
    assert classify_severity(30.0) == "extreme"
