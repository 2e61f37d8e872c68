from datetime import date

import pytest

from spendlens.analytics.habits import (
    HABITS,
    calculate_all_habit_taxes,
    calculate_future_value,
    calculate_habit_tax,
    find_habit,
    get_equivalents,
    matches_habit,
)
from spendlens.models import Transaction


def _tx(tx_id, day, description, amount, merchant=None):
    return Transaction(
        id=tx_id,
        date=day,
        description=description,
        merchant_name=merchant,
        amount=amount,
        category="Food & Drink",
    )


@pytest.fixture
def coffee_history():
    return [
        _tx("1", date(2024, 1, 3), "Starbucks", 4.5),
        _tx("2", date(2024, 1, 10), "Starbucks", 4.5),
        _tx("3", date(2024, 2, 3), "Starbucks", 4.5),
        _tx("4", date(2024, 2, 10), "Starbucks", 4.5),
        _tx("5", date(2024, 1, 1), "Landlord Rent", 1000.0),
    ]


def test_find_habit_is_case_insensitive():
    assert find_habit("daily coffee").icon == "☕"
    assert find_habit("Nope") is None


def test_matches_habit_checks_merchant_and_aliases():
    coffee = find_habit("Daily Coffee")
    assert matches_habit(_tx("1", date(2024, 1, 1), "POS 1234", 5.0, "SBUX #991"), coffee)
    assert not matches_habit(_tx("2", date(2024, 1, 1), "Hardware store", 5.0), coffee)


@pytest.mark.parametrize(
    ("description", "habit_name"),
    [
        ("Showtime Anytime", "Streaming Services"),
        ("STARZ subscription", "Streaming Services"),
        ("Downtown Garage", "Parking Fees"),
        ("Shell gas station", "Convenience Store Snacks"),
        ("PSN purchase", "Gaming"),
        ("CVS Pharmacy", "Impulse Retail"),
        ("Planet Fitness dues", "Gym/Fitness"),
    ],
)
def test_habit_keywords(description, habit_name):
    assert matches_habit(_tx("1", date(2024, 1, 1), description, 10.0), find_habit(habit_name))


@pytest.mark.parametrize(
    ("description", "habit_name"),
    [
        ("Address update", "Daily Coffee"),
        ("Scabbard shop", "Ride Share"),
        ("Crossroads market", "Impulse Retail"),
    ],
)
def test_short_tokens_do_not_match_inside_words(description, habit_name):
    assert not matches_habit(_tx("1", date(2024, 1, 1), description, 10.0), find_habit(habit_name))


def test_habit_catalogue_names_are_unique():
    names = [habit.name for habit in HABITS]
    assert len(names) == len(set(names))


def test_calculate_habit_tax(coffee_history):
    result = calculate_habit_tax(coffee_history, find_habit("Daily Coffee"))

    assert result.habit == "Daily Coffee"
    assert result.frequency == 2
    assert result.monthly_spend == pytest.approx(9.0)
    assert result.annual_spend == pytest.approx(108.0)
    assert result.observed_total == pytest.approx(18.0)
    assert result.per_occurrence == pytest.approx(4.5)
    assert result.trend == "stable"
    assert result.one_year == pytest.approx(108.0)
    assert result.five_years == pytest.approx(calculate_future_value(108.0, 0.05, 5))
    assert result.ten_years == pytest.approx(calculate_future_value(108.0, 0.07, 10))
    assert result.thirty_years == pytest.approx(calculate_future_value(108.0, 0.07, 30))
    assert [e.item for e in result.equivalents] == ["Nice restaurant dinners"]
    assert result.equivalents[0].count == 1


def test_habit_trend_increasing():
    transactions = [
        _tx("1", date(2024, 1, 1), "Starbucks", 4.0),
        _tx("2", date(2024, 1, 8), "Starbucks", 4.0),
        _tx("3", date(2024, 2, 1), "Starbucks", 6.0),
        _tx("4", date(2024, 2, 8), "Starbucks", 6.0),
    ]
    assert calculate_habit_tax(transactions, find_habit("Daily Coffee")).trend == "increasing"


def test_habit_without_matches():
    assert calculate_habit_tax([], find_habit("Daily Coffee")) is None


def test_calculate_all_habit_taxes_only_reports_matches(coffee_history):
    results = calculate_all_habit_taxes(coffee_history)
    assert [r.habit for r in results] == ["Daily Coffee"]


def test_calculate_all_habit_taxes_sorted_by_annual_spend():
    transactions = [
        _tx("1", date(2024, 1, 2), "Starbucks", 5.0),
        _tx("2", date(2024, 1, 3), "Uber Trip", 25.0),
    ]
    results = calculate_all_habit_taxes(transactions)
    assert [r.habit for r in results] == ["Ride Share", "Daily Coffee"]


def test_future_value_annuity_due():
    assert calculate_future_value(1000.0, 0.07, 10) == pytest.approx(14783.60, rel=1e-4)
    assert calculate_future_value(1000.0, 0.0, 10) == pytest.approx(10000.0)


def test_get_equivalents_cheapest_first():
    equivalents = get_equivalents(600.0)
    assert [(e.item, e.count) for e in equivalents] == [
        ("Nice restaurant dinners", 6),
        ("Spotify Premium subscriptions", 4),
        ("Gym memberships", 1),
    ]
    assert get_equivalents(50.0) == []
