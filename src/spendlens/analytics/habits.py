import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel

from spendlens.analytics.common import count_months, percent_change, total_amount
from spendlens.core.policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from spendlens.models import Transaction


@dataclass(frozen=True)
class Habit:
    name: str
    keywords: tuple[str, ...]
    icon: str
    aliases: tuple[str, ...] = ()

    @property
    def terms(self) -> tuple[str, ...]:
        return tuple(term.lower() for term in self.keywords + self.aliases)


# Keywords are matched as plain substrings, so very short tokens that occur
# inside ordinary words ("dd", "bk", "cab", "ross", "wish") are left out.
HABITS: tuple[Habit, ...] = (
    Habit(
        "Daily Coffee",
        ("starbucks", "coffee", "cafe", "espresso", "dunkin", "dutch bros", "peets", "caribou",
         "tim hortons", "costa", "lavazza"),
        "☕",
        ("sbux", "dunkin donuts", "dutch"),
    ),
    Habit(
        "Lunch Out",
        ("lunch", "chipotle", "subway", "panera", "sweetgreen", "cava", "chopt", "salad", "pret",
         "au bon pain", "potbelly", "jimmy johns", "jersey mikes", "firehouse subs", "quiznos"),
        "🥗",
        ("panera bread", "sweet green"),
    ),
    Habit(
        "Ride Share",
        ("uber", "lyft", "rideshare", "ride share", "taxi"),
        "🚗",
        ("uber trip", "lyft ride"),
    ),
    Habit(
        "Food Delivery",
        ("doordash", "uber eats", "grubhub", "postmates", "seamless", "delivery", "caviar", "instacart"),
        "🍔",
        ("door dash", "uber-eats"),
    ),
    Habit(
        "Impulse Amazon",
        ("amazon", "amzn"),
        "📦",
        ("amazon.com", "amazon prime"),
    ),
    Habit(
        "Bar/Drinks",
        ("bar", "brewery", "wine", "liquor", "pub", "tavern", "brewpub", "taproom", "distillery",
         "winery", "spirits", "cocktail", "lounge"),
        "🍺",
        ("wine shop", "liquor store", "total wine"),
    ),
    Habit(
        "Fast Food",
        ("mcdonalds", "burger king", "wendys", "taco bell", "kfc", "popeyes", "chick-fil-a",
         "five guys", "shake shack", "in-n-out", "whataburger", "sonic drive", "arbys",
         "jack in the box", "del taco", "white castle", "hardees", "carls jr"),
        "🍟",
        ("mcds", "chickfila"),
    ),
    Habit(
        "Streaming Services",
        ("netflix", "hulu", "disney+", "hbo max", "paramount+", "peacock", "apple tv",
         "amazon prime video", "youtube premium", "crunchyroll", "funimation", "showtime", "starz"),
        "📺",
        ("disney plus", "hbo-max", "apple tv+"),
    ),
    Habit(
        "Music Subscriptions",
        ("spotify", "apple music", "amazon music", "youtube music", "tidal", "pandora", "soundcloud"),
        "🎵",
        ("spotify premium",),
    ),
    Habit(
        "Gaming",
        ("steam", "playstation", "xbox", "nintendo", "epic games", "twitch", "discord nitro",
         "game pass", "psn", "eshop"),
        "🎮",
        ("ps store", "microsoft store", "nintendo eshop"),
    ),
    Habit(
        "Gym/Fitness",
        ("gym", "fitness", "equinox", "planet fitness", "la fitness", "24 hour fitness",
         "lifetime fitness", "orangetheory", "crossfit", "yoga", "pilates", "peloton",
         "soulcycle", "pure barre"),
        "💪",
        ("24hr fitness", "orange theory"),
    ),
    Habit(
        "Convenience Store Snacks",
        ("7-eleven", "wawa", "sheetz", "quicktrip", "circle k", "speedway", "gas station",
         "convenience"),
        "🏪",
        ("7-11", "7 eleven"),
    ),
    Habit("Vending Machines", ("vending", "canteen", "snack machine"), "🎰"),
    Habit(
        "Parking Fees",
        ("parking", "parkwhiz", "spothero", "parking meter", "garage"),
        "🅿️",
        ("park whiz", "spot hero"),
    ),
    Habit("ATM Fees", ("atm fee", "atm withdrawal fee", "out-of-network", "surcharge"), "🏧"),
    Habit("Late Fees", ("late fee", "late charge", "penalty", "overdraft"), "⚠️"),
    Habit(
        "Impulse Retail",
        ("target", "walmart", "costco", "cvs", "walgreens", "rite aid", "dollar store", "tj maxx",
         "marshalls", "ross stores", "ross dress"),
        "🛒",
        ("super target", "walmart supercenter", "tjmaxx"),
    ),
    Habit(
        "Online Shopping",
        ("ebay", "etsy", "wayfair", "overstock", "aliexpress", "shein", "temu", "wish.com"),
        "💳",
    ),
)

# (item, price, emoji), cheapest first.
EQUIVALENT_ITEMS: tuple[tuple[str, float, str], ...] = (
    ("Nice restaurant dinners", 100, "🍽️"),
    ("Spotify Premium subscriptions", 144, "🎵"),
    ("Gym memberships", 360, "💪"),
    ("Weekend getaway trips", 500, "✈️"),
    ("New gaming consoles", 500, "🎮"),
    ("Designer handbags", 1200, "👜"),
    ("Brand new Macbook Pros", 2000, "💻"),
    ("Nice vacation packages", 3000, "🏖️"),
    ("Down payment assistance", 10000, "🏠"),
    ("Used Honda Civics", 15000, "🚗"),
)

HabitTrend = Literal["increasing", "decreasing", "stable"]


class Equivalent(BaseModel):
    item: str
    cost: float
    emoji: str
    count: int


class HabitTaxResult(BaseModel):
    habit: str
    icon: str
    frequency: int
    monthly_spend: float
    annual_spend: float
    observed_total: float
    per_occurrence: float
    trend: HabitTrend
    one_year: float
    five_years: float
    ten_years: float
    thirty_years: float
    equivalents: list[Equivalent]


def find_habit(name: str, habits: Sequence[Habit] = HABITS) -> Habit | None:
    for habit in habits:
        if habit.name.lower() == name.lower():
            return habit
    return None


def matches_habit(transaction: Transaction, habit: Habit) -> bool:
    desc = transaction.description.lower()
    merchant = (transaction.merchant_name or "").lower()
    return any(term in desc or term in merchant for term in habit.terms)


def calculate_future_value(annual_payment: float, rate: float, years: int) -> float:
    """Future value of an annuity due: each yearly payment compounds from the start of its year."""
    if rate == 0:
        return annual_payment * years
    return annual_payment * (((1 + rate) ** years - 1) / rate) * (1 + rate)


def get_equivalents(annual_amount: float, limit: int = 3) -> list[Equivalent]:
    return [
        Equivalent(item=item, cost=cost, emoji=emoji, count=math.floor(annual_amount / cost))
        for item, cost, emoji in EQUIVALENT_ITEMS
        if annual_amount >= cost
    ][:limit]


def _habit_trend(matches: Sequence[Transaction], threshold: float) -> HabitTrend:
    ordered = sorted(matches, key=lambda t: t.date)
    half = len(ordered) // 2
    first, second = ordered[:half], ordered[half:]
    if not first:
        return "stable"
    first_avg = total_amount(first) / len(first)
    second_avg = total_amount(second) / len(second)
    if first_avg <= 0:
        return "stable"
    change = percent_change(first_avg, second_avg)
    if change > threshold:
        return "increasing"
    if change < -threshold:
        return "decreasing"
    return "stable"


def calculate_habit_tax(
    transactions: Sequence[Transaction],
    habit: Habit,
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> HabitTaxResult | None:
    matches = [t for t in transactions if matches_habit(t, habit)]
    if not matches:
        return None

    total_spent = total_amount(matches)
    # Months are counted over the whole history, not only the habit's months.
    months = count_months(transactions)
    monthly_spend = total_spent / months
    annual_spend = monthly_spend * 12

    return HabitTaxResult(
        habit=habit.name,
        icon=habit.icon,
        frequency=round(len(matches) / months),
        monthly_spend=monthly_spend,
        annual_spend=annual_spend,
        observed_total=total_spent,
        per_occurrence=total_spent / len(matches),
        trend=_habit_trend(matches, policy.habit_trend_threshold),
        one_year=annual_spend,
        five_years=calculate_future_value(annual_spend, policy.short_term_rate, 5),
        ten_years=calculate_future_value(annual_spend, policy.long_term_rate, 10),
        thirty_years=calculate_future_value(annual_spend, policy.long_term_rate, 30),
        equivalents=get_equivalents(annual_spend, policy.max_equivalents),
    )


def calculate_all_habit_taxes(
    transactions: Sequence[Transaction],
    habits: Sequence[Habit] = HABITS,
    policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
) -> list[HabitTaxResult]:
    results = [calculate_habit_tax(transactions, habit, policy) for habit in habits]
    found = [result for result in results if result is not None]
    found.sort(key=lambda r: r.annual_spend, reverse=True)
    return found
