from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from spendlens.analytics.bills import BillReport, detect_recurring_bills
from spendlens.analytics.habits import (
    HABITS,
    Habit,
    HabitTaxResult,
    calculate_all_habit_taxes,
    find_habit,
)
from spendlens.analytics.health import FinancialHealthScore, calculate_financial_health_score
from spendlens.analytics.lifestyle import LifestyleInflationResult, detect_lifestyle_inflation
from spendlens.analytics.pareto import ParetoResult, find_pareto, find_pareto_by_category
from spendlens.analytics.patterns import (
    BestMonth,
    DayOfWeekPattern,
    OpportunityCostResult,
    analyze_spending_by_day_of_week,
    calculate_opportunity_cost,
    find_best_month,
)
from spendlens.analytics.regrettable import RegrettableSpending, detect_regrettable_spending
from spendlens.api.schemas import HabitTaxRequest, TransactionsRequest
from spendlens.core.policy import AnalyticsPolicy, RecurrencePolicy

router = APIRouter(prefix="/analytics")
catalogue_router = APIRouter()


def _resolve_habits(names: list[str] | None) -> list[Habit]:
    if not names:
        return list(HABITS)
    habits = []
    for name in names:
        habit = find_habit(name)
        if habit is None:
            raise HTTPException(status_code=404, detail=f"Unknown habit: {name}")
        habits.append(habit)
    return habits


@router.post("/bills", response_model=BillReport)
async def recurring_bills(req: TransactionsRequest) -> BillReport:
    return detect_recurring_bills(req.transactions, RecurrencePolicy.from_env())


@router.post("/pareto", response_model=ParetoResult)
async def pareto_merchants(req: TransactionsRequest) -> ParetoResult:
    return find_pareto(req.transactions)


@router.post("/pareto/categories", response_model=ParetoResult)
async def pareto_categories(req: TransactionsRequest) -> ParetoResult:
    return find_pareto_by_category(req.transactions)


@router.post("/lifestyle", response_model=LifestyleInflationResult | None)
async def lifestyle_inflation(req: TransactionsRequest) -> LifestyleInflationResult | None:
    return detect_lifestyle_inflation(req.transactions)


@router.post("/habits", response_model=list[HabitTaxResult])
async def habit_taxes(req: HabitTaxRequest) -> list[HabitTaxResult]:
    return calculate_all_habit_taxes(
        req.transactions,
        _resolve_habits(req.habits),
        AnalyticsPolicy.from_env(),
    )


@router.post("/health", response_model=FinancialHealthScore | None)
async def financial_health(req: TransactionsRequest) -> FinancialHealthScore | None:
    policy = AnalyticsPolicy.from_env()
    habit_results = calculate_all_habit_taxes(req.transactions, policy=policy)
    return calculate_financial_health_score(req.transactions, habit_results, policy)


@router.post("/regrettable", response_model=RegrettableSpending)
async def regrettable_spending(req: TransactionsRequest) -> RegrettableSpending:
    return detect_regrettable_spending(req.transactions, AnalyticsPolicy.from_env())


@router.post("/day-of-week", response_model=list[DayOfWeekPattern])
async def day_of_week(req: TransactionsRequest) -> list[DayOfWeekPattern]:
    return analyze_spending_by_day_of_week(req.transactions)


@router.post("/best-month", response_model=BestMonth | None)
async def best_month(req: TransactionsRequest) -> BestMonth | None:
    return find_best_month(req.transactions)


@router.get("/opportunity-cost", response_model=OpportunityCostResult)
async def opportunity_cost(
    amount: float = Query(ge=0),
    timeframe: Literal["monthly", "annual"] = "monthly",
) -> OpportunityCostResult:
    return calculate_opportunity_cost(amount, timeframe, AnalyticsPolicy.from_env())


@catalogue_router.get("/habits")
async def list_habits() -> list[dict[str, object]]:
    return [
        {"name": h.name, "icon": h.icon, "keywords": list(h.keywords), "aliases": list(h.aliases)}
        for h in HABITS
    ]
