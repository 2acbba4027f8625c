# goalplan/utils/planning.py
import calendar
import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from goalplan.core.config import settings
from goalplan.core.exceptions import InvalidGoalDefinition
from goalplan.interfaces.stores import BudgetSource, GoalStore
from goalplan.utils.allocation import calculate_sequential_allocations
from goalplan.utils.payments import calculate_required_pmt
from goalplan.utils.phases import build_return_phases
from goalplan.utils.planner_types import (
    EMERGENCY_FUND_RATE,
    ZERO,
    AllocationPlan,
    FundingStyle,
    Goal,
    GoalCategory,
    Number,
    ReturnPhase,
)

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────────
# DATE HELPERS
# ────────────────────────────────────────────────────────────────────────────────
def month_diff(start: date, end: date) -> int:
    """Calendar months between two dates, ignoring the day of month."""
    return (end.year - start.year) * 12 + end.month - start.month


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def horizon_for(target_date: date, as_of: date) -> int:
    return month_diff(as_of, target_date)


# ────────────────────────────────────────────────────────────────────────────────
# GOAL DERIVATION
# ────────────────────────────────────────────────────────────────────────────────
def validate_goal(goal: Goal, horizon_months: int) -> None:
    if goal.amount <= 0:
        raise InvalidGoalDefinition(f"Goal amount must be positive, got {goal.amount}", goal.id)
    if horizon_months < 1:
        raise InvalidGoalDefinition(
            f"Goal {goal.name!r} targets {goal.target_date}, less than a month away", goal.id
        )
    if goal.payment_period is not None and goal.payment_period < 1:
        raise InvalidGoalDefinition(
            f"Payment period must be at least one year, got {goal.payment_period}", goal.id
        )


def derive_goal(goal: Goal, as_of: date) -> Goal:
    """Re-derive horizon, return phases and required contribution for ``goal``."""
    horizon = horizon_for(goal.target_date, as_of)
    validate_goal(goal, horizon)

    if goal.category == GoalCategory.emergency and goal.custom_rates is None:
        # cash-like: one phase at the savings rate
        phases = (ReturnPhase(horizon, EMERGENCY_FUND_RATE),)
    else:
        phases = build_return_phases(horizon, goal.profile, goal.payment_period, goal.custom_rates)

    required_pmt = calculate_required_pmt(
        goal.amount,
        phases,
        horizon,
        goal.payment_frequency,
        goal.payment_period,
    )
    return replace(goal, horizon_months=horizon, return_phases=phases, required_pmt=required_pmt)


def plannable_goals(goals: Iterable[Goal], as_of: date) -> List[Goal]:
    """Active goals whose target month is still ahead, freshly derived."""
    derived = []
    for goal in goals:
        if not goal.is_active:
            continue
        if horizon_for(goal.target_date, as_of) < 1:
            logger.info(f"Goal {goal.id} reached its target date {goal.target_date}; excluded from allocation")
            continue
        derived.append(derive_goal(goal, as_of))
    return derived


def build_plan(
    goals: Iterable[Goal],
    monthly_budget: Number,
    funding_style: FundingStyle,
    as_of: date,
) -> AllocationPlan:
    return calculate_sequential_allocations(plannable_goals(goals, as_of), monthly_budget, funding_style)


async def build_user_plan(
    goal_store: GoalStore,
    budget_source: BudgetSource,
    user_id: str,
    as_of: Optional[date] = None,
    funding_style: Optional[FundingStyle] = None,
) -> AllocationPlan:
    """Load a user's goals and budget and run the full allocation."""
    as_of = as_of or date.today()
    goals = await goal_store.load_goals(user_id)
    profile = await budget_source.get_budget_profile(user_id)

    budget = profile.monthly_budget if profile else ZERO
    if funding_style is None:
        funding_style = profile.funding_style if profile else FundingStyle(settings.DEFAULT_FUNDING_STYLE)

    logger.info(
        f"Building plan for user {user_id}: {len(goals)} goals, budget {budget}, style {FundingStyle(funding_style).value}"
    )
    return build_plan(goals, budget, funding_style, first_of_month(as_of))
