# goalplan/utils/planner_state.py
"""
Planner state and its reducer.

``reduce(state, action)`` never mutates ``state``. Every action that touches a
goal, the budget or the funding style re-derives the affected goals and
re-runs the allocation over all active goals, because the budget-constrained
funding styles make every goal's plan depend on the others.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple, Union

from goalplan.core.config import settings
from goalplan.core.exceptions import GoalNotFound, InvalidGoalDefinition
from goalplan.utils.allocation import calculate_sequential_allocations
from goalplan.utils.planner_types import (
    ZERO,
    AllocationPlan,
    CustomRates,
    FundingStyle,
    Goal,
    GoalCategory,
    Number,
    RiskProfile,
    to_decimal,
)
from goalplan.utils.planning import add_months, derive_goal, horizon_for

logger = logging.getLogger(__name__)

EMERGENCY_FUND_ID = "emergency-fund"


@dataclass(frozen=True)
class PlannerState:
    as_of: date
    goals: Tuple[Goal, ...] = ()
    monthly_income: Optional[Decimal] = None
    monthly_expenses: Decimal = ZERO
    buffer_months: int = settings.DEFAULT_BUFFER_MONTHS
    budget: Decimal = ZERO
    funding_style: FundingStyle = FundingStyle.hybrid
    emergency_fund_created: bool = False
    allocations: Optional[AllocationPlan] = field(default=None, compare=False)

    def goal(self, goal_id: str) -> Optional[Goal]:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    @property
    def active_goals(self) -> Tuple[Goal, ...]:
        return tuple(g for g in self.goals if g.is_active)


# ────────────────────────────────────────────────────────────────────────────────
# ACTIONS
# ────────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SetMonthlyIncome:
    amount: Number


@dataclass(frozen=True)
class SetMonthlyExpenses:
    amount: Number


@dataclass(frozen=True)
class SetBudget:
    amount: Number


@dataclass(frozen=True)
class SetBufferMonths:
    months: int


@dataclass(frozen=True)
class CreateEmergencyFund:
    target_date: Optional[date] = None


@dataclass(frozen=True)
class UpdateEmergencyFund:
    monthly_expenses: Number
    buffer_months: int
    target_date: Optional[date] = None


@dataclass(frozen=True)
class AddGoal:
    goal: Goal


@dataclass(frozen=True)
class UpdateGoal:
    goal: Goal


@dataclass(frozen=True)
class DeleteGoal:
    goal_id: str


@dataclass(frozen=True)
class UpdateGoalProfile:
    goal_id: str
    profile: RiskProfile


@dataclass(frozen=True)
class UpdateGoalRates:
    goal_id: str
    rates: CustomRates


@dataclass(frozen=True)
class SetFundingStyle:
    funding_style: FundingStyle


@dataclass(frozen=True)
class SetAsOf:
    as_of: date


PlannerAction = Union[
    SetMonthlyIncome, SetMonthlyExpenses, SetBudget, SetBufferMonths,
    CreateEmergencyFund, UpdateEmergencyFund, AddGoal, UpdateGoal, DeleteGoal,
    UpdateGoalProfile, UpdateGoalRates, SetFundingStyle, SetAsOf,
]


# ────────────────────────────────────────────────────────────────────────────────
# HELPERS
# ────────────────────────────────────────────────────────────────────────────────
def _recalculate(state: PlannerState) -> PlannerState:
    plannable = [
        g for g in state.goals
        if g.is_active and horizon_for(g.target_date, state.as_of) >= 1
    ]
    plan = calculate_sequential_allocations(plannable, state.budget, state.funding_style)
    return replace(state, allocations=plan)


def _with_derived_budget(state: PlannerState) -> PlannerState:
    """Budget follows income minus expenses once income is known."""
    if state.monthly_income is None:
        return state
    budget = max(ZERO, state.monthly_income - state.monthly_expenses)
    return _recalculate(replace(state, budget=budget))


def _replace_goal(state: PlannerState, goal: Goal) -> PlannerState:
    if state.goal(goal.id) is None:
        raise GoalNotFound(goal.id)
    goals = tuple(goal if g.id == goal.id else g for g in state.goals)
    return replace(state, goals=goals)


def _existing_goal(state: PlannerState, goal_id: str) -> Goal:
    goal = state.goal(goal_id)
    if goal is None:
        raise GoalNotFound(goal_id)
    return goal


def _emergency_fund(state: PlannerState, target_date: Optional[date]) -> Goal:
    if state.monthly_expenses <= 0:
        raise InvalidGoalDefinition("Monthly expenses are needed to size the emergency fund", EMERGENCY_FUND_ID)
    goal = Goal(
        id=EMERGENCY_FUND_ID,
        name="Emergency Fund",
        category=GoalCategory.emergency,
        target_date=target_date or add_months(state.as_of, state.buffer_months),
        amount=state.monthly_expenses * state.buffer_months,
        profile=RiskProfile.conservative,
        is_foundational=True,
        buffer_months=state.buffer_months,
    )
    return derive_goal(goal, state.as_of)


def _put_emergency_fund(state: PlannerState, fund: Goal) -> PlannerState:
    others = tuple(g for g in state.goals if g.id != EMERGENCY_FUND_ID)
    return replace(state, goals=(fund,) + others, emergency_fund_created=True)


# ────────────────────────────────────────────────────────────────────────────────
# REDUCER
# ────────────────────────────────────────────────────────────────────────────────
def reduce(state: PlannerState, action: PlannerAction) -> PlannerState:
    if isinstance(action, SetBufferMonths):
        if action.months < 1:
            raise InvalidGoalDefinition(f"Buffer must be at least one month, got {action.months}")
        return replace(state, buffer_months=action.months)

    if isinstance(action, SetMonthlyIncome):
        return _with_derived_budget(replace(state, monthly_income=to_decimal(action.amount)))

    if isinstance(action, SetMonthlyExpenses):
        return _with_derived_budget(replace(state, monthly_expenses=to_decimal(action.amount)))

    if isinstance(action, SetBudget):
        return _recalculate(replace(state, budget=max(ZERO, to_decimal(action.amount))))

    if isinstance(action, SetFundingStyle):
        return _recalculate(replace(state, funding_style=FundingStyle(action.funding_style)))

    if isinstance(action, CreateEmergencyFund):
        state = _put_emergency_fund(state, _emergency_fund(state, action.target_date))
        return _recalculate(state)

    if isinstance(action, UpdateEmergencyFund):
        state = replace(
            state,
            monthly_expenses=to_decimal(action.monthly_expenses),
            buffer_months=action.buffer_months,
        )
        state = _put_emergency_fund(state, _emergency_fund(state, action.target_date))
        return _with_derived_budget(state) if state.monthly_income is not None else _recalculate(state)

    if isinstance(action, AddGoal):
        if state.goal(action.goal.id) is not None:
            raise InvalidGoalDefinition(f"Goal {action.goal.id} already exists", action.goal.id)
        goal = derive_goal(action.goal, state.as_of)
        return _recalculate(replace(state, goals=state.goals + (goal,)))

    if isinstance(action, UpdateGoal):
        return _recalculate(_replace_goal(state, derive_goal(action.goal, state.as_of)))

    if isinstance(action, DeleteGoal):
        goal = _existing_goal(state, action.goal_id)
        return _recalculate(_replace_goal(state, replace(goal, is_active=False)))

    if isinstance(action, UpdateGoalProfile):
        goal = _existing_goal(state, action.goal_id)
        goal = replace(goal, profile=RiskProfile(action.profile), custom_rates=None)
        return _recalculate(_replace_goal(state, derive_goal(goal, state.as_of)))

    if isinstance(action, UpdateGoalRates):
        goal = _existing_goal(state, action.goal_id)
        goal = replace(goal, custom_rates=action.rates)
        return _recalculate(_replace_goal(state, derive_goal(goal, state.as_of)))

    if isinstance(action, SetAsOf):
        goals = tuple(
            derive_goal(g, action.as_of)
            if g.is_active and horizon_for(g.target_date, action.as_of) >= 1 else g
            for g in state.goals
        )
        return _recalculate(replace(state, as_of=action.as_of, goals=goals))

    logger.debug(f"Ignoring unknown planner action: {action!r}")
    return state
