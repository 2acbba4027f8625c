# goalplan/api/v1/routes/plan.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from goalplan.api.deps import get_budget_source, get_goal_store, get_user_id
from goalplan.crud.budget import SQLAlchemyBudgetSource
from goalplan.crud.cached import CachedGoalStore
from goalplan.schemas.plan import PlanResponse
from goalplan.utils.planner_types import FundingStyle
from goalplan.utils.planning import build_user_plan, first_of_month

router = APIRouter(prefix="/plan", tags=["Plan"])

@router.get("", response_model=PlanResponse)
async def read_plan(
    funding_style: Optional[FundingStyle] = Query(None, description="Overrides the stored funding style"),
    as_of: Optional[date] = Query(None, description="First plan month; defaults to the current month"),
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
    source: SQLAlchemyBudgetSource = Depends(get_budget_source),
):
    """
    Month-by-month allocation of the user's budget across their active goals.

    When the goals need more per month than the budget allows, the plan is
    still returned and carries a `shortfall` notice.
    """
    as_of = first_of_month(as_of or date.today())
    plan = await build_user_plan(store, source, user_id, as_of=as_of, funding_style=funding_style)
    return PlanResponse.from_plan(plan, as_of)
