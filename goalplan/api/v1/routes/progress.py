# goalplan/api/v1/routes/progress.py
import logging
from decimal import ROUND_HALF_UP
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from goalplan.api.deps import (
    get_budget_source,
    get_goal_store,
    get_progress_service,
    get_user_id,
)
from goalplan.crud.budget import SQLAlchemyBudgetSource
from goalplan.crud.cached import CachedGoalStore
from goalplan.schemas.progress import CurrentProgressRead, ProgressRead, ProgressUpsert
from goalplan.utils.planner_types import CENT
from goalplan.utils.planning import build_user_plan
from goalplan.utils.progress import (
    ProgressReconciliationService,
    month_key,
    planned_amount_for,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["Progress"])

@router.get("", response_model=List[ProgressRead])
async def read_progress(
    goal_id: Optional[str] = Query(None),
    user_id: str = Depends(get_user_id),
    service: ProgressReconciliationService = Depends(get_progress_service),
):
    if goal_id is not None:
        entries = await service.goal_history(user_id, goal_id)
    else:
        entries = sorted(
            await service.store.load_progress(user_id),
            key=lambda e: (e.goal_id, e.month_year),
        )
    return [ProgressRead.model_validate(e) for e in entries]

@router.get("/current", response_model=List[CurrentProgressRead])
async def read_current_progress(
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
    service: ProgressReconciliationService = Depends(get_progress_service),
):
    """Latest cumulative actual vs. planned of every active goal."""
    goals = await store.load_goals(user_id)
    progress = await service.current_progress(user_id, [g.id for g in goals])
    return [CurrentProgressRead.model_validate(p) for p in progress]

@router.put("/{goal_id}/{month_year}", response_model=ProgressRead)
async def record_progress(
    goal_id: str,
    month_year: str,
    progress_in: ProgressUpsert,
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
    source: SQLAlchemyBudgetSource = Depends(get_budget_source),
    service: ProgressReconciliationService = Depends(get_progress_service),
):
    """
    Record what was actually put toward a goal in a month (`YYYY-MM`).

    Writing the same month again replaces its amounts. Cumulative totals of
    that month and every later month are recomputed.
    """
    goal = await store.get_goal(user_id, goal_id)
    if goal is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Goal not found")

    month = month_key(month_year)
    planned = progress_in.planned_amount
    if planned is None:
        # what the plan starting that month allocates to the goal
        plan = await build_user_plan(store, source, user_id, as_of=month)
        planned = planned_amount_for(plan, goal_id, month, month).quantize(CENT, rounding=ROUND_HALF_UP)
        logger.debug(f"Planned amount for goal {goal_id} {month:%Y-%m} taken from plan: {planned}")

    entry = await service.record_progress(
        user_id,
        goal_id,
        month,
        progress_in.actual_amount,
        planned,
        notes=progress_in.notes,
    )
    return ProgressRead.model_validate(entry)
