# goalplan/api/v1/routes/goals.py
import uuid
from dataclasses import replace
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from goalplan.api.deps import get_goal_store, get_user_id
from goalplan.crud.cached import CachedGoalStore
from goalplan.schemas.goal import GoalCreate, GoalRead, GoalUpdate
from goalplan.utils.phases import recommended_profile
from goalplan.utils.planner_types import CustomRates, Goal
from goalplan.utils.planning import derive_goal, first_of_month, horizon_for

router = APIRouter(prefix="/goals", tags=["Goals"])

def _as_of(value: Optional[date]) -> date:
    return first_of_month(value or date.today())

def _for_display(goal: Goal, as_of: date) -> GoalRead:
    # goals past their target month keep their stored definition
    if goal.is_active and horizon_for(goal.target_date, as_of) >= 1:
        goal = derive_goal(goal, as_of)
    return GoalRead.from_goal(goal)

def _custom_rates(schema) -> Optional[CustomRates]:
    if schema is None:
        return None
    return CustomRates(schema.high, schema.mid, schema.low)

async def _get_or_404(store: CachedGoalStore, user_id: str, goal_id: str) -> Goal:
    goal = await store.get_goal(user_id, goal_id)
    if goal is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return goal

@router.get("", response_model=List[GoalRead])
async def read_goals(
    as_of: Optional[date] = Query(None, description="Plan month; defaults to the current month"),
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
):
    as_of = _as_of(as_of)
    goals = await store.load_goals(user_id)
    return [_for_display(goal, as_of) for goal in goals]

@router.post("", response_model=GoalRead, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_in: GoalCreate,
    as_of: Optional[date] = Query(None),
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
):
    """
    Create a goal and return it with its derived return phases and required
    monthly contribution.

    - **profile**: defaults to the profile recommended for the goal's horizon
    - **payment_period**: years the goal pays out after its target date
    """
    as_of = _as_of(as_of)
    goal_id = goal_in.id or str(uuid.uuid4())
    if await store.get_goal(user_id, goal_id) is not None:
        raise HTTPException(status.HTTP_409_CONFLICT, detail="Goal already exists")

    profile = goal_in.profile or recommended_profile(horizon_for(goal_in.target_date, as_of))
    goal = Goal(
        id=goal_id,
        name=goal_in.name,
        category=goal_in.category,
        target_date=goal_in.target_date,
        amount=goal_in.amount,
        profile=profile,
        custom_rates=_custom_rates(goal_in.custom_rates),
        payment_frequency=goal_in.payment_frequency,
        payment_period=goal_in.payment_period,
        is_foundational=goal_in.is_foundational,
    )
    derived = derive_goal(goal, as_of)
    await store.save_goal(user_id, goal)
    return GoalRead.from_goal(derived)

@router.get("/{goal_id}", response_model=GoalRead)
async def read_goal(
    goal_id: str,
    as_of: Optional[date] = Query(None),
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
):
    goal = await _get_or_404(store, user_id, goal_id)
    return _for_display(goal, _as_of(as_of))

@router.patch("/{goal_id}", response_model=GoalRead)
async def update_goal_endpoint(
    goal_id: str,
    goal_in: GoalUpdate,
    as_of: Optional[date] = Query(None),
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
):
    as_of = _as_of(as_of)
    goal = await _get_or_404(store, user_id, goal_id)
    changes = goal_in.model_dump(exclude_unset=True)
    # only these may be cleared with an explicit null
    changes = {
        key: value for key, value in changes.items()
        if value is not None or key in ("profile", "custom_rates", "payment_period")
    }

    if "custom_rates" in changes:
        changes["custom_rates"] = _custom_rates(goal_in.custom_rates)
    elif "profile" in changes:
        # switching profile drops any rate override
        changes["custom_rates"] = None
    if "profile" in changes and changes["profile"] is None:
        target_date = changes.get("target_date", goal.target_date)
        changes["profile"] = recommended_profile(horizon_for(target_date, as_of))

    updated = replace(goal, **changes)
    derived = derive_goal(updated, as_of)
    await store.save_goal(user_id, updated)
    return GoalRead.from_goal(derived)

@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal_endpoint(
    goal_id: str,
    user_id: str = Depends(get_user_id),
    store: CachedGoalStore = Depends(get_goal_store),
):
    """Deactivate the goal; it stays stored but no longer takes part in the plan."""
    await _get_or_404(store, user_id, goal_id)
    await store.deactivate_goal(goal_id)
    return None
