# goalplan/api/v1/routes/budget.py
from fastapi import APIRouter, Depends

from goalplan.api.deps import get_budget_source, get_user_id
from goalplan.core.config import settings
from goalplan.crud.budget import SQLAlchemyBudgetSource
from goalplan.schemas.budget import BudgetProfileRead, BudgetProfileUpdate
from goalplan.utils.planner_types import ZERO, BudgetProfile, FundingStyle

router = APIRouter(prefix="/budget", tags=["Budget"])

@router.get("", response_model=BudgetProfileRead)
async def read_budget(
    user_id: str = Depends(get_user_id),
    source: SQLAlchemyBudgetSource = Depends(get_budget_source),
):
    """Monthly income and expenses; a user without a profile has a zero budget."""
    profile = await source.get_budget_profile(user_id)
    if profile is None:
        profile = BudgetProfile(
            user_id=user_id,
            monthly_income=ZERO,
            monthly_expenses=ZERO,
            funding_style=FundingStyle(settings.DEFAULT_FUNDING_STYLE),
        )
    return BudgetProfileRead.model_validate(profile)

@router.put("", response_model=BudgetProfileRead)
async def update_budget(
    budget_in: BudgetProfileUpdate,
    user_id: str = Depends(get_user_id),
    source: SQLAlchemyBudgetSource = Depends(get_budget_source),
):
    profile = BudgetProfile(
        user_id=user_id,
        monthly_income=budget_in.monthly_income,
        monthly_expenses=budget_in.monthly_expenses,
        funding_style=budget_in.funding_style,
    )
    saved = await source.save_budget_profile(profile)
    return BudgetProfileRead.model_validate(saved)
