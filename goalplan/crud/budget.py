# goalplan/crud/budget.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from goalplan.core.db_utils import with_db_retry
from goalplan.models.budget_profile import BudgetProfile as BudgetProfileRow
from goalplan.utils.planner_types import BudgetProfile, FundingStyle, to_decimal

def row_to_profile(row: BudgetProfileRow) -> BudgetProfile:
    return BudgetProfile(
        user_id=row.user_id,
        monthly_income=to_decimal(row.monthly_income),
        monthly_expenses=to_decimal(row.monthly_expenses),
        funding_style=FundingStyle(row.funding_style),
    )

@with_db_retry()
async def get_budget_profile(user_id: str, db: AsyncSession) -> Optional[BudgetProfileRow]:
    return await db.get(BudgetProfileRow, user_id)

@with_db_retry()
async def save_budget_profile(profile: BudgetProfile, db: AsyncSession) -> BudgetProfileRow:
    row = await db.get(BudgetProfileRow, profile.user_id)
    if row is None:
        row = BudgetProfileRow(user_id=profile.user_id)
        db.add(row)
    row.monthly_income = profile.monthly_income
    row.monthly_expenses = profile.monthly_expenses
    row.funding_style = FundingStyle(profile.funding_style).value
    await db.commit()
    await db.refresh(row)
    return row


class SQLAlchemyBudgetSource:
    """BudgetSource backed by the budget_profiles table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_budget_profile(self, user_id: str) -> Optional[BudgetProfile]:
        row = await get_budget_profile(user_id, self.db)
        return row_to_profile(row) if row else None

    async def save_budget_profile(self, profile: BudgetProfile) -> BudgetProfile:
        return row_to_profile(await save_budget_profile(profile, self.db))
