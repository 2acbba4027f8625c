# goalplan/crud/goal.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from goalplan.core.db_utils import with_db_retry
from goalplan.core.exceptions import GoalNotFound
from goalplan.models.goal import Goal as GoalRow
from goalplan.utils.planner_types import (
    CustomRates,
    Goal,
    GoalCategory,
    PaymentFrequency,
    RiskProfile,
)

logger = logging.getLogger(__name__)

def row_to_goal(row: GoalRow) -> Goal:
    custom_rates = None
    if row.custom_rate_high is not None and row.custom_rate_mid is not None and row.custom_rate_low is not None:
        custom_rates = CustomRates.of(row.custom_rate_high, row.custom_rate_mid, row.custom_rate_low)
    return Goal(
        id=row.id,
        name=row.name,
        category=GoalCategory(row.category),
        target_date=row.target_date,
        amount=row.amount,
        profile=RiskProfile(row.profile),
        custom_rates=custom_rates,
        payment_frequency=PaymentFrequency(row.payment_frequency),
        payment_period=row.payment_period,
        is_foundational=bool(row.is_foundational),
        is_active=bool(row.is_active),
        buffer_months=row.buffer_months,
    )

def _apply_goal(row: GoalRow, goal: Goal) -> None:
    row.name = goal.name
    row.category = GoalCategory(goal.category).value
    row.target_date = goal.target_date
    row.amount = goal.amount
    row.profile = RiskProfile(goal.profile).value
    row.custom_rate_high = goal.custom_rates.high if goal.custom_rates else None
    row.custom_rate_mid = goal.custom_rates.mid if goal.custom_rates else None
    row.custom_rate_low = goal.custom_rates.low if goal.custom_rates else None
    row.payment_frequency = PaymentFrequency(goal.payment_frequency).value
    row.payment_period = goal.payment_period
    row.buffer_months = goal.buffer_months
    row.is_foundational = goal.is_foundational
    row.is_active = goal.is_active

@with_db_retry()
async def get_goals_for_user(user_id: str, db: AsyncSession, include_inactive: bool = False) -> List[GoalRow]:
    query = select(GoalRow).where(GoalRow.user_id == user_id)
    if not include_inactive:
        query = query.where(GoalRow.is_active == True)
    result = await db.execute(query.order_by(GoalRow.target_date, GoalRow.created_at))
    return result.scalars().all()

@with_db_retry()
async def get_goal_by_id(goal_id: str, user_id: str, db: AsyncSession) -> Optional[GoalRow]:
    result = await db.execute(
        select(GoalRow).where(GoalRow.id == goal_id, GoalRow.user_id == user_id)
    )
    return result.scalar_one_or_none()

@with_db_retry()
async def save_goal_for_user(user_id: str, goal: Goal, db: AsyncSession) -> GoalRow:
    """Insert the goal or overwrite the stored definition with the same id."""
    row = await db.get(GoalRow, goal.id)
    if row is None:
        row = GoalRow(id=goal.id, user_id=user_id)
        db.add(row)
    elif row.user_id != user_id:
        raise GoalNotFound(goal.id)
    _apply_goal(row, goal)
    await db.commit()
    await db.refresh(row)
    logger.info(f"Saved goal {row.id} for user {user_id}")
    return row

@with_db_retry()
async def deactivate_goal(goal_id: str, db: AsyncSession) -> bool:
    result = await db.execute(
        update(GoalRow)
        .where(GoalRow.id == goal_id, GoalRow.is_active == True)
        .values(is_active=False, updated_at=datetime.utcnow())
    )
    await db.commit()
    deactivated = (result.rowcount or 0) > 0
    if deactivated:
        logger.info(f"Deactivated goal {goal_id}")
    return deactivated


class SQLAlchemyGoalStore:
    """GoalStore backed by the goals table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_goals(self, user_id: str) -> List[Goal]:
        return [row_to_goal(row) for row in await get_goals_for_user(user_id, self.db)]

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        row = await get_goal_by_id(goal_id, user_id, self.db)
        return row_to_goal(row) if row else None

    async def save_goal(self, user_id: str, goal: Goal) -> bool:
        await save_goal_for_user(user_id, goal, self.db)
        return True

    async def deactivate_goal(self, goal_id: str) -> bool:
        return await deactivate_goal(goal_id, self.db)
