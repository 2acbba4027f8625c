# goalplan/crud/progress.py
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from goalplan.core.db_utils import with_db_retry
from goalplan.core.exceptions import ReconciliationConflict
from goalplan.models.goal_progress import GoalProgress
from goalplan.utils.planner_types import GoalProgressEntry

logger = logging.getLogger(__name__)

def row_to_entry(row: GoalProgress) -> GoalProgressEntry:
    return GoalProgressEntry(
        goal_id=row.goal_id,
        user_id=row.user_id,
        month_year=row.month_year,
        planned_amount=row.planned_amount,
        actual_amount=row.actual_amount,
        cumulative_planned=row.cumulative_planned,
        cumulative_actual=row.cumulative_actual,
        notes=row.notes,
        updated_at=row.updated_at,
    )

@with_db_retry()
async def get_progress_for_user(user_id: str, db: AsyncSession, goal_id: Optional[str] = None) -> List[GoalProgress]:
    """Progress entries for a user, newest month first"""
    query = select(GoalProgress).where(GoalProgress.user_id == user_id)
    if goal_id is not None:
        query = query.where(GoalProgress.goal_id == goal_id)
    result = await db.execute(query.order_by(desc(GoalProgress.month_year), GoalProgress.goal_id))
    return result.scalars().all()

@with_db_retry()
async def upsert_progress_entry(entry: GoalProgressEntry, db: AsyncSession) -> GoalProgress:
    """Insert or replace the entry keyed by (goal_id, month_year)"""
    result = await db.execute(
        select(GoalProgress).where(
            GoalProgress.goal_id == entry.goal_id,
            GoalProgress.month_year == entry.month_year,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = GoalProgress(goal_id=entry.goal_id, user_id=entry.user_id, month_year=entry.month_year)
        db.add(row)

    row.planned_amount = entry.planned_amount
    row.actual_amount = entry.actual_amount
    row.cumulative_planned = entry.cumulative_planned
    row.cumulative_actual = entry.cumulative_actual
    row.notes = entry.notes

    try:
        await db.commit()
    except IntegrityError:
        # another writer inserted the same (goal_id, month_year) first
        await db.rollback()
        logger.warning(f"Progress write for goal {entry.goal_id} {entry.month_year} lost a race to another writer")
        raise ReconciliationConflict(entry.goal_id, entry.month_year)
    await db.refresh(row)
    return row


class SQLAlchemyProgressStore:
    """ProgressStore backed by the goal_progress table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_progress(self, user_id: str) -> List[GoalProgressEntry]:
        return [row_to_entry(row) for row in await get_progress_for_user(user_id, self.db)]

    async def upsert_progress(self, entry: GoalProgressEntry) -> GoalProgressEntry:
        return row_to_entry(await upsert_progress_entry(entry, self.db))
