# goalplan/api/deps.py
from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from goalplan.core.cache import TTLCache
from goalplan.core.config import settings
from goalplan.core.database import get_async_session
from goalplan.crud.budget import SQLAlchemyBudgetSource
from goalplan.crud.cached import CachedGoalStore
from goalplan.crud.goal import SQLAlchemyGoalStore
from goalplan.crud.progress import SQLAlchemyProgressStore
from goalplan.utils.progress import KeyedLocks, ProgressReconciliationService

# Shared across requests: goal lists per user, and one write lock per goal
goal_cache = TTLCache(settings.GOAL_CACHE_TTL_SECONDS)
progress_locks = KeyedLocks()

async def get_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    The caller's user id. Authentication happens upstream; this service only
    scopes data by the id it is given.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()

async def get_goal_store(db: AsyncSession = Depends(get_async_session)) -> CachedGoalStore:
    return CachedGoalStore(SQLAlchemyGoalStore(db), cache=goal_cache)

async def get_budget_source(db: AsyncSession = Depends(get_async_session)) -> SQLAlchemyBudgetSource:
    return SQLAlchemyBudgetSource(db)

async def get_progress_service(db: AsyncSession = Depends(get_async_session)) -> ProgressReconciliationService:
    return ProgressReconciliationService(SQLAlchemyProgressStore(db), locks=progress_locks)
