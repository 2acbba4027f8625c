# goalplan/crud/cached.py
import logging
from typing import List, Optional

from goalplan.core.cache import TTLCache
from goalplan.core.config import settings
from goalplan.interfaces.stores import GoalStore
from goalplan.utils.planner_types import Goal

logger = logging.getLogger(__name__)


class CachedGoalStore:
    """Read-through cache of each user's active goals in front of another GoalStore.

    Writes go straight to the wrapped store and drop the cached goals they affect.
    """

    def __init__(self, store: GoalStore, cache: Optional[TTLCache] = None):
        self.store = store
        self.cache = cache if cache is not None else TTLCache(settings.GOAL_CACHE_TTL_SECONDS)

    async def load_goals(self, user_id: str) -> List[Goal]:
        cached = self.cache.get(user_id)
        if cached is not None:
            return list(cached)
        goals = await self.store.load_goals(user_id)
        self.cache.put(user_id, tuple(goals))
        return goals

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        return await self.store.get_goal(user_id, goal_id)

    async def save_goal(self, user_id: str, goal: Goal) -> bool:
        saved = await self.store.save_goal(user_id, goal)
        self.cache.invalidate(user_id)
        return saved

    async def deactivate_goal(self, goal_id: str) -> bool:
        deactivated = await self.store.deactivate_goal(goal_id)
        # the owner is unknown here, so every cached list may be stale
        self.cache.clear()
        logger.debug(f"Goal cache cleared after deactivating {goal_id}")
        return deactivated
