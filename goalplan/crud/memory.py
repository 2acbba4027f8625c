"""In-memory planner stores."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from goalplan.core.exceptions import GoalNotFound
from goalplan.utils.planner_types import BudgetProfile, Goal, GoalProgressEntry


class MemoryGoalStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        # goal_id -> (user_id, goal)
        self._goals: Dict[str, Tuple[str, Goal]] = {}

    async def load_goals(self, user_id: str) -> List[Goal]:
        async with self._lock:
            return [goal for owner, goal in self._goals.values() if owner == user_id and goal.is_active]

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        async with self._lock:
            record = self._goals.get(goal_id)
            if record is None or record[0] != user_id:
                return None
            return record[1]

    async def save_goal(self, user_id: str, goal: Goal) -> bool:
        async with self._lock:
            record = self._goals.get(goal.id)
            if record is not None and record[0] != user_id:
                raise GoalNotFound(goal.id)
            self._goals[goal.id] = (user_id, goal)
            return True

    async def deactivate_goal(self, goal_id: str) -> bool:
        async with self._lock:
            record = self._goals.get(goal_id)
            if record is None or not record[1].is_active:
                return False
            owner, goal = record
            self._goals[goal_id] = (owner, replace(goal, is_active=False))
            return True


class MemoryProgressStore:
    """Progress entries keyed by (goal_id, month_year); the key enforces one entry per goal and month."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: Dict[Tuple[str, date], GoalProgressEntry] = {}

    async def load_progress(self, user_id: str) -> List[GoalProgressEntry]:
        async with self._lock:
            entries = [e for e in self._entries.values() if e.user_id == user_id]
        return sorted(entries, key=lambda e: (e.month_year, e.goal_id), reverse=True)

    async def upsert_progress(self, entry: GoalProgressEntry) -> GoalProgressEntry:
        async with self._lock:
            stored = replace(entry, updated_at=datetime.utcnow())
            self._entries[entry.key] = stored
            return stored


class MemoryBudgetSource:
    def __init__(self) -> None:
        self._profiles: Dict[str, BudgetProfile] = {}

    async def get_budget_profile(self, user_id: str) -> Optional[BudgetProfile]:
        return self._profiles.get(user_id)

    async def save_budget_profile(self, profile: BudgetProfile) -> BudgetProfile:
        self._profiles[profile.user_id] = profile
        return profile
