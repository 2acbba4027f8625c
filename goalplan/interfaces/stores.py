"""Store contracts the planner depends on."""

from __future__ import annotations

from typing import List, Optional, Protocol

from goalplan.utils.planner_types import BudgetProfile, Goal, GoalProgressEntry


class GoalStore(Protocol):
    async def load_goals(self, user_id: str) -> List[Goal]:
        ...

    async def save_goal(self, user_id: str, goal: Goal) -> bool:
        ...

    async def deactivate_goal(self, goal_id: str) -> bool:
        ...


class ProgressStore(Protocol):
    async def load_progress(self, user_id: str) -> List[GoalProgressEntry]:
        ...

    async def upsert_progress(self, entry: GoalProgressEntry) -> GoalProgressEntry:
        ...


class BudgetSource(Protocol):
    async def get_budget_profile(self, user_id: str) -> Optional[BudgetProfile]:
        ...
