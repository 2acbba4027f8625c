# goalplan/utils/progress.py
"""
Actual vs. planned contributions per goal per month.

A progress entry's cumulative totals are always derived from the
chronologically preceding entry of the same goal, never from whichever entry
was written last. After every write the later months of that goal are
rebuilt from the full history, so an out-of-order insert (March after May)
leaves no stale cumulative values behind.
"""
import asyncio
import contextlib
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Union

from goalplan.core.exceptions import InvalidGoalDefinition, ReconciliationConflict
from goalplan.interfaces.stores import ProgressStore
from goalplan.utils.planner_types import (
    ZERO,
    AllocationPlan,
    GoalProgressEntry,
    Number,
    to_decimal,
)
from goalplan.utils.planning import month_diff

logger = logging.getLogger(__name__)

MonthLike = Union[date, datetime, str]


def month_key(value: MonthLike) -> date:
    """Normalise a month reference (date, datetime, ``YYYY-MM`` or ``YYYY-MM-DD``) to the first of the month."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, str):
        parts = value.strip().split("-")
        try:
            value = date(int(parts[0]), int(parts[1]), 1)
        except (IndexError, ValueError):
            raise InvalidGoalDefinition(f"Invalid month: {value!r}")
    return value.replace(day=1)


def accumulate(entries: Iterable[GoalProgressEntry]) -> List[GoalProgressEntry]:
    """Recompute cumulative totals of one goal's entries from scratch, in month order."""
    rebuilt = []
    planned = ZERO
    actual = ZERO
    for entry in sorted(entries, key=lambda e: e.month_year):
        planned += entry.planned_amount
        actual += entry.actual_amount
        rebuilt.append(replace(entry, cumulative_planned=planned, cumulative_actual=actual))
    return rebuilt


def _same_totals(a: GoalProgressEntry, b: GoalProgressEntry) -> bool:
    return (
        a.planned_amount == b.planned_amount
        and a.actual_amount == b.actual_amount
        and a.cumulative_planned == b.cumulative_planned
        and a.cumulative_actual == b.cumulative_actual
    )


@dataclass(frozen=True)
class CurrentProgress:
    goal_id: str
    cumulative_actual: Decimal = ZERO
    cumulative_planned: Decimal = ZERO
    monthly_actual: Decimal = ZERO
    last_month: Optional[date] = None
    last_updated: Optional[datetime] = None

    @property
    def variance(self) -> Decimal:
        return self.cumulative_actual - self.cumulative_planned


def current_progress(entries: Sequence[GoalProgressEntry], goal_ids: Sequence[str]) -> List[CurrentProgress]:
    """Latest cumulative position of each goal; zero when a goal has no entries."""
    latest: Dict[str, GoalProgressEntry] = {}
    for entry in entries:
        seen = latest.get(entry.goal_id)
        if seen is None or entry.month_year > seen.month_year:
            latest[entry.goal_id] = entry

    progress = []
    for goal_id in goal_ids:
        entry = latest.get(goal_id)
        if entry is None:
            progress.append(CurrentProgress(goal_id=goal_id))
            continue
        progress.append(CurrentProgress(
            goal_id=goal_id,
            cumulative_actual=entry.cumulative_actual,
            cumulative_planned=entry.cumulative_planned,
            monthly_actual=entry.actual_amount,
            last_month=entry.month_year,
            last_updated=entry.updated_at,
        ))
    return progress


def planned_amount_for(plan: AllocationPlan, goal_id: str, plan_start: date, month_year: MonthLike) -> Decimal:
    """Planned contribution for ``goal_id`` in ``month_year`` of a plan starting at ``plan_start``."""
    result = plan.result_for(goal_id)
    if result is None:
        return ZERO
    index = month_diff(month_key(plan_start), month_key(month_year))
    if 0 <= index < len(result.monthly_allocations):
        return result.monthly_allocations[index]
    return ZERO


class KeyedLocks:
    """
    One asyncio.Lock per key, created on first use.

    A key's lock is dropped once nobody holds it or waits for it, so the
    registry only ever holds the goals being written right now.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class ProgressReconciliationService:
    def __init__(self, store: ProgressStore, max_conflict_retries: int = 3, locks: Optional[KeyedLocks] = None):
        self.store = store
        self.max_conflict_retries = max_conflict_retries
        self._locks = locks if locks is not None else KeyedLocks()

    async def record_progress(
        self,
        user_id: str,
        goal_id: str,
        month_year: MonthLike,
        actual_amount: Number,
        planned_amount: Number,
        notes: Optional[str] = None,
    ) -> GoalProgressEntry:
        """Insert or replace the entry for ``(goal_id, month_year)`` and reconcile later months."""
        month = month_key(month_year)
        actual = to_decimal(actual_amount)
        planned = to_decimal(planned_amount)

        async with self._locks.hold(goal_id):
            last_conflict = None
            for attempt in range(self.max_conflict_retries + 1):
                try:
                    return await self._write(user_id, goal_id, month, actual, planned, notes)
                except ReconciliationConflict as conflict:
                    last_conflict = conflict
                    logger.warning(
                        f"{conflict.message}; recomputing from history (attempt {attempt + 1})"
                    )
            raise last_conflict

    async def _goal_history(self, user_id: str, goal_id: str) -> List[GoalProgressEntry]:
        entries = await self.store.load_progress(user_id)
        return [e for e in entries if e.goal_id == goal_id]

    async def _write(
        self,
        user_id: str,
        goal_id: str,
        month: date,
        actual: Decimal,
        planned: Decimal,
        notes: Optional[str],
    ) -> GoalProgressEntry:
        history = await self._goal_history(user_id, goal_id)

        prior = [e for e in history if e.month_year < month]
        previous = max(prior, key=lambda e: e.month_year) if prior else None
        entry = GoalProgressEntry(
            goal_id=goal_id,
            user_id=user_id,
            month_year=month,
            planned_amount=planned,
            actual_amount=actual,
            cumulative_planned=(previous.cumulative_planned if previous else ZERO) + planned,
            cumulative_actual=(previous.cumulative_actual if previous else ZERO) + actual,
            notes=notes,
        )
        saved = await self.store.upsert_progress(entry)
        logger.info(
            f"Progress saved for goal {goal_id} {month:%Y-%m}: actual {actual}, planned {planned}, "
            f"cumulative {saved.cumulative_actual}/{saved.cumulative_planned}"
        )

        stored = [e for e in history if e.month_year != month] + [saved]
        synced = await self._sync(accumulate(stored), stored)
        return next(e for e in synced if e.month_year == month)

    async def _sync(self, rebuilt: List[GoalProgressEntry], stored: Sequence[GoalProgressEntry]) -> List[GoalProgressEntry]:
        """Persist entries whose totals differ from what is stored."""
        current = {e.month_year: e for e in stored}
        synced = []
        for entry in rebuilt:
            old = current.get(entry.month_year)
            if old is not None and _same_totals(old, entry):
                synced.append(old)
                continue
            logger.debug(f"Reconciling goal {entry.goal_id} {entry.month_year:%Y-%m}")
            synced.append(await self.store.upsert_progress(entry))
        return synced

    async def rebuild_history(self, user_id: str, goal_id: str) -> List[GoalProgressEntry]:
        """Re-derive every cumulative total of a goal from its full history."""
        async with self._locks.hold(goal_id):
            history = await self._goal_history(user_id, goal_id)
            return await self._sync(accumulate(history), history)

    async def current_progress(self, user_id: str, goal_ids: Sequence[str]) -> List[CurrentProgress]:
        return current_progress(await self.store.load_progress(user_id), goal_ids)

    async def goal_history(self, user_id: str, goal_id: str) -> List[GoalProgressEntry]:
        return sorted(await self._goal_history(user_id, goal_id), key=lambda e: e.month_year)
