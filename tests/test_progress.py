import asyncio
import unittest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from goalplan.core.exceptions import InvalidGoalDefinition, ReconciliationConflict
from goalplan.crud.memory import MemoryProgressStore
from goalplan.utils.planner_types import (
    AllocationPlan,
    FundingStyle,
    Goal,
    GoalCategory,
    GoalResult,
)
from goalplan.utils.progress import (
    KeyedLocks,
    ProgressReconciliationService,
    month_key,
    planned_amount_for,
)

USER = "user-1"


class FlakyProgressStore(MemoryProgressStore):
    """Raises a write conflict on the first ``failures`` upserts."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    async def upsert_progress(self, entry):
        if self.failures > 0:
            self.failures -= 1
            raise ReconciliationConflict(entry.goal_id, entry.month_year)
        return await super().upsert_progress(entry)


class YieldingProgressStore(MemoryProgressStore):
    """Gives other tasks a turn before every read and write."""

    async def load_progress(self, user_id):
        await asyncio.sleep(0)
        return await super().load_progress(user_id)

    async def upsert_progress(self, entry):
        await asyncio.sleep(0)
        return await super().upsert_progress(entry)


class TestProgressReconciliation(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = MemoryProgressStore()
        self.service = ProgressReconciliationService(self.store)

    async def test_cumulative_totals_follow_previous_month(self):
        await self.service.record_progress(USER, "car", "2026-01", 100, 150)
        feb = await self.service.record_progress(USER, "car", "2026-02", 200, 150)

        self.assertEqual(feb.cumulative_actual, Decimal(300))
        self.assertEqual(feb.cumulative_planned, Decimal(300))
        self.assertEqual(feb.variance, Decimal(0))

    async def test_rewriting_a_month_replaces_it(self):
        await self.service.record_progress(USER, "car", "2026-01", 100, 150)
        first = await self.service.record_progress(USER, "car", "2026-02", 200, 150)
        again = await self.service.record_progress(USER, "car", "2026-02", 200, 150)

        self.assertEqual(first.cumulative_actual, again.cumulative_actual)
        history = await self.service.goal_history(USER, "car")
        self.assertEqual(len(history), 2)

    async def test_out_of_order_month_updates_later_totals(self):
        await self.service.record_progress(USER, "car", date(2026, 1, 1), 100, 100)
        await self.service.record_progress(USER, "car", date(2026, 5, 1), 100, 100)
        march = await self.service.record_progress(USER, "car", date(2026, 3, 15), 50, 100)

        self.assertEqual(march.month_year, date(2026, 3, 1))
        self.assertEqual(march.cumulative_actual, Decimal(150))

        history = await self.service.goal_history(USER, "car")
        self.assertEqual([e.month_year.month for e in history], [1, 3, 5])
        self.assertEqual(history[-1].cumulative_actual, Decimal(250))
        self.assertEqual(history[-1].cumulative_planned, Decimal(300))

    async def test_current_progress_per_goal(self):
        await self.service.record_progress(USER, "car", "2026-01", 100, 150)
        await self.service.record_progress(USER, "car", "2026-02", 80, 150)
        await self.service.record_progress("someone-else", "bike", "2026-02", 999, 0)

        progress = await self.service.current_progress(USER, ["car", "trip"])
        car, trip = progress

        self.assertEqual(car.cumulative_actual, Decimal(180))
        self.assertEqual(car.monthly_actual, Decimal(80))
        self.assertEqual(car.variance, Decimal(-120))
        self.assertEqual(car.last_month, date(2026, 2, 1))
        self.assertIsNotNone(car.last_updated)
        self.assertEqual(trip.cumulative_actual, Decimal(0))
        self.assertIsNone(trip.last_month)

    async def test_conflict_is_retried(self):
        service = ProgressReconciliationService(FlakyProgressStore(failures=2), max_conflict_retries=3)

        entry = await service.record_progress(USER, "car", "2026-01", 100, 100)

        self.assertEqual(entry.cumulative_actual, Decimal(100))

    async def test_conflict_gives_up_after_retries(self):
        service = ProgressReconciliationService(FlakyProgressStore(failures=10), max_conflict_retries=2)

        with self.assertRaises(ReconciliationConflict):
            await service.record_progress(USER, "car", "2026-01", 100, 100)

    async def test_rebuild_history_repairs_totals(self):
        await self.service.record_progress(USER, "car", "2026-01", 100, 100)
        await self.service.record_progress(USER, "car", "2026-02", 100, 100)
        history = await self.service.goal_history(USER, "car")
        # simulate a stale total written by an older client
        await self.store.upsert_progress(replace(history[-1], cumulative_actual=Decimal(5)))

        rebuilt = await self.service.rebuild_history(USER, "car")

        self.assertEqual(rebuilt[-1].cumulative_actual, Decimal(200))

    async def test_concurrent_writes_to_one_goal_are_serialised(self):
        locks = KeyedLocks()
        service = ProgressReconciliationService(YieldingProgressStore(), locks=locks)

        await asyncio.gather(*(
            service.record_progress(USER, "car", f"2026-{month:02d}", 100, 100)
            for month in (5, 1, 3, 2, 6, 4)
        ))

        history = await service.goal_history(USER, "car")
        self.assertEqual([e.cumulative_actual for e in history], [Decimal(100 * n) for n in range(1, 7)])
        self.assertEqual(len(locks), 0)


class TestKeyedLocks(unittest.IsolatedAsyncioTestCase):
    async def test_lock_is_dropped_when_released(self):
        locks = KeyedLocks()

        async with locks.hold("car"):
            self.assertEqual(len(locks), 1)
        self.assertEqual(len(locks), 0)

    async def test_waiter_keeps_lock_alive(self):
        locks = KeyedLocks()
        order = []

        async def writer(name):
            async with locks.hold("car"):
                order.append(f"{name} in")
                await asyncio.sleep(0)
                order.append(f"{name} out")

        await asyncio.gather(writer("a"), writer("b"))

        self.assertEqual(order, ["a in", "a out", "b in", "b out"])
        self.assertEqual(len(locks), 0)

    async def test_lock_released_on_error(self):
        locks = KeyedLocks()

        with self.assertRaises(ReconciliationConflict):
            async with locks.hold("car"):
                raise ReconciliationConflict("car", "2026-01")
        self.assertEqual(len(locks), 0)


class TestProgressHelpers(unittest.TestCase):
    def test_month_key(self):
        self.assertEqual(month_key("2026-03"), date(2026, 3, 1))
        self.assertEqual(month_key("2026-03-31"), date(2026, 3, 1))
        with self.assertRaises(InvalidGoalDefinition):
            month_key("March")

    def test_planned_amount_for_month(self):
        goal = Goal(
            id="car",
            name="Car",
            category=GoalCategory.other,
            target_date=date(2026, 4, 1),
            amount=Decimal(300),
            horizon_months=3,
        )
        result = GoalResult(
            goal=goal,
            required_pmt=Decimal(100),
            monthly_allocations=(Decimal(100), Decimal(90), Decimal(110)),
            running_balances=(Decimal(100), Decimal(190), Decimal(300)),
            amount_at_target=Decimal(300),
            remaining_gap=Decimal(0),
            average_allocation=Decimal(100),
        )
        plan = AllocationPlan(FundingStyle.parallel, Decimal(500), 3, (result,))
        start = date(2026, 1, 1)

        self.assertEqual(planned_amount_for(plan, "car", start, "2026-02"), Decimal(90))
        self.assertEqual(planned_amount_for(plan, "car", start, "2025-12"), Decimal(0))
        self.assertEqual(planned_amount_for(plan, "car", start, "2026-06"), Decimal(0))
        self.assertEqual(planned_amount_for(plan, "other", start, "2026-01"), Decimal(0))


if __name__ == "__main__":
    unittest.main()
