import unittest
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from goalplan.core.database import create_db_and_tables
from goalplan.core.exceptions import GoalNotFound, ReconciliationConflict
from goalplan.crud.budget import SQLAlchemyBudgetSource
from goalplan.crud.goal import SQLAlchemyGoalStore
from goalplan.crud.progress import SQLAlchemyProgressStore, upsert_progress_entry
from goalplan.utils.planner_types import (
    BudgetProfile,
    CustomRates,
    FundingStyle,
    Goal,
    GoalCategory,
    GoalProgressEntry,
    PaymentFrequency,
    RiskProfile,
)
from goalplan.utils.progress import ProgressReconciliationService


def education():
    return Goal(
        id="uni",
        name="University",
        category=GoalCategory.education,
        target_date=date(2034, 9, 1),
        amount=Decimal("80000.00"),
        profile=RiskProfile.growth,
        custom_rates=CustomRates.of("0.07", "0.05", "0.03"),
        payment_frequency=PaymentFrequency.annual,
        payment_period=4,
    )


class SQLiteStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        await create_db_and_tables(self.engine)
        self.session = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)()

    async def asyncTearDown(self):
        await self.session.close()
        await self.engine.dispose()


class TestSQLAlchemyGoalStore(SQLiteStoreTestCase):
    async def test_goal_round_trip(self):
        store = SQLAlchemyGoalStore(self.session)
        await store.save_goal("user-1", education())

        loaded = await store.get_goal("user-1", "uni")

        self.assertEqual(loaded.amount, Decimal("80000.00"))
        self.assertEqual(loaded.custom_rates, CustomRates.of("0.07", "0.05", "0.03"))
        self.assertEqual(loaded.payment_frequency, PaymentFrequency.annual)
        self.assertEqual(loaded.payment_period, 4)
        self.assertIsNone(await store.get_goal("user-2", "uni"))

    async def test_goals_are_scoped_to_owner(self):
        store = SQLAlchemyGoalStore(self.session)
        await store.save_goal("user-1", education())

        with self.assertRaises(GoalNotFound):
            await store.save_goal("user-2", education())
        self.assertEqual(await store.load_goals("user-2"), [])

    async def test_deactivate_hides_goal(self):
        store = SQLAlchemyGoalStore(self.session)
        await store.save_goal("user-1", education())

        self.assertTrue(await store.deactivate_goal("uni"))
        self.assertFalse(await store.deactivate_goal("uni"))
        self.assertEqual(await store.load_goals("user-1"), [])


class TestSQLAlchemyProgressStore(SQLiteStoreTestCase):
    async def test_reconciliation_over_sql(self):
        await SQLAlchemyGoalStore(self.session).save_goal("user-1", education())
        service = ProgressReconciliationService(SQLAlchemyProgressStore(self.session))

        await service.record_progress("user-1", "uni", "2026-01", 500, 600)
        await service.record_progress("user-1", "uni", "2026-04", 700, 600)
        await service.record_progress("user-1", "uni", "2026-02", 300, 600)
        await service.record_progress("user-1", "uni", "2026-02", 400, 600)

        history = await service.goal_history("user-1", "uni")

        self.assertEqual([e.month_year for e in history], [date(2026, 1, 1), date(2026, 2, 1), date(2026, 4, 1)])
        self.assertEqual(history[-1].cumulative_actual, Decimal(1600))
        self.assertEqual(history[-1].cumulative_planned, Decimal(1800))

    async def test_lost_insert_race_is_logged_and_raised(self):
        entry = GoalProgressEntry("uni", "user-1", date(2026, 1, 1), Decimal(600), Decimal(500))
        race = IntegrityError("INSERT INTO goal_progress", {}, Exception("UNIQUE constraint failed"))

        with patch.object(self.session, "commit", side_effect=race):
            with self.assertLogs("goalplan.crud.progress", level="WARNING") as logs:
                with self.assertRaises(ReconciliationConflict) as ctx:
                    await upsert_progress_entry(entry, self.session)

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertIn("uni", logs.output[0])
        self.assertEqual(await SQLAlchemyProgressStore(self.session).load_progress("user-1"), [])


class TestSQLAlchemyBudgetSource(SQLiteStoreTestCase):
    async def test_profile_upsert(self):
        source = SQLAlchemyBudgetSource(self.session)
        self.assertIsNone(await source.get_budget_profile("user-1"))

        await source.save_budget_profile(BudgetProfile("user-1", Decimal(4000), Decimal(2500), FundingStyle.parallel))
        saved = await source.save_budget_profile(BudgetProfile("user-1", Decimal(4500), Decimal(2500), FundingStyle.waterfall))

        self.assertEqual(saved.monthly_budget, Decimal(2000))
        self.assertEqual((await source.get_budget_profile("user-1")).funding_style, FundingStyle.waterfall)


if __name__ == "__main__":
    unittest.main()
