import unittest
from datetime import date
from decimal import Decimal

from goalplan.core.exceptions import InvalidGoalDefinition
from goalplan.crud.memory import MemoryBudgetSource, MemoryGoalStore
from goalplan.utils.planner_types import (
    EMERGENCY_FUND_RATE,
    BudgetProfile,
    FundingStyle,
    Goal,
    GoalCategory,
    ReturnPhase,
)
from goalplan.utils.planning import (
    add_months,
    build_user_plan,
    derive_goal,
    month_diff,
)

AS_OF = date(2026, 1, 1)


def goal(goal_id, target_date, amount="10000", category=GoalCategory.other):
    return Goal(
        id=goal_id,
        name=goal_id,
        category=category,
        target_date=target_date,
        amount=Decimal(amount),
    )


class TestDateHelpers(unittest.TestCase):
    def test_month_diff_ignores_day(self):
        self.assertEqual(month_diff(date(2026, 1, 31), date(2026, 3, 1)), 2)
        self.assertEqual(month_diff(date(2026, 5, 1), date(2026, 2, 1)), -3)

    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(date(2026, 1, 31), 1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2026, 11, 15), 3), date(2027, 2, 15))


class TestDeriveGoal(unittest.TestCase):
    def test_emergency_goal_uses_savings_rate(self):
        fund = derive_goal(goal("fund", date(2026, 7, 1), category=GoalCategory.emergency), AS_OF)

        self.assertEqual(fund.return_phases, (ReturnPhase(6, EMERGENCY_FUND_RATE),))
        self.assertEqual(fund.horizon_months, 6)

    def test_rejects_past_target(self):
        with self.assertRaises(InvalidGoalDefinition):
            derive_goal(goal("late", date(2025, 12, 1)), AS_OF)

    def test_rejects_non_positive_amount(self):
        with self.assertRaises(InvalidGoalDefinition):
            derive_goal(goal("empty", date(2027, 1, 1), amount="0"), AS_OF)


class TestBuildUserPlan(unittest.IsolatedAsyncioTestCase):
    async def test_plan_skips_matured_goals_and_uses_profile(self):
        goals = MemoryGoalStore()
        budgets = MemoryBudgetSource()
        await goals.save_goal("user-1", goal("car", date(2028, 1, 1)))
        await goals.save_goal("user-1", goal("old", date(2025, 6, 1)))
        await budgets.save_budget_profile(
            BudgetProfile("user-1", Decimal(4000), Decimal(3000), FundingStyle.waterfall)
        )

        plan = await build_user_plan(goals, budgets, "user-1", as_of=date(2026, 1, 20))

        self.assertEqual([r.goal.id for r in plan.results], ["car"])
        self.assertEqual(plan.funding_style, FundingStyle.waterfall)
        self.assertEqual(plan.monthly_budget, Decimal(1000))
        self.assertEqual(plan.total_months, 24)

    async def test_plan_without_budget_profile(self):
        goals = MemoryGoalStore()
        await goals.save_goal("user-1", goal("car", date(2028, 1, 1)))

        plan = await build_user_plan(
            goals, MemoryBudgetSource(), "user-1", as_of=AS_OF, funding_style=FundingStyle.parallel
        )

        self.assertEqual(plan.monthly_budget, Decimal(0))
        self.assertEqual(set(plan.results[0].monthly_allocations), {Decimal(0)})
        self.assertFalse(plan.results[0].on_track)


if __name__ == "__main__":
    unittest.main()
