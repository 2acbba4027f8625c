"""Planning errors.

Structural problems with a goal fail fast. Budget shortfalls are not errors:
the allocation engine attaches an ``InsufficientBudget`` notice to the plan
and keeps allocating best-effort.
"""

from decimal import Decimal
from typing import Optional


class GoalPlanError(Exception):
    """Base planning exception with HTTP status; ``None`` for notices that are never raised."""

    def __init__(self, message: str, status_code: Optional[int] = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidGoalDefinition(GoalPlanError):
    def __init__(self, message: str, goal_id: Optional[str] = None):
        super().__init__(message, status_code=422)
        self.goal_id = goal_id


class InvalidHorizon(GoalPlanError):
    def __init__(self, horizon_months: int):
        super().__init__(
            f"Cannot solve a contribution over {horizon_months} accumulation months",
            status_code=422,
        )
        self.horizon_months = horizon_months


class InsufficientBudget(GoalPlanError):
    """
    Notice that the goals need more per month than the budget allows.

    Attached to ``AllocationPlan.shortfall`` and never raised, so it carries
    no HTTP status.
    """

    def __init__(self, required_total: Decimal, monthly_budget: Decimal):
        super().__init__(
            f"Total required contribution {required_total} exceeds monthly budget {monthly_budget}",
            status_code=None,
        )
        self.required_total = required_total
        self.monthly_budget = monthly_budget

    @property
    def shortfall(self) -> Decimal:
        return self.required_total - self.monthly_budget


class ReconciliationConflict(GoalPlanError):
    def __init__(self, goal_id: str, month_year):
        super().__init__(
            f"Competing progress writes for goal {goal_id} in {month_year}",
            status_code=409,
        )
        self.goal_id = goal_id
        self.month_year = month_year


class GoalNotFound(GoalPlanError):
    def __init__(self, goal_id: str):
        super().__init__(f"Goal {goal_id} not found", status_code=404)
        self.goal_id = goal_id
