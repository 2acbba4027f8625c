# goalplan/schemas/plan.py
from typing import List, Optional
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from pydantic import BaseModel

from goalplan.schemas.goal import GoalRead
from goalplan.utils.planner_types import AllocationPlan, FundingStyle, GoalResult

CENT = Decimal("0.01")

def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)

class GoalAllocationRead(BaseModel):
    goal: GoalRead
    required_pmt: Decimal
    average_allocation: Decimal
    amount_at_target: Decimal
    remaining_gap: Decimal
    on_track: bool
    monthly_allocations: List[Decimal]
    running_balances: List[Decimal]

    @classmethod
    def from_result(cls, result: GoalResult) -> "GoalAllocationRead":
        return cls(
            goal=GoalRead.from_goal(result.goal),
            required_pmt=_cents(result.required_pmt),
            average_allocation=result.average_allocation,
            amount_at_target=_cents(result.amount_at_target),
            remaining_gap=_cents(result.remaining_gap),
            on_track=result.on_track,
            monthly_allocations=[_cents(a) for a in result.monthly_allocations],
            running_balances=[_cents(b) for b in result.running_balances],
        )

class ShortfallRead(BaseModel):
    required_total: Decimal
    monthly_budget: Decimal
    shortfall: Decimal
    message: str

class PlanResponse(BaseModel):
    as_of: date
    funding_style: FundingStyle
    monthly_budget: Decimal
    total_months: int
    shortfall: Optional[ShortfallRead] = None
    allocations: List[GoalAllocationRead]

    @classmethod
    def from_plan(cls, plan: AllocationPlan, as_of: date) -> "PlanResponse":
        shortfall = None
        if plan.shortfall is not None:
            shortfall = ShortfallRead(
                required_total=plan.shortfall.required_total,
                monthly_budget=_cents(plan.shortfall.monthly_budget),
                shortfall=_cents(plan.shortfall.shortfall),
                message=plan.shortfall.message,
            )
        return cls(
            as_of=as_of,
            funding_style=plan.funding_style,
            monthly_budget=_cents(plan.monthly_budget),
            total_months=plan.total_months,
            shortfall=shortfall,
            allocations=[GoalAllocationRead.from_result(r) for r in plan.results],
        )
