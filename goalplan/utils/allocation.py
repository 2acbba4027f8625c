# goalplan/utils/allocation.py
"""
Month-by-month distribution of one monthly budget across every active goal.

Goals are prioritised by target date (earliest first, stable for ties). A goal
is open while its target month has not passed and its balance is short of the
target. An open goal never receives more than its required contribution, nor
more than it needs to close its gap this month.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Sequence

from goalplan.core.exceptions import InsufficientBudget
from goalplan.utils.payments import monthly_rate_schedule
from goalplan.utils.planner_types import (
    AMOUNT_TOLERANCE,
    CENT,
    ZERO,
    AllocationPlan,
    FundingStyle,
    Goal,
    GoalResult,
    Number,
    to_decimal,
)

logger = logging.getLogger(__name__)

ONE = Decimal(1)


class _GoalTracker:
    """Mutable per-run bookkeeping for one goal; never escapes the engine."""

    def __init__(self, goal: Goal):
        self.goal = goal
        self.pmt = max(goal.required_pmt, ZERO)
        self.rates = monthly_rate_schedule(goal.return_phases, goal.horizon_months)
        self.balance = ZERO
        self.pending = ZERO
        self.funded = self._reached_target()
        self.allocations: List[Decimal] = []
        self.balances: List[Decimal] = []

    def _reached_target(self) -> bool:
        return self.balance >= self.goal.amount - AMOUNT_TOLERANCE

    def rate(self, month: int) -> Decimal:
        # flat balance once the target month has passed
        return self.rates[month] if month < self.goal.horizon_months else ZERO

    def is_open(self, month: int) -> bool:
        return month < self.goal.horizon_months and not self.funded

    def cap(self, month: int) -> Decimal:
        gap = self.goal.amount - self.balance * (ONE + self.rate(month))
        return min(self.pmt, max(gap, ZERO))

    def settle(self, month: int) -> None:
        self.balance = self.balance * (ONE + self.rate(month)) + self.pending
        self.allocations.append(self.pending)
        self.balances.append(self.balance)
        self.pending = ZERO
        if not self.funded and self._reached_target():
            self.funded = True
            logger.debug(f"Goal {self.goal.id} funded in month {month}")

    def result(self) -> GoalResult:
        horizon = self.goal.horizon_months
        amount_at_target = self.balances[horizon - 1] if 0 < horizon <= len(self.balances) else ZERO
        paid = [a for a in self.allocations if a > 0]
        average = (sum(paid, ZERO) / len(paid)).quantize(CENT, rounding=ROUND_HALF_UP) if paid else ZERO
        return GoalResult(
            goal=self.goal,
            required_pmt=self.goal.required_pmt,
            monthly_allocations=tuple(self.allocations),
            running_balances=tuple(self.balances),
            amount_at_target=amount_at_target,
            remaining_gap=max(self.goal.amount - amount_at_target, ZERO),
            average_allocation=average,
        )


def _fund_waterfall(trackers: Iterable[_GoalTracker], month: int, budget: Decimal) -> Decimal:
    remaining = budget
    for tracker in trackers:
        allocation = min(tracker.cap(month), remaining)
        tracker.pending = allocation
        remaining -= allocation
    return remaining


def _fund_parallel(trackers: Sequence[_GoalTracker], month: int, budget: Decimal) -> Decimal:
    total_required = sum((t.pmt for t in trackers), ZERO)
    if total_required == 0:
        return budget
    remaining = budget
    if total_required <= budget:
        for tracker in trackers:
            tracker.pending = tracker.cap(month)
            remaining -= tracker.pending
        return remaining

    # same scale factor for every goal; never hand out more than is left
    for tracker in trackers:
        share = tracker.pmt * budget / total_required
        tracker.pending = min(share, tracker.cap(month), remaining)
        remaining -= tracker.pending
    return remaining


def calculate_sequential_allocations(
    goals: Sequence[Goal],
    monthly_budget: Number,
    funding_style: FundingStyle = FundingStyle.hybrid,
) -> AllocationPlan:
    """
    Allocate ``monthly_budget`` across ``goals`` for every month up to the
    longest horizon.

    - waterfall: goals are funded one after another in priority order, each
      taking what it needs from whatever budget is left
    - parallel: every open goal gets its required contribution, scaled down by
      a common factor when the budget cannot cover all of them
    - hybrid: foundational goals (emergency fund) are funded waterfall-first;
      the rest wait, then share the budget in parallel

    Goals that cannot reach their target are funded best-effort and show up
    through ``remaining_gap``.
    """
    style = FundingStyle(funding_style)
    budget = max(to_decimal(monthly_budget), ZERO)

    # sorted() is stable, so goals sharing a target date keep their input order
    ordered = sorted((g for g in goals if g.is_active), key=lambda g: g.target_date)
    if not ordered:
        return AllocationPlan(funding_style=style, monthly_budget=budget, total_months=0)

    total_months = max(g.horizon_months for g in ordered)
    trackers = [_GoalTracker(goal) for goal in ordered]

    required_total = sum((g.required_pmt for g in ordered if g.horizon_months > 0), ZERO)
    shortfall = None
    if required_total > budget:
        shortfall = InsufficientBudget(required_total.quantize(CENT, rounding=ROUND_HALF_UP), budget)
        logger.warning(shortfall.message)

    for month in range(total_months):
        open_trackers = [t for t in trackers if t.is_open(month)]

        if style == FundingStyle.waterfall:
            _fund_waterfall(open_trackers, month, budget)
        elif style == FundingStyle.parallel:
            _fund_parallel(open_trackers, month, budget)
        else:
            foundational = [t for t in open_trackers if t.goal.foundational]
            if foundational:
                _fund_waterfall(foundational, month, budget)
            else:
                _fund_parallel(open_trackers, month, budget)

        for tracker in trackers:
            tracker.settle(month)

    return AllocationPlan(
        funding_style=style,
        monthly_budget=budget,
        total_months=total_months,
        results=tuple(t.result() for t in trackers),
        shortfall=shortfall,
    )
