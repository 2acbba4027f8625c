# goalplan/utils/planner_types.py
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from goalplan.core.exceptions import InsufficientBudget

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
# Balance within a cent of the target counts as funded
AMOUNT_TOLERANCE = CENT
ZERO = Decimal("0")

# Drawdown phases always compound at this rate
DRAWDOWN_RATE = Decimal("0.02")
EMERGENCY_FUND_RATE = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Convert user input to Decimal without inheriting binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


class RiskProfile(str, Enum):
    conservative = "Conservative"
    balanced = "Balanced"
    growth = "Growth"


class GoalCategory(str, Enum):
    emergency = "Emergency"
    home = "Home"
    education = "Education"
    travel = "Travel"
    gift = "Gift"
    retirement = "Retirement"
    other = "Other"


class PaymentFrequency(str, Enum):
    once = "Once"
    monthly = "Monthly"
    quarterly = "Quarterly"
    biannual = "Biannual"
    annual = "Annual"


PAYMENTS_PER_YEAR: Dict[PaymentFrequency, int] = {
    PaymentFrequency.monthly: 12,
    PaymentFrequency.quarterly: 4,
    PaymentFrequency.biannual: 2,
    PaymentFrequency.annual: 1,
}


class FundingStyle(str, Enum):
    waterfall = "waterfall"
    parallel = "parallel"
    hybrid = "hybrid"


@dataclass(frozen=True)
class CustomRates:
    high: Decimal
    mid: Decimal
    low: Decimal

    @classmethod
    def of(cls, high: Number, mid: Number, low: Number) -> "CustomRates":
        return cls(to_decimal(high), to_decimal(mid), to_decimal(low))


DEFAULT_RATES: Dict[RiskProfile, CustomRates] = {
    RiskProfile.conservative: CustomRates.of("0.04", "0.03", "0.02"),
    RiskProfile.balanced: CustomRates.of("0.06", "0.05", "0.03"),
    RiskProfile.growth: CustomRates.of("0.08", "0.07", "0.05"),
}


@dataclass(frozen=True)
class ReturnPhase:
    length: int  # months
    rate: Decimal  # annual, e.g. 0.05 for 5%


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    category: GoalCategory
    target_date: date
    amount: Decimal
    horizon_months: int = 0
    profile: RiskProfile = RiskProfile.balanced
    custom_rates: Optional[CustomRates] = None
    payment_frequency: PaymentFrequency = PaymentFrequency.once
    payment_period: Optional[int] = None  # years of drawdown after target_date
    is_foundational: bool = False
    is_active: bool = True
    buffer_months: Optional[int] = None
    # Derived by derive_goal()
    return_phases: Tuple[ReturnPhase, ...] = ()
    required_pmt: Decimal = ZERO

    @property
    def foundational(self) -> bool:
        return self.is_foundational or self.category == GoalCategory.emergency


@dataclass(frozen=True)
class GoalResult:
    goal: Goal
    required_pmt: Decimal
    monthly_allocations: Tuple[Decimal, ...]
    running_balances: Tuple[Decimal, ...]
    amount_at_target: Decimal
    remaining_gap: Decimal
    average_allocation: Decimal

    @property
    def on_track(self) -> bool:
        return self.remaining_gap <= AMOUNT_TOLERANCE


@dataclass(frozen=True)
class AllocationPlan:
    funding_style: FundingStyle
    monthly_budget: Decimal
    total_months: int
    results: Tuple[GoalResult, ...] = ()
    shortfall: Optional[InsufficientBudget] = field(default=None, compare=False)

    def result_for(self, goal_id: str) -> Optional[GoalResult]:
        for result in self.results:
            if result.goal.id == goal_id:
                return result
        return None


@dataclass(frozen=True)
class GoalProgressEntry:
    goal_id: str
    user_id: str
    month_year: date  # always the first of the month
    planned_amount: Decimal
    actual_amount: Decimal
    cumulative_planned: Decimal = ZERO
    cumulative_actual: Decimal = ZERO
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[str, date]:
        return (self.goal_id, self.month_year)

    @property
    def variance(self) -> Decimal:
        return self.cumulative_actual - self.cumulative_planned


@dataclass(frozen=True)
class BudgetProfile:
    user_id: str
    monthly_income: Decimal = ZERO
    monthly_expenses: Decimal = ZERO
    funding_style: FundingStyle = FundingStyle.hybrid

    @property
    def monthly_budget(self) -> Decimal:
        return max(ZERO, self.monthly_income - self.monthly_expenses)
