# goalplan/schemas/goal.py
from typing import List, Optional
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field

from goalplan.utils.payments import calculate_disbursement
from goalplan.utils.planner_types import (
    GoalCategory,
    PaymentFrequency,
    RiskProfile,
    Goal,
)

class CustomRatesSchema(BaseModel):
    high: Decimal = Field(..., ge=0, le=1)
    mid: Decimal = Field(..., ge=0, le=1)
    low: Decimal = Field(..., ge=0, le=1)

    class Config:
        from_attributes = True

class ReturnPhaseRead(BaseModel):
    length: int
    rate: Decimal

    class Config:
        from_attributes = True

class GoalBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: GoalCategory = GoalCategory.other
    target_date: date
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    profile: Optional[RiskProfile] = None  # None → recommended for the horizon
    custom_rates: Optional[CustomRatesSchema] = None
    payment_frequency: PaymentFrequency = PaymentFrequency.once
    payment_period: Optional[int] = Field(None, ge=1)
    is_foundational: bool = False

class GoalCreate(GoalBase):
    id: Optional[str] = Field(None, max_length=64)

class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[GoalCategory] = None
    target_date: Optional[date] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)
    profile: Optional[RiskProfile] = None
    custom_rates: Optional[CustomRatesSchema] = None
    payment_frequency: Optional[PaymentFrequency] = None
    payment_period: Optional[int] = Field(None, ge=1)
    is_foundational: Optional[bool] = None

class GoalRead(BaseModel):
    id: str
    name: str
    category: GoalCategory
    target_date: date
    amount: Decimal
    profile: RiskProfile
    custom_rates: Optional[CustomRatesSchema] = None
    payment_frequency: PaymentFrequency
    payment_period: Optional[int] = None
    is_foundational: bool
    is_active: bool
    horizon_months: int
    return_phases: List[ReturnPhaseRead] = []
    required_pmt: Decimal
    # Installment paid out per period during the drawdown
    disbursement: Optional[Decimal] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_goal(cls, goal: Goal) -> "GoalRead":
        disbursement = None
        if goal.payment_period:
            disbursement = calculate_disbursement(goal.amount, goal.payment_period, goal.payment_frequency)
        return cls(
            id=goal.id,
            name=goal.name,
            category=goal.category,
            target_date=goal.target_date,
            amount=goal.amount,
            profile=goal.profile,
            custom_rates=CustomRatesSchema.model_validate(goal.custom_rates) if goal.custom_rates else None,
            payment_frequency=goal.payment_frequency,
            payment_period=goal.payment_period,
            is_foundational=goal.is_foundational,
            is_active=goal.is_active,
            horizon_months=goal.horizon_months,
            return_phases=[ReturnPhaseRead.model_validate(p) for p in goal.return_phases],
            required_pmt=goal.required_pmt.quantize(Decimal("0.01")),
            disbursement=disbursement,
        )
