# goalplan/schemas/budget.py
from decimal import Decimal
from pydantic import BaseModel, Field

from goalplan.utils.planner_types import FundingStyle

class BudgetProfileUpdate(BaseModel):
    monthly_income: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    monthly_expenses: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    funding_style: FundingStyle = FundingStyle.hybrid

class BudgetProfileRead(BaseModel):
    user_id: str
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_budget: Decimal
    funding_style: FundingStyle

    class Config:
        from_attributes = True
