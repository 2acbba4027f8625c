# goalplan/schemas/progress.py
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field

class ProgressUpsert(BaseModel):
    actual_amount: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    # Omitted → taken from the current plan's allocation for that month
    planned_amount: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = Field(None, max_length=1000)

class ProgressRead(BaseModel):
    goal_id: str
    user_id: str
    month_year: date
    planned_amount: Decimal
    actual_amount: Decimal
    cumulative_planned: Decimal
    cumulative_actual: Decimal
    variance: Decimal
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CurrentProgressRead(BaseModel):
    goal_id: str
    cumulative_actual: Decimal
    cumulative_planned: Decimal
    monthly_actual: Decimal
    variance: Decimal
    last_month: Optional[date] = None
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True
