# goalplan/models/budget_profile.py
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime
from goalplan.core.database import Base

class BudgetProfile(Base):
    __tablename__ = "budget_profiles"

    user_id = Column(String(64), primary_key=True)
    monthly_income = Column(Numeric(15, 2), nullable=False, default=0)
    monthly_expenses = Column(Numeric(15, 2), nullable=False, default=0)
    funding_style = Column(String(length=16), nullable=False, default="hybrid")

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<BudgetProfile user_id={self.user_id} income={self.monthly_income} expenses={self.monthly_expenses}>"
