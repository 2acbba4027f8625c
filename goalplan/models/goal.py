# goalplan/models/goal.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Numeric, Date, DateTime, Integer, Boolean, Index
from goalplan.core.database import Base

def _new_goal_id() -> str:
    return str(uuid.uuid4())

class Goal(Base):
    __tablename__ = "goals"

    id = Column(String(64), primary_key=True, default=_new_goal_id)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(length=200), nullable=False)
    category = Column(String(length=32), nullable=False, default="Other")
    target_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    profile = Column(String(length=16), nullable=False, default="Balanced")

    # Optional {high, mid, low} override of the profile's default rates
    custom_rate_high = Column(Numeric(6, 4), nullable=True)
    custom_rate_mid = Column(Numeric(6, 4), nullable=True)
    custom_rate_low = Column(Numeric(6, 4), nullable=True)

    # Drawdown after the target date (e.g. tuition paid over 4 years)
    payment_frequency = Column(String(length=16), nullable=False, default="Once")
    payment_period = Column(Integer, nullable=True)

    buffer_months = Column(Integer, nullable=True)
    is_foundational = Column(Boolean, default=False, nullable=False)
    # Soft delete: inactive goals are excluded from allocation
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_goals_user_active", "user_id", "is_active"),
    )

    def __repr__(self):
        return f"<Goal name={self.name} amount={self.amount} target_date={self.target_date} user_id={self.user_id}>"
