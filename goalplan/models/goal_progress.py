# goalplan/models/goal_progress.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Numeric, Date, DateTime, ForeignKey, Text, UniqueConstraint
from goalplan.core.database import Base

class GoalProgress(Base):
    __tablename__ = "goal_progress"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    goal_id = Column(String(64), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    # Always the first day of the month
    month_year = Column(Date, nullable=False)

    planned_amount = Column(Numeric(15, 2), nullable=False, default=0)
    actual_amount = Column(Numeric(15, 2), nullable=False, default=0)
    # Recomputed from the chronologically preceding entry on every write
    cumulative_planned = Column(Numeric(15, 2), nullable=False, default=0)
    cumulative_actual = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("goal_id", "month_year", name="uq_goal_progress_goal_month"),
    )

    def __repr__(self):
        return f"<GoalProgress goal_id={self.goal_id} month={self.month_year} actual={self.actual_amount}>"
