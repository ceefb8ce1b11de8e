from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from studyplan.db.base import Base


class PlanSummary(Base):
    __tablename__ = "plan_summaries"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    shortfall_minutes = Column(Integer, nullable=False, default=0)
    generated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="plan_summary")
