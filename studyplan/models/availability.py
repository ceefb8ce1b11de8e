from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from studyplan.db.base import Base

DEFAULT_HOURS_AVAILABLE = 2.0


class Availability(Base):
    """Study-capable hours for one weekday (0=Sunday .. 6=Saturday)."""

    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint("user_id", "weekday", name="uq_availability_user_weekday"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_availability_weekday"),
        CheckConstraint("hours_available >= 0", name="ck_availability_hours"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    weekday = Column(Integer, nullable=False)
    hours_available = Column(Float, nullable=False, default=DEFAULT_HOURS_AVAILABLE)

    user = relationship("User", back_populates="availability")
