from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from studyplan.db.base import Base


class AssessmentStatus(str, PyEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True
    )
    title = Column(String(255), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    estimated_hours = Column(Float, nullable=False, default=1.0)
    # Stored as plain string so "in-progress" survives every backend unchanged
    status = Column(String(20), nullable=False, default=AssessmentStatus.TODO.value)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    user = relationship("User", back_populates="assessments")
    course = relationship("Course", back_populates="assessments")
    study_blocks = relationship(
        "StudyBlock", back_populates="assessment", cascade="all, delete-orphan"
    )
