from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from studyplan.db.base import Base

CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    courses = relationship(
        "Course", back_populates="user", cascade=CASCADE_ALL_DELETE_ORPHAN
    )
    assessments = relationship(
        "Assessment", back_populates="user", cascade=CASCADE_ALL_DELETE_ORPHAN
    )
    availability = relationship(
        "Availability",
        back_populates="user",
        cascade=CASCADE_ALL_DELETE_ORPHAN,
    )
    study_blocks = relationship(
        "StudyBlock",
        back_populates="user",
        cascade=CASCADE_ALL_DELETE_ORPHAN,
    )
    plan_summary = relationship(
        "PlanSummary",
        back_populates="user",
        uselist=False,
        cascade=CASCADE_ALL_DELETE_ORPHAN,
    )
