from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyplan.db.base import Base
from studyplan.models.user import User

DEFAULT_DIFFICULTY = 3


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("difficulty BETWEEN 1 AND 5", name="ck_courses_difficulty"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    difficulty: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_DIFFICULTY
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    user: Mapped[User] = relationship("User", back_populates="courses")
    assessments = relationship("Assessment", back_populates="course")
