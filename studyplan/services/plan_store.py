from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyplan.models.assessment import Assessment, AssessmentStatus
from studyplan.models.availability import Availability
from studyplan.models.course import Course
from studyplan.models.plan_summary import PlanSummary
from studyplan.models.study_block import StudyBlock
from studyplan.models.user import User
from studyplan.schemas.plan import PlannedBlock

logger = logging.getLogger(__name__)


class PlanStorageError(RuntimeError):
    """A read or write against the plan store failed."""


class PlanStore(Protocol):
    def read_availability(self, user_id: int) -> Sequence[Availability]: ...

    def read_pending_assessments(
        self, user_id: int, window_start: date, window_end: date
    ) -> Sequence[Assessment]: ...

    def read_courses(self, user_id: int) -> Sequence[Course]: ...

    def delete_study_blocks(self, user_id: int, dates: Sequence[date]) -> None: ...

    def insert_study_blocks(self, user_id: int, blocks: Sequence[PlannedBlock]) -> None: ...

    def upsert_plan_summary(
        self, user_id: int, shortfall_minutes: int, generated_at: datetime
    ) -> None: ...

    def replace_plan(
        self,
        user_id: int,
        dates: Sequence[date],
        blocks: Sequence[PlannedBlock],
        shortfall_minutes: int,
        generated_at: datetime,
    ) -> None: ...

    def clear_window(self, user_id: int, dates: Sequence[date]) -> None: ...


class SqlAlchemyPlanStore:
    """Plan store backed by a SQLAlchemy session.

    The single-record write methods only flush; ``replace_plan`` is the unit
    that commits. Every SQLAlchemy failure rolls back the session and is
    re-raised as :class:`PlanStorageError`.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Plan store failed to {action}: {exc}")
            raise PlanStorageError(f"Failed to {action}") from exc

    def read_availability(self, user_id: int) -> list[Availability]:
        with self._guard("read availability"):
            return (
                self.db.query(Availability)
                .filter(Availability.user_id == user_id)
                .order_by(Availability.weekday.asc())
                .all()
            )

    def read_pending_assessments(
        self, user_id: int, window_start: date, window_end: date
    ) -> list[Assessment]:
        with self._guard("read assessments"):
            return (
                self.db.query(Assessment)
                .filter(
                    Assessment.user_id == user_id,
                    Assessment.status != AssessmentStatus.DONE.value,
                    Assessment.due_date >= window_start,
                    Assessment.due_date <= window_end,
                )
                .order_by(Assessment.due_date.asc(), Assessment.id.asc())
                .all()
            )

    def read_courses(self, user_id: int) -> list[Course]:
        with self._guard("read courses"):
            return self.db.query(Course).filter(Course.user_id == user_id).all()

    def delete_study_blocks(self, user_id: int, dates: Sequence[date]) -> None:
        if not dates:
            return
        with self._guard("delete study blocks"):
            (
                self.db.query(StudyBlock)
                .filter(
                    StudyBlock.user_id == user_id,
                    StudyBlock.plan_date.in_(list(dates)),
                )
                .delete(synchronize_session="fetch")
            )
            self.db.flush()

    def insert_study_blocks(self, user_id: int, blocks: Sequence[PlannedBlock]) -> None:
        with self._guard("insert study blocks"):
            self.db.add_all(
                StudyBlock(
                    user_id=user_id,
                    assessment_id=block.assessment_id,
                    plan_date=block.plan_date,
                    title=block.title,
                    minutes=block.minutes,
                    done=block.done,
                )
                for block in blocks
            )
            self.db.flush()

    def upsert_plan_summary(
        self, user_id: int, shortfall_minutes: int, generated_at: datetime
    ) -> None:
        # Stored as naive UTC
        if generated_at.tzinfo is not None:
            generated_at = generated_at.astimezone(timezone.utc).replace(tzinfo=None)
        with self._guard("write plan summary"):
            summary = self.db.get(PlanSummary, user_id)
            if summary:
                summary.shortfall_minutes = shortfall_minutes
                summary.generated_at = generated_at
            else:
                summary = PlanSummary(
                    user_id=user_id,
                    shortfall_minutes=shortfall_minutes,
                    generated_at=generated_at,
                )
            self.db.add(summary)
            self.db.flush()

    def _lock_user(self, user_id: int) -> None:
        # FOR UPDATE is a no-op on SQLite; Postgres serializes concurrent writers here.
        self.db.query(User.id).filter(User.id == user_id).with_for_update().first()

    def replace_plan(
        self,
        user_id: int,
        dates: Sequence[date],
        blocks: Sequence[PlannedBlock],
        shortfall_minutes: int,
        generated_at: datetime,
    ) -> None:
        """Swap the user's plan for ``dates`` in a single transaction."""
        with self._guard("replace plan"):
            self._lock_user(user_id)
            self.delete_study_blocks(user_id, dates)
            if blocks:
                self.insert_study_blocks(user_id, blocks)
            self.upsert_plan_summary(user_id, shortfall_minutes, generated_at)
            self.db.commit()

    def clear_window(self, user_id: int, dates: Sequence[date]) -> None:
        """Delete the user's blocks for ``dates`` and commit."""
        with self._guard("clear plan"):
            self.delete_study_blocks(user_id, dates)
            self.db.commit()
