import gc
import threading
import time
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from studyplan.db.base import Base
from studyplan.db.seed import seed_demo_data
from studyplan.models.assessment import Assessment, AssessmentStatus
from studyplan.models.availability import Availability
from studyplan.models.course import Course
from studyplan.models.plan_summary import PlanSummary
from studyplan.models.study_block import StudyBlock
from studyplan.models.user import User
from studyplan.services import planner
from studyplan.services.plan_store import PlanStorageError, SqlAlchemyPlanStore
from studyplan.services.planner import (
    NO_ASSESSMENTS_MESSAGE,
    NO_CAPACITY_MESSAGE,
    generate_plan,
    plan_window,
    resolve_daily_capacity,
)

# A Sunday, so weekday numbers equal window offsets
TODAY = date(2026, 10, 18)
GENERATED_AT = datetime(2026, 10, 18, 8, 30)


def _user(db: Session) -> User:
    user = User(email="student@example.com", full_name="Test Student")
    db.add(user)
    db.commit()
    return user


def _course(db: Session, user: User, title: str, difficulty: int) -> Course:
    course = Course(user_id=user.id, title=title, difficulty=difficulty)
    db.add(course)
    db.commit()
    return course


def _assessment(
    db: Session,
    user: User,
    title: str,
    due_in: int,
    hours: float,
    course: Course | None = None,
    status: str = AssessmentStatus.TODO.value,
) -> Assessment:
    assessment = Assessment(
        user_id=user.id,
        course_id=course.id if course else None,
        title=title,
        due_date=TODAY + timedelta(days=due_in),
        estimated_hours=hours,
        status=status,
    )
    db.add(assessment)
    db.commit()
    return assessment


def _availability(db: Session, user: User, hours: dict[int, float]) -> None:
    db.add_all(
        Availability(user_id=user.id, weekday=weekday, hours_available=value)
        for weekday, value in hours.items()
    )
    db.commit()


def _stored_blocks(db: Session, user: User) -> list[StudyBlock]:
    return (
        db.query(StudyBlock)
        .filter(StudyBlock.user_id == user.id)
        .order_by(StudyBlock.plan_date.asc(), StudyBlock.id.asc())
        .all()
    )


def _generate(db: Session, user: User, generated_at: datetime = GENERATED_AT):
    return generate_plan(SqlAlchemyPlanStore(db), user.id, TODAY, generated_at=generated_at)


def test_even_availability_schedules_all_work(db_session: Session):
    user = _user(db_session)
    course = _course(db_session, user, "Biology", 3)
    essay = _assessment(db_session, user, "Essay", due_in=3, hours=4, course=course)
    _availability(db_session, user, {weekday: 2 for weekday in range(7)})

    result = _generate(db_session, user)

    blocks = _stored_blocks(db_session, user)
    assert result.shortfall_minutes == 0
    assert result.warning is None
    assert result.blocks_created == len(blocks) == 8
    assert result.message == "Generated 8 blocks across the next 7 days."
    assert sum(block.minutes for block in blocks) == 240
    assert all(15 <= block.minutes <= 30 for block in blocks)
    assert all(block.plan_date <= essay.due_date for block in blocks)
    assert all(block.title == "Biology — Essay" for block in blocks)
    assert not any(block.done for block in blocks)
    assert db_session.get(PlanSummary, user.id).shortfall_minutes == 0


def test_zero_availability_reports_full_shortfall(db_session: Session):
    user = _user(db_session)
    _assessment(db_session, user, "Problem Set", due_in=2, hours=2)
    _availability(db_session, user, {weekday: 0 for weekday in range(7)})

    result = _generate(db_session, user)

    assert result.blocks_created == 0
    assert result.shortfall_minutes == 120
    assert result.message == NO_CAPACITY_MESSAGE
    assert result.warning == "Overload shortfall: 2 hours."
    assert _stored_blocks(db_session, user) == []
    assert db_session.get(PlanSummary, user.id).shortfall_minutes == 120


def test_harder_assessment_wins_scarce_capacity(db_session: Session):
    user = _user(db_session)
    hard = _course(db_session, user, "Quantum", 5)
    easy = _course(db_session, user, "Pottery", 1)
    easy_task = _assessment(db_session, user, "Glaze notes", due_in=1, hours=1, course=easy)
    hard_task = _assessment(db_session, user, "Problem Set", due_in=1, hours=1, course=hard)
    # Only Monday (today + 1) has time before the due date
    _availability(db_session, user, {0: 0, 1: 1, 2: 0, 3: 0, 4: 0, 5: 0, 6: 0})

    result = _generate(db_session, user)

    blocks = _stored_blocks(db_session, user)
    assert {block.assessment_id for block in blocks} == {hard_task.id}
    assert sum(block.minutes for block in blocks) == 60
    assert easy_task.id not in {block.assessment_id for block in result.blocks}
    assert result.shortfall_minutes == 60
    assert "short by 1 hours" in result.warning


def test_no_assessments_due_is_informational(db_session: Session):
    user = _user(db_session)
    _assessment(db_session, user, "Finished", due_in=1, hours=2, status=AssessmentStatus.DONE.value)
    _assessment(db_session, user, "Next month", due_in=30, hours=2)

    result = _generate(db_session, user)

    assert result.blocks_created == 0
    assert result.shortfall_minutes == 0
    assert result.message == NO_ASSESSMENTS_MESSAGE
    assert result.warning is None
    summary = db_session.get(PlanSummary, user.id)
    assert summary.shortfall_minutes == 0
    assert summary.generated_at == GENERATED_AT


def test_generation_is_idempotent(db_session: Session):
    user = _user(db_session)
    math = _course(db_session, user, "Math", 4)
    _assessment(db_session, user, "Midterm prep", due_in=5, hours=6, course=math)
    _assessment(db_session, user, "Reading", due_in=2, hours=1.5)
    _availability(db_session, user, {0: 1, 1: 1.5, 2: 0, 3: 2, 4: 0.5, 5: 3, 6: 0})

    first = _generate(db_session, user)
    first_rows = [
        (b.plan_date, b.title, b.minutes, b.assessment_id)
        for b in _stored_blocks(db_session, user)
    ]
    second = _generate(db_session, user)
    second_rows = [
        (b.plan_date, b.title, b.minutes, b.assessment_id)
        for b in _stored_blocks(db_session, user)
    ]

    assert first_rows == second_rows
    assert first.shortfall_minutes == second.shortfall_minutes
    assert first.blocks == second.blocks


def test_regeneration_replaces_window_only(db_session: Session):
    user = _user(db_session)
    essay = _assessment(db_session, user, "Essay", due_in=4, hours=4)
    outside = StudyBlock(
        user_id=user.id,
        assessment_id=essay.id,
        plan_date=TODAY + timedelta(days=10),
        title="Later",
        minutes=30,
    )
    db_session.add(outside)
    db_session.commit()

    _generate(db_session, user)
    essay.estimated_hours = 1
    db_session.commit()
    result = _generate(db_session, user)

    in_window = [
        block for block in _stored_blocks(db_session, user)
        if block.plan_date in plan_window(TODAY)
    ]
    assert result.blocks_created == len(in_window) == 2
    assert sum(block.minutes for block in in_window) == 60
    assert db_session.get(StudyBlock, outside.id) is not None


def test_capacity_and_conservation_hold(db_session: Session):
    user = _user(db_session)
    hard = _course(db_session, user, "Chemistry", 5)
    light = _course(db_session, user, "Art", 2)
    assessments = [
        _assessment(db_session, user, "Lab", due_in=1, hours=2.2, course=hard),
        _assessment(db_session, user, "Portfolio", due_in=6, hours=5, course=light),
        _assessment(db_session, user, "Quiz", due_in=3, hours=1.75, course=hard),
        _assessment(db_session, user, "Errand", due_in=0, hours=0.6),
    ]
    hours = {0: 1.5, 1: 0.75, 2: 0, 3: 2, 4: 1, 5: 0.25, 6: 0}
    _availability(db_session, user, hours)

    result = _generate(db_session, user)

    blocks = _stored_blocks(db_session, user)
    days = plan_window(TODAY)
    capacities = resolve_daily_capacity(days, db_session.query(Availability).all(), 2.0)
    for day, capacity in zip(days, capacities):
        assert sum(b.minutes for b in blocks if b.plan_date == day) <= capacity
    total_estimate = sum(round(a.estimated_hours * 60) for a in assessments)
    assert sum(b.minutes for b in blocks) + result.shortfall_minutes == total_estimate
    due_by_id = {a.id: a.due_date for a in assessments}
    assert all(b.plan_date <= due_by_id[b.assessment_id] for b in blocks)


def test_missing_weekdays_default_to_two_hours(db_session: Session):
    user = _user(db_session)
    _assessment(db_session, user, "Thesis", due_in=6, hours=20)

    result = _generate(db_session, user)

    assert sum(block.minutes for block in result.blocks) == 7 * 120
    assert result.shortfall_minutes == 20 * 60 - 7 * 120


def test_failed_write_keeps_previous_plan(db_session: Session, monkeypatch: pytest.MonkeyPatch):
    user = _user(db_session)
    essay = _assessment(db_session, user, "Essay", due_in=3, hours=2)
    first = _generate(db_session, user)

    essay.estimated_hours = 5
    db_session.commit()
    store = SqlAlchemyPlanStore(db_session)

    def failing_insert(user_id, blocks):
        raise OperationalError("INSERT INTO study_blocks", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store, "insert_study_blocks", failing_insert)

    with pytest.raises(PlanStorageError) as excinfo:
        generate_plan(store, user.id, TODAY, generated_at=GENERATED_AT + timedelta(hours=1))

    assert isinstance(excinfo.value.__cause__, OperationalError)
    blocks = _stored_blocks(db_session, user)
    assert len(blocks) == first.blocks_created
    summary = db_session.get(PlanSummary, user.id)
    assert summary.generated_at == GENERATED_AT


def test_failed_read_raises_storage_error(db_session: Session, monkeypatch: pytest.MonkeyPatch):
    user = _user(db_session)

    def failing_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "query", failing_query)

    with pytest.raises(PlanStorageError):
        _generate(db_session, user)


def test_demo_seed_produces_a_plan(db_session: Session):
    user = seed_demo_data(db_session, today=TODAY)

    result = generate_plan(SqlAlchemyPlanStore(db_session), user.id, TODAY)

    titles = {block.title for block in result.blocks}
    assert "Physics Lab — Lab Report Draft" in titles
    assert not any("Quiz Corrections" in title for title in titles)
    # Friday has no availability in the demo profile
    assert all(block.plan_date != TODAY + timedelta(days=5) for block in result.blocks)
    assert seed_demo_data(db_session).id == user.id


@pytest.fixture()
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'plan.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_concurrent_generation_leaves_a_single_plan(file_engine, monkeypatch: pytest.MonkeyPatch):
    with Session(file_engine) as db:
        user = _user(db)
        history = _course(db, user, "History", 4)
        _assessment(db, user, "Source analysis", due_in=4, hours=5, course=history)
        _assessment(db, user, "Reading log", due_in=1, hours=1)
        _availability(db, user, {weekday: 1 for weekday in range(7)})
        user_id = user.id

    # Widen the gap between the window delete and the insert
    original_insert = SqlAlchemyPlanStore.insert_study_blocks

    def slow_insert(self, owner_id, blocks):
        time.sleep(0.05)
        original_insert(self, owner_id, blocks)

    monkeypatch.setattr(SqlAlchemyPlanStore, "insert_study_blocks", slow_insert)

    barrier = threading.Barrier(2)
    results = []
    errors = []

    def run():
        with Session(file_engine) as db:
            barrier.wait()
            try:
                results.append(
                    generate_plan(
                        SqlAlchemyPlanStore(db), user_id, TODAY, generated_at=GENERATED_AT
                    )
                )
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=run) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    assert len(results) == 2
    assert results[0] == results[1]
    expected = results[0]
    assert expected.shortfall_minutes == 60

    with Session(file_engine) as db:
        rows = (
            db.query(StudyBlock)
            .filter(StudyBlock.user_id == user_id)
            .order_by(StudyBlock.plan_date.asc(), StudyBlock.id.asc())
            .all()
        )
        assert len(rows) == expected.blocks_created
        assert [(b.plan_date, b.title, b.minutes, b.assessment_id) for b in rows] == [
            (b.plan_date, b.title, b.minutes, b.assessment_id) for b in expected.blocks
        ]
        summary = db.get(PlanSummary, user_id)
        assert summary.shortfall_minutes == expected.shortfall_minutes
        assert summary.generated_at == GENERATED_AT


def test_user_lock_is_shared_and_released():
    lock = planner._lock_for(4242)
    assert planner._lock_for(4242) is lock
    assert planner._lock_for(4243) is not lock

    del lock
    gc.collect()
    assert 4242 not in planner._user_locks
    assert 4243 not in planner._user_locks
