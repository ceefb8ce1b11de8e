from __future__ import annotations

import logging
import math
import threading
import weakref
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Sequence

from studyplan.core.config import get_settings
from studyplan.models.assessment import Assessment, AssessmentStatus
from studyplan.models.availability import Availability
from studyplan.models.course import Course
from studyplan.schemas.plan import PlannedBlock, PlanResult
from studyplan.services.plan_store import PlanStore

logger = logging.getLogger(__name__)

PLAN_WINDOW_DAYS = 7
MIN_CHUNK_MINUTES = 15
MAX_CHUNK_MINUTES = 60

NO_ASSESSMENTS_MESSAGE = "No assessments due in the next 7 days."
NO_CAPACITY_MESSAGE = "No time available in the next 7 days to schedule tasks."
ZERO_AVAILABILITY_WARNING = "Overload: availability is 0 for all 7 days."

# One lock per user; generation for the same user never interleaves in-process.
# An entry lives only while some caller still references its lock.
_user_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


def _lock_for(user_id: int) -> threading.Lock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def plan_window(today: date) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(PLAN_WINDOW_DAYS)]


def format_duration(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    if hours <= 0:
        return f"{mins} minutes"
    if mins == 0:
        return f"{hours} hours"
    return f"{hours}h {mins}m"


def clamp_chunk(chunk_minutes: int) -> int:
    return max(MIN_CHUNK_MINUTES, min(MAX_CHUNK_MINUTES, chunk_minutes))


@dataclass(order=True)
class ScoredAssessment:
    """Per-run working copy of an assessment.

    ``remaining_minutes`` is decremented during allocation; the source record
    is never touched.
    """

    sort_index: float = field(init=False, repr=False, compare=True)
    score: float = field(compare=False)
    assessment_id: int = field(compare=False)
    title: str = field(compare=False)
    course_title: str | None = field(compare=False)
    due_date: date = field(compare=False)
    difficulty: int = field(compare=False)
    days_left: int = field(compare=False)
    estimated_minutes: int = field(compare=False)
    remaining_minutes: int = field(compare=False)

    def __post_init__(self) -> None:
        self.sort_index = -self.score  # invert for descending sort

    @property
    def block_title(self) -> str:
        if self.course_title:
            return f"{self.course_title} — {self.title}"
        return self.title


def resolve_daily_capacity(
    days: Sequence[date],
    availability: Iterable[Availability],
    default_hours: float,
) -> list[int]:
    """Capacity in minutes for each day, looked up by that day's weekday."""
    hours_by_weekday = {weekday: default_hours for weekday in range(7)}
    for row in availability:
        hours_by_weekday[int(row.weekday)] = float(row.hours_available)
    return [
        round_half_up(hours_by_weekday.get(weekday_index(day), default_hours) * 60)
        for day in days
    ]


def eligible_assessments(
    assessments: Iterable[Assessment], days: Sequence[date]
) -> list[Assessment]:
    """Pending assessments due inside the window, in input order."""
    first, last = days[0], days[-1]
    return [
        assessment
        for assessment in assessments
        if assessment.status != AssessmentStatus.DONE.value
        and first <= assessment.due_date <= last
    ]


def score_assessments(
    assessments: Sequence[Assessment],
    courses: Sequence[Course],
    today: date,
    default_difficulty: int = 3,
) -> list[ScoredAssessment]:
    course_map = {course.id: course for course in courses}
    scored: list[ScoredAssessment] = []

    for assessment in assessments:
        course = course_map.get(assessment.course_id) if assessment.course_id else None
        difficulty = int(course.difficulty) if course else default_difficulty
        # Overdue items would count as due today, never negative
        days_left = max(0, (assessment.due_date - today).days)
        estimated_minutes = max(0, round_half_up(float(assessment.estimated_hours) * 60))

        scored.append(
            ScoredAssessment(
                score=(difficulty + 1) / (days_left + 1),
                assessment_id=assessment.id,
                title=assessment.title,
                course_title=course.title if course else None,
                due_date=assessment.due_date,
                difficulty=difficulty,
                days_left=days_left,
                estimated_minutes=estimated_minutes,
                remaining_minutes=estimated_minutes,
            )
        )

    return scored


def allocate_blocks(
    days: Sequence[date],
    capacities: Sequence[int],
    scored: Sequence[ScoredAssessment],
    chunk_minutes: int = 30,
) -> list[PlannedBlock]:
    """Greedy single pass over the days, highest score first within a day.

    Decrements ``remaining_minutes`` on the working copies in ``scored``.
    """
    chunk = clamp_chunk(chunk_minutes)
    blocks: list[PlannedBlock] = []

    for day, capacity in zip(days, capacities):
        remaining_capacity = capacity
        if remaining_capacity <= 0:
            continue

        # sorted() is stable, so equal scores keep the store's order
        candidates = sorted(
            item
            for item in scored
            if item.remaining_minutes > 0 and day <= item.due_date
        )

        for item in candidates:
            if remaining_capacity <= 0:
                break
            while item.remaining_minutes > 0 and remaining_capacity > 0:
                minutes = min(chunk, item.remaining_minutes, remaining_capacity)
                blocks.append(
                    PlannedBlock(
                        plan_date=day,
                        title=item.block_title,
                        minutes=minutes,
                        assessment_id=item.assessment_id,
                        done=False,
                    )
                )
                item.remaining_minutes -= minutes
                remaining_capacity -= minutes

    return blocks


def compute_shortfall(scored: Iterable[ScoredAssessment]) -> int:
    return sum(item.remaining_minutes for item in scored)


def summarize_plan(
    block_count: int, shortfall_minutes: int, total_capacity: int
) -> tuple[str, str | None]:
    """Return the (message, warning) pair shown after a generation run."""
    if block_count == 0:
        warning = None
        if shortfall_minutes > 0:
            warning = f"Overload shortfall: {format_duration(shortfall_minutes)}."
        return NO_CAPACITY_MESSAGE, warning

    warning = None
    if shortfall_minutes > 0:
        warning = (
            f"Overload: you're short by {format_duration(shortfall_minutes)} "
            "within the next 7 days. Increase availability or reduce estimated hours."
        )
    elif total_capacity == 0:
        warning = ZERO_AVAILABILITY_WARNING
    return f"Generated {block_count} blocks across the next 7 days.", warning


def generate_plan(
    store: PlanStore,
    user_id: int,
    today: date,
    generated_at: datetime | None = None,
    chunk_minutes: int | None = None,
) -> PlanResult:
    """
    Generate and persist a 7-day study plan starting at ``today``.

    The previous blocks in the window are replaced atomically together with
    the user's plan summary. Storage failures propagate as
    ``PlanStorageError``; running out of time is reported in the result.

    Args:
        store: Storage the records are read from and the plan written to
        user_id: Owner of the plan
        today: First day of the window, also the basis for urgency
        generated_at: Timestamp recorded on the summary (defaults to now, UTC)
        chunk_minutes: Nominal block size, clamped to [15, 60]
    """
    settings = get_settings()
    chunk = chunk_minutes if chunk_minutes is not None else settings.chunk_minutes
    stamp = generated_at or datetime.now(timezone.utc)
    days = plan_window(today)

    with _lock_for(user_id):
        availability = store.read_availability(user_id)
        capacities = resolve_daily_capacity(
            days, availability, settings.default_availability_hours
        )

        assessments = eligible_assessments(
            store.read_pending_assessments(user_id, days[0], days[-1]), days
        )
        if not assessments:
            store.replace_plan(user_id, [], [], 0, stamp)
            logger.info(f"Plan for user {user_id} from {today}: no assessments due")
            return PlanResult(
                blocks_created=0,
                shortfall_minutes=0,
                message=NO_ASSESSMENTS_MESSAGE,
                warning=None,
            )

        courses = store.read_courses(user_id)
        scored = score_assessments(
            assessments, courses, today, settings.default_difficulty
        )
        blocks = allocate_blocks(days, capacities, scored, chunk)
        shortfall_minutes = compute_shortfall(scored)

        store.replace_plan(user_id, days, blocks, shortfall_minutes, stamp)

    message, warning = summarize_plan(len(blocks), shortfall_minutes, sum(capacities))
    logger.info(
        f"Plan for user {user_id} from {today}: {len(blocks)} blocks, "
        f"shortfall {shortfall_minutes} min"
    )
    return PlanResult(
        blocks_created=len(blocks),
        shortfall_minutes=shortfall_minutes,
        message=message,
        warning=warning,
        blocks=blocks,
    )
