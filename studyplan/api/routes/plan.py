import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from studyplan.api import deps
from studyplan.db.session import get_db
from studyplan.models.plan_summary import PlanSummary
from studyplan.models.study_block import StudyBlock
from studyplan.models.user import User
from studyplan.schemas.plan import (
    DailyPlan,
    PlanResult,
    StudyBlockPublic,
    StudyBlockUpdate,
    WeeklyPlan,
)
from studyplan.services.plan_store import PlanStorageError, SqlAlchemyPlanStore
from studyplan.services.planner import generate_plan, plan_window

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_today(user: User, as_of: date | None) -> date:
    """Explicit ``as_of`` wins; otherwise today in the user's timezone."""
    if as_of:
        return as_of
    return datetime.now(ZoneInfo(user.timezone)).date()


def _storage_unavailable(exc: PlanStorageError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
    )


@router.post("/generate", response_model=PlanResult)
def generate_week_plan(
    as_of: date | None = Query(default=None, description="First day of the window"),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> PlanResult:
    """Regenerate the 7-day plan, replacing any blocks already in the window."""
    today = _resolve_today(current_user, as_of)
    try:
        return generate_plan(SqlAlchemyPlanStore(db), current_user.id, today)
    except PlanStorageError as exc:
        logger.error(f"Plan generation failed for user {current_user.id}: {exc}")
        raise _storage_unavailable(exc) from exc


@router.get("/", response_model=WeeklyPlan)
def get_week_plan(
    as_of: date | None = Query(default=None, description="First day of the window"),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> WeeklyPlan:
    days = plan_window(_resolve_today(current_user, as_of))
    blocks = (
        db.query(StudyBlock)
        .filter(
            StudyBlock.user_id == current_user.id,
            StudyBlock.plan_date.in_(days),
        )
        .order_by(StudyBlock.plan_date.asc(), StudyBlock.id.asc())
        .all()
    )

    by_day: dict[date, list[StudyBlock]] = {day: [] for day in days}
    for block in blocks:
        by_day[block.plan_date].append(block)

    daily_plans = []
    for day, day_blocks in by_day.items():
        # Incomplete first, then longest first
        day_blocks.sort(key=lambda block: (block.done, -block.minutes))
        daily_plans.append(
            DailyPlan(
                day=day,
                blocks=[StudyBlockPublic.model_validate(block) for block in day_blocks],
                total_minutes=sum(block.minutes for block in day_blocks),
                done_minutes=sum(block.minutes for block in day_blocks if block.done),
            )
        )

    summary = db.get(PlanSummary, current_user.id)
    generated_at = None
    if summary and summary.generated_at:
        generated_at = summary.generated_at.replace(tzinfo=timezone.utc)
    return WeeklyPlan(
        user_id=current_user.id,
        days=daily_plans,
        shortfall_minutes=summary.shortfall_minutes if summary else 0,
        generated_at=generated_at,
    )


@router.patch("/blocks/{block_id}", response_model=StudyBlockPublic)
def update_block(
    block_id: int,
    payload: StudyBlockUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> StudyBlockPublic:
    block = (
        db.query(StudyBlock)
        .filter(StudyBlock.id == block_id, StudyBlock.user_id == current_user.id)
        .first()
    )
    if not block:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Study block not found"
        )
    block.done = payload.done
    db.add(block)
    db.commit()
    db.refresh(block)
    return block


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
def clear_week_plan(
    as_of: date | None = Query(default=None, description="First day of the window"),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> None:
    days = plan_window(_resolve_today(current_user, as_of))
    store = SqlAlchemyPlanStore(db)
    try:
        store.clear_window(current_user.id, days)
    except PlanStorageError as exc:
        raise _storage_unavailable(exc) from exc
