import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studyplan.api import deps
from studyplan.db.session import get_db
from studyplan.models.assessment import Assessment
from studyplan.models.course import Course
from studyplan.models.user import User
from studyplan.schemas.assessment import (
    AssessmentCreate,
    AssessmentPublic,
    AssessmentUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_assessment_or_404(db: Session, assessment_id: int, user: User) -> Assessment:
    assessment = (
        db.query(Assessment)
        .filter(Assessment.id == assessment_id, Assessment.user_id == user.id)
        .first()
    )
    if not assessment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found",
        )
    return assessment


def _ensure_course_owned(db: Session, course_id: int | None, user: User) -> None:
    if course_id is None:
        return
    course = (
        db.query(Course)
        .filter(Course.id == course_id, Course.user_id == user.id)
        .first()
    )
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
        )


@router.get("/", response_model=list[AssessmentPublic])
def list_assessments(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> list[AssessmentPublic]:
    return (
        db.query(Assessment)
        .filter(Assessment.user_id == current_user.id)
        .order_by(Assessment.due_date.asc(), Assessment.id.asc())
        .all()
    )


@router.post("/", response_model=AssessmentPublic, status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: AssessmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> AssessmentPublic:
    _ensure_course_owned(db, payload.course_id, current_user)
    data = payload.dict()
    data["status"] = payload.status.value
    assessment = Assessment(user_id=current_user.id, **data)
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    logger.info(f"Assessment added: {assessment.id} | {assessment.title}")
    return assessment


@router.put("/{assessment_id}", response_model=AssessmentPublic)
def update_assessment(
    assessment_id: int,
    payload: AssessmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> AssessmentPublic:
    assessment = _get_assessment_or_404(db, assessment_id, current_user)
    data = payload.dict(exclude_unset=True)
    if "course_id" in data:
        _ensure_course_owned(db, data["course_id"], current_user)
    if "status" in data:
        data["status"] = data["status"].value
    for key, value in data.items():
        setattr(assessment, key, value)
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    logger.info(f"Assessment edited: {assessment.id}")
    return assessment


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> None:
    assessment = _get_assessment_or_404(db, assessment_id, current_user)
    db.delete(assessment)
    db.commit()
    logger.info(f"Assessment deleted: {assessment_id}")
