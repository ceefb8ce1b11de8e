from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studyplan.api import deps
from studyplan.db.session import get_db
from studyplan.models.course import Course
from studyplan.models.user import User
from studyplan.schemas.course import CourseCreate, CoursePublic, CourseUpdate

router = APIRouter()


def _get_course_or_404(db: Session, course_id: int, user: User) -> Course:
    course = (
        db.query(Course)
        .filter(Course.id == course_id, Course.user_id == user.id)
        .first()
    )
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
        )
    return course


@router.get("/", response_model=list[CoursePublic])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> list[CoursePublic]:
    return (
        db.query(Course)
        .filter(Course.user_id == current_user.id)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )


@router.post("/", response_model=CoursePublic, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> CoursePublic:
    course = Course(user_id=current_user.id, **payload.dict())
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CoursePublic)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> CoursePublic:
    course = _get_course_or_404(db, course_id, current_user)
    data = payload.dict(exclude_unset=True)
    for key, value in data.items():
        setattr(course, key, value)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> None:
    course = _get_course_or_404(db, course_id, current_user)
    db.delete(course)
    db.commit()
