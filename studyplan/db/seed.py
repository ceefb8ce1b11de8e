from datetime import date, timedelta

from sqlalchemy.orm import Session

from studyplan.db.session import SessionLocal
from studyplan.models.assessment import Assessment, AssessmentStatus
from studyplan.models.availability import Availability
from studyplan.models.course import Course
from studyplan.models.user import User


def seed_demo_data(db: Session, today: date | None = None) -> User:
    existing = db.query(User).filter(User.email == "demo@student.com").first()
    if existing:
        return existing
    today = today or date.today()
    user = User(
        email="demo@student.com",
        full_name="Demo Student",
        timezone="America/New_York",
    )
    db.add(user)
    db.flush()

    courses = [
        Course(user_id=user.id, title="Calculus II", difficulty=5),
        Course(user_id=user.id, title="Modern Literature", difficulty=2),
        Course(user_id=user.id, title="Physics Lab", difficulty=4),
    ]
    db.add_all(courses)
    db.flush()

    assessments = [
        Assessment(
            user_id=user.id,
            course_id=courses[0].id,
            title="Problem Set 6",
            due_date=today + timedelta(days=2),
            estimated_hours=3,
        ),
        Assessment(
            user_id=user.id,
            course_id=courses[1].id,
            title="Read Chapters 4-5",
            due_date=today + timedelta(days=3),
            estimated_hours=2,
            status=AssessmentStatus.IN_PROGRESS.value,
        ),
        Assessment(
            user_id=user.id,
            course_id=courses[2].id,
            title="Lab Report Draft",
            due_date=today + timedelta(days=1),
            estimated_hours=2.5,
        ),
        Assessment(
            user_id=user.id,
            title="Scholarship Essay Outline",
            due_date=today + timedelta(days=6),
            estimated_hours=1.5,
        ),
        Assessment(
            user_id=user.id,
            course_id=courses[0].id,
            title="Quiz Corrections",
            due_date=today + timedelta(days=4),
            estimated_hours=1,
            status=AssessmentStatus.DONE.value,
        ),
    ]
    db.add_all(assessments)

    # Weekends lighter, Friday off
    hours = {0: 1.0, 1: 2.5, 2: 2.0, 3: 2.5, 4: 2.0, 5: 0.0, 6: 1.5}
    db.add_all(
        Availability(user_id=user.id, weekday=weekday, hours_available=value)
        for weekday, value in hours.items()
    )
    db.commit()
    return user


if __name__ == "__main__":
    with SessionLocal() as session:
        seed_demo_data(session)
