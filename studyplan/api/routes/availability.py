from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studyplan.api import deps
from studyplan.core.config import get_settings
from studyplan.db.session import get_db
from studyplan.models.availability import Availability
from studyplan.models.user import User
from studyplan.schemas.availability import AvailabilityEntry, WeeklyAvailability

router = APIRouter()


def _weekly_profile(db: Session, user: User) -> WeeklyAvailability:
    """All seven weekdays, stored values over the configured default."""
    default_hours = get_settings().default_availability_hours
    hours = {weekday: default_hours for weekday in range(7)}
    rows = db.query(Availability).filter(Availability.user_id == user.id).all()
    for row in rows:
        hours[row.weekday] = row.hours_available
    return WeeklyAvailability(
        days=[
            AvailabilityEntry(weekday=weekday, hours_available=value)
            for weekday, value in sorted(hours.items())
        ]
    )


@router.get("/", response_model=WeeklyAvailability)
def get_availability(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> WeeklyAvailability:
    return _weekly_profile(db, current_user)


@router.put("/", response_model=WeeklyAvailability)
def update_availability(
    payload: WeeklyAvailability,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> WeeklyAvailability:
    weekdays = [entry.weekday for entry in payload.days]
    if len(weekdays) != len(set(weekdays)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Each weekday may appear only once",
        )

    existing = {
        row.weekday: row
        for row in db.query(Availability)
        .filter(Availability.user_id == current_user.id)
        .all()
    }
    for entry in payload.days:
        record = existing.get(entry.weekday)
        if record:
            record.hours_available = entry.hours_available
        else:
            record = Availability(
                user_id=current_user.id,
                weekday=entry.weekday,
                hours_available=entry.hours_available,
            )
        db.add(record)
    db.commit()
    return _weekly_profile(db, current_user)
