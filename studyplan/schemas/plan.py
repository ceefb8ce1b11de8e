from datetime import date, datetime

from pydantic import BaseModel


class PlannedBlock(BaseModel):
    plan_date: date
    title: str
    minutes: int
    assessment_id: int
    done: bool = False


class PlanResult(BaseModel):
    blocks_created: int
    shortfall_minutes: int
    message: str
    warning: str | None = None
    blocks: list[PlannedBlock] = []


class StudyBlockPublic(BaseModel):
    id: int
    user_id: int
    assessment_id: int
    plan_date: date
    title: str
    minutes: int
    done: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StudyBlockUpdate(BaseModel):
    done: bool


class DailyPlan(BaseModel):
    day: date
    blocks: list[StudyBlockPublic]
    total_minutes: int
    done_minutes: int


class WeeklyPlan(BaseModel):
    user_id: int
    days: list[DailyPlan]
    shortfall_minutes: int = 0
    generated_at: datetime | None = None
