from datetime import date, datetime

from pydantic import BaseModel, Field, validator

from studyplan.models.assessment import AssessmentStatus


class AssessmentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    course_id: int | None = None
    due_date: date
    estimated_hours: float = Field(default=1.0, gt=0)
    status: AssessmentStatus = AssessmentStatus.TODO


class AssessmentCreate(AssessmentBase):
    pass


class AssessmentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    course_id: int | None = None
    due_date: date | None = None
    estimated_hours: float | None = Field(default=None, gt=0)
    status: AssessmentStatus | None = None

    class Config:
        extra = "ignore"

    # course_id alone may be cleared with null
    @validator("title", "due_date", "estimated_hours", "status")
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class AssessmentInDBBase(AssessmentBase):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssessmentPublic(AssessmentInDBBase):
    pass
