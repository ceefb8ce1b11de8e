from datetime import datetime

from pydantic import BaseModel, Field, validator


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    difficulty: int = Field(default=3, ge=1, le=5)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    difficulty: int | None = Field(default=None, ge=1, le=5)

    @validator("title", "difficulty")
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; null would violate NOT NULL
        if v is None:
            raise ValueError("may not be null")
        return v


class CourseInDBBase(CourseBase):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CoursePublic(CourseInDBBase):
    pass
