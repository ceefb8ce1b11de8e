from pydantic import BaseModel, Field


class AvailabilityEntry(BaseModel):
    weekday: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    hours_available: float = Field(..., ge=0, le=24)

    class Config:
        from_attributes = True


class WeeklyAvailability(BaseModel):
    days: list[AvailabilityEntry]
