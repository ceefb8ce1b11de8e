from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, EmailStr, validator


def _check_timezone(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {value}") from e
    return value


class UserBase(BaseModel):
    email: EmailStr
    full_name: str | None = None
    timezone: str = "UTC"


class UserCreate(UserBase):
    @validator("timezone")
    def validate_timezone(cls, v):
        return _check_timezone(v)


class UserUpdate(BaseModel):
    full_name: str | None = None
    timezone: str | None = None

    @validator("timezone")
    def validate_timezone(cls, v):
        if v is None:
            raise ValueError("timezone may not be null")
        return _check_timezone(v)


class UserInDBBase(UserBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserPublic(UserInDBBase):
    pass
