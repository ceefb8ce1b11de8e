from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    database_url: str = Field(default="sqlite:///./studyplan.db")
    log_level: str = Field(default="INFO")

    # Planner tuning
    chunk_minutes: int = Field(default=30)
    default_availability_hours: float = Field(default=2.0, ge=0)
    default_difficulty: int = Field(default=3, ge=1, le=5)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
