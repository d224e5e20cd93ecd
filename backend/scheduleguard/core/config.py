from functools import lru_cache
import json
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="SCHEDULEGUARD_",
    )

    project_name: str = "ScheduleGuard API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Persistence backend that owns faculty, rooms and committed schedules.
    backend_base_url: str = "http://localhost:8000/api"
    backend_api_token: str | None = None
    backend_timeout_seconds: float = 10.0

    room_type_match: Literal["exact", "substring"] = "exact"
    default_normal_cap_units: float = 18.0
    default_overload_cap_units: float = 6.0
    # Unset means no limit on the number of subjects per faculty.
    max_subjects_per_faculty: int | None = Field(default=None, ge=1)

    max_request_size_bytes: int = 1_000_000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("default_normal_cap_units", "default_overload_cap_units")
    @classmethod
    def non_negative_caps(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Load caps cannot be negative")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
