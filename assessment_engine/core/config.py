"""Engine settings loaded from the environment."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: Literal["dev", "test", "prod"] = Field(default="dev", description="Deployment environment")
    PROJECT_NAME: str = "Adaptive Assessment Engine"

    # Store
    DATABASE_URL: str = Field(
        default="sqlite:///./assessment_engine.db",
        description="SQLAlchemy URL of the content and progress store",
    )
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)

    # Logging
    LOG_LEVEL: str = "INFO"

    # Engine behaviour
    STUDY_SESSION_TTL_MINUTES: int = Field(default=240, ge=1)
    MAX_BATCH_SIZE: int = Field(default=50, ge=1)
    READINESS_HISTORY_SIZE: int = Field(default=5, ge=1)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
