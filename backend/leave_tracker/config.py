from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Leave tracker settings, read from the environment or a local .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Tracker"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: LogLevel = "INFO"
    database_url: str = "postgresql+asyncpg://leave_tracker:leave_tracker@db:5432/leave_tracker"
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000", "http://localhost:8000"]

    # Opening balances for new employees and fallbacks for the yearly reset.
    default_casual_days: int = Field(default=12, ge=0)
    default_medical_days: int = Field(default=12, ge=0)
    default_earned_days: int = Field(default=15, ge=0)

    rejection_placeholder: str = "No reason provided"
    recent_leaves_limit: int = Field(default=10, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Accept CORS_ORIGINS=a,b as well as a list."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
