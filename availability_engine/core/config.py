# availability_engine/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local .env file) at
    runtime. The scheduling services never read these directly; the HTTP
    layer passes the relevant limits in as arguments.
    """

    APP_NAME: str = "Availability Engine"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Output logs as JSON lines (for production).",
    )

    MAX_WINDOW_DAYS: int = Field(
        default=366,
        ge=1,
        description="Largest expansion/projection window, in days, accepted over HTTP.",
    )
    MAX_OCCURRENCE_COUNT: int = Field(
        default=500,
        ge=1,
        description="Largest occurrence_count accepted for a session template.",
    )
    RECURRENCE_LOOKAHEAD_FACTOR: int = Field(
        default=10,
        ge=1,
        description=(
            "WEEKLY candidate generation gives up after occurrence_count * "
            "interval * factor weeks without enough dates."
        ),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Settings are read and validated only once per process.
    """
    return Settings()
