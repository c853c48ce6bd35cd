"""Application configuration."""

import logging
from typing import Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DEBUG: bool = False

    # Journey search budgets
    PLANNER_MAX_DEPTH: int = Field(default=15, gt=0)  # Hops from the origin before a branch is dropped
    PLANNER_MAX_ITERATIONS: int = Field(default=10000, gt=0)  # Hard cap on frontier pops per search
    PLANNER_OVERSAMPLE_FACTOR: int = Field(default=5, gt=0)  # Raw leaves collected per requested result
    PLANNER_DEFAULT_RESULTS: int = Field(default=3, gt=0)
    PLANNER_MAX_RESULTS: int = Field(default=10, gt=0)

    @model_validator(mode="after")
    def validate_result_bounds(self) -> Self:
        """Ensure the default result count fits within the maximum."""
        if self.PLANNER_DEFAULT_RESULTS > self.PLANNER_MAX_RESULTS:
            msg = (
                f"PLANNER_DEFAULT_RESULTS ({self.PLANNER_DEFAULT_RESULTS}) must not exceed "
                f"PLANNER_MAX_RESULTS ({self.PLANNER_MAX_RESULTS})"
            )
            raise ValueError(msg)
        return self

    # OpenTelemetry Settings
    OTEL_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "journey-planner"
    OTEL_ENVIRONMENT: str = "production"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_HEADERS: str | None = Field(default=None, validation_alias="SECRET_OTEL_HEADERS")

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        normalized = v.upper()
        valid_levels = logging.getLevelNamesMapping()
        if normalized not in valid_levels:
            msg = f"Invalid LOG_LEVEL '{v}'. Must be one of: {', '.join(sorted(valid_levels.keys()))}"
            raise ValueError(msg)
        return normalized


settings = Settings()


def require_config(*field_names: str) -> None:
    """
    Validate that required configuration fields are set.

    Args:
        *field_names: Names of required configuration fields

    Raises:
        ValueError: If any required field is missing, None or blank

    Example:
        from journey_planner.core.config import require_config
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    """
    missing = []
    for field in field_names:
        value = getattr(settings, field, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)

    if missing:
        msg = f"Required configuration missing: {', '.join(missing)}"
        raise ValueError(msg)
