"""Configuration loading for the suitelog report aggregator.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings

Settings are an explicit value handed to the composition root. Nothing
outside load_settings() reads the process environment.
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from suitelog.adapters.serializer.delimited_json import is_safe_delimiter


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv. Variables are prefixed with
    SUITELOG_ (e.g. SUITELOG_PIPE_NAME).
    """

    model_config = SettingsConfigDict(
        env_prefix="SUITELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Report destination
    pipe_name: str = Field(
        default="",
        description="Named pipe the report is written to",
    )
    sink_backend: Literal["pipe", "file", "stdout"] = Field(
        default="file",
        description="Report sink type",
    )
    report_path: str = Field(
        default="./reports/report.ndjson",
        description="Report file path for the file sink",
    )
    record_delimiter: str = Field(
        default="\n",
        description="Separator between delimited JSON records",
    )

    # Report content
    api_version: str | None = Field(
        default=None,
        description="Version label stamped on the report header",
    )
    strategy: Literal["unit", "behavior"] = Field(
        default="unit",
        description="Lifecycle event vocabulary consumed from the engine",
    )

    # Traffic capture
    traffic_logging_enabled: bool = Field(
        default=False,
        description="Capture HTTP traffic per test and persist HAR artifacts",
    )
    traffic_output_dir: str = Field(
        default="./reports/traffic",
        description="Directory for per-test HAR artifacts",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("record_delimiter")
    @classmethod
    def validate_record_delimiter(cls, v: str) -> str:
        """Ensure the record delimiter cannot occur inside a JSON record."""
        if not is_safe_delimiter(v):
            raise ValueError(
                "record_delimiter must be non-empty and made of control characters"
            )
        return v

    @model_validator(mode="after")
    def validate_pipe_name(self) -> "Settings":
        """Ensure a pipe name is given when writing to a pipe."""
        if self.sink_backend == "pipe" and not self.pipe_name:
            raise ValueError("pipe_name is required when sink_backend is 'pipe'")
        return self


def load_settings(env_file: str | None = None, **overrides) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.
        **overrides: Explicit values taking precedence over the environment.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    return Settings(**overrides)


__all__ = ["Settings", "load_settings"]
