"""Configuration management for brancher."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def normalize_log_level(value: str) -> str:
    """Upper-case a log level name, rejecting unknown levels."""
    normalized = value.strip().upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
    return normalized


class BrancherSettings(BaseSettings):
    """Branch naming convention and runtime options, sourced from environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    remote: str = Field(default="origin", validation_alias="BRANCHER_REMOTE")
    dev_branch: str = Field(default="dev", validation_alias="BRANCHER_DEV_BRANCH")
    release_prefix: str = Field(default="release", validation_alias="BRANCHER_RELEASE_PREFIX")
    release_delimiter: str = Field(default="-", validation_alias="BRANCHER_RELEASE_DELIMITER")
    task_prefix: str = Field(default="task/", validation_alias="BRANCHER_TASK_PREFIX")
    fix_prefix: str = Field(default="fix/", validation_alias="BRANCHER_FIX_PREFIX")
    log_level: str = Field(default="INFO", validation_alias="BRANCHER_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return normalize_log_level(value)

    @field_validator("remote", "dev_branch", "release_prefix", "release_delimiter", "task_prefix", "fix_prefix")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("branch convention values must not be empty")
        return value.strip()


# Built from field defaults only, without reading the environment
DEFAULT_SETTINGS = BrancherSettings.model_construct()


@lru_cache(maxsize=1)
def get_settings() -> BrancherSettings:
    """Return cached settings instance."""
    return BrancherSettings()


__all__ = ["DEFAULT_SETTINGS", "BrancherSettings", "get_settings", "normalize_log_level"]
