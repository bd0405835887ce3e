"""Application settings for the streaming dispatcher."""

import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ENVIRONMENTS = {"development", "production", "test"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env"), env_file_encoding="utf-8")

    # App
    APP_NAME: str = "StreamRelay"
    ENVIRONMENT: str = "development"  # development | production | test

    # Streaming
    # Pause after every send; the channel throttles bursts of typing activities.
    STREAM_PACING_DELAY_SECONDS: float = 1.5
    CITATION_ABSTRACT_MAX_LENGTH: int = 480

    # Connector transport
    CONNECTOR_TIMEOUT_SECONDS: float = 10.0
    # Optional bearer token; omitted from requests when unset
    CONNECTOR_AUTH_TOKEN: str | None = None

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def normalize_environment(cls, v: object) -> str:
        """Lowercase the environment name and reject unknown values."""
        value = str(v).strip().lower()
        if value not in ENVIRONMENTS:
            raise ValueError(
                "ENVIRONMENT must be 'development', 'production', or 'test'"
            )
        return value

    @field_validator("STREAM_PACING_DELAY_SECONDS")
    @classmethod
    def validate_pacing_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("STREAM_PACING_DELAY_SECONDS must not be negative")
        return v

    @field_validator("CITATION_ABSTRACT_MAX_LENGTH")
    @classmethod
    def validate_abstract_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("CITATION_ABSTRACT_MAX_LENGTH must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env not in ENVIRONMENTS:
        raise ValueError("ENVIRONMENT must be 'development', 'production', or 'test'")

    if env == "production":
        env_file = ".env.prod"
    elif env == "development":
        env_file = ".env.dev"
    else:
        # test environment - no env file needed, use defaults
        env_file = ""

    # pydantic-settings accepts the runtime-only `_env_file` kwarg; mypy's stub
    # does not know about it.
    return Settings(_env_file=env_file or None)  # type: ignore[call-arg]
