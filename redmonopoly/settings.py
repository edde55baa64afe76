"""
Engine configuration using pydantic-settings.

Environment variables (prefix: REDMONOPOLY_):
    REDMONOPOLY_SEED            - Default RNG seed for new games (default: unset)
    REDMONOPOLY_STARTING_RUBLES - Rubles dealt to each comrade (default: 1500)
    REDMONOPOLY_MAX_LOG_EVENTS  - Narrative log retention, unset keeps everything
    REDMONOPOLY_LOG_LEVEL       - Diagnostic logging level (default: WARNING)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Environment-backed defaults for new games."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="REDMONOPOLY_",
    )

    seed: Optional[int] = Field(
        default=None,
        description="Seed for the game RNG; unset means nondeterministic.",
    )
    starting_rubles: int = Field(
        default=1500,
        gt=0,
        description="Rubles dealt to each non-adjudicator player.",
    )
    max_log_events: Optional[int] = Field(
        default=None,
        gt=0,
        description="Keep only the most recent N narrative events.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Level for the redmonopoly logger hierarchy.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Optional[str]) -> str:
        """Accept any case and fall back to WARNING for unknown names."""
        if not value:
            return "WARNING"
        value = str(value).upper()
        if not isinstance(logging.getLevelName(value), int):
            return "WARNING"
        return value


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Apply the configured level to the package logger."""
    settings = settings or get_engine_settings()
    logging.getLogger("redmonopoly").setLevel(settings.log_level)
