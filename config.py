"""
Configuration settings for the quiz engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every variable is prefixed with QUIZ_ENGINE_ (e.g. QUIZ_ENGINE_LOG_LEVEL=DEBUG).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZ_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # ========================================
    # Scoring
    # ========================================
    weight_binding: Literal["question", "position"] = Field(
        default="question",
        description=(
            "'question': weights are attached to questions before shuffling and follow them. "
            "'position': weights stay keyed by attempt position (legacy behaviour)"
        ),
    )
    text_answer_case_sensitive: bool = Field(
        default=False,
        description="Compare fill-in-blank and short answers case-sensitively",
    )

    # ========================================
    # Attempts
    # ========================================
    enforce_time_limits: bool = Field(
        default=True,
        description="Score answers given after the per-question time limit as unanswered",
    )
    seed_secret: str | None = Field(
        default=None,
        description="When set, attempts are shuffled reproducibly from learner, quiz and attempt number",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
