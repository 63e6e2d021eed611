"""
Application configuration using pydantic-settings.
Loads from GRAMMAR_TUTOR_* environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from grammar_tutor.db import DEFAULT_DB_PATH
from grammar_tutor.models import UnlockMode

DEFAULT_TOPICS = [
    "Pangngalan", "Pandiwa", "Pang-uri", "Panghalip",
    "Pang-abay", "Pang-ukol", "Pangatnig", "Pang-angkop",
]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GRAMMAR_TUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    db_path: str = DEFAULT_DB_PATH

    # Application
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # Topic progression
    mastery_threshold: float = 0.8  # accuracy needed to complete a tier
    smoothing_alpha: float = 0.3    # weight of the newest accuracy sample
    initial_ease_factor: float = 2.5
    default_topics: list[str] = DEFAULT_TOPICS

    # Difficulty unlock ledger
    unlock_medium_score: int = 5
    unlock_hard_score: int = 8
    medium_speed_threshold: float = 6.0  # max average seconds per answer
    hard_speed_threshold: float = 3.0

    # Module unlock ledger (percentages, 0-100)
    module_mastery_threshold: float = 60.0
    module_accuracy_threshold: float = 50.0
    module_level_threshold: int = 0
    modules: list[str] = ["Module1", "Module2", "Module3"]
    module_topics: dict[str, list[str]] = {
        "Module1": ["Pangngalan", "Panghalip"],
        "Module2": ["Pandiwa", "Pang-uri", "Pang-abay"],
        "Module3": ["Pang-ukol", "Pangatnig", "Pang-angkop"],
    }

    # Debug / administration
    unlock_mode: UnlockMode = UnlockMode.NORMAL
    access_policy: Literal["mastery", "threshold"] = "mastery"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
