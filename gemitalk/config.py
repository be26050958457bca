"""
Configuration management for the GemiTalk practice core
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///data/gemitalk.db", validation_alias="DATABASE_URL"
    )

    # Application Configuration
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    lock_timeout_seconds: float = Field(
        default=30.0, validation_alias="LOCK_TIMEOUT_SECONDS"
    )

    # Pronunciation Scoring
    pronunciation_alignment: str = Field(
        default="positional", validation_alias="PRONUNCIATION_ALIGNMENT"
    )  # "positional" or "sequence"

    # Word Bank (Leitner) Configuration
    weakness_threshold: int = Field(default=70, validation_alias="WEAKNESS_THRESHOLD")
    leitner_max_box: int = Field(default=5, validation_alias="LEITNER_MAX_BOX")

    # Progression Configuration
    lesson_base_xp: int = Field(default=100, validation_alias="LESSON_BASE_XP")
    review_success_xp: int = Field(default=5, validation_alias="REVIEW_SUCCESS_XP")
    default_weekly_goal: int = Field(
        default=150, validation_alias="DEFAULT_WEEKLY_GOAL"
    )  # minutes per week
    default_level: str = Field(default="A1", validation_alias="DEFAULT_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path(database_url: str | None = None) -> str:
    """Get the database file path from URL"""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "")
    return "data/gemitalk.db"
