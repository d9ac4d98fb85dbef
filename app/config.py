"""
Configuration module for environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = Field(
        default="sqlite:///./assignment.db",
        description="SQLAlchemy database URL (SQLite or PostgreSQL)"
    )
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)

    # Task defaults
    default_estimated_hours: float = Field(
        default=8.0,
        description="Estimated hours used when a task does not provide one"
    )
    default_complexity: int = Field(
        default=5,
        description="Complexity (1-10) used when a task does not provide one"
    )

    # Availability thresholds
    max_workload_hours: float = Field(
        default=40.0,
        description="Open hours at which a member counts as fully loaded"
    )
    min_availability: int = Field(
        default=30,
        description="Availability percentage above which a loaded member stays eligible"
    )

    # Skill name matching
    skill_match_threshold: float = Field(
        default=0.8,
        description="Minimum similarity for fuzzy skill-name matches"
    )

    # Scoring weights (tunable)
    weight_skills: float = Field(default=0.35)
    weight_experience: float = Field(default=0.20)
    weight_workload: float = Field(default=0.20)
    weight_performance: float = Field(default=0.15)
    weight_performance_complex: float = Field(
        default=0.20,
        description="Performance weight for tasks with complexity >= 7"
    )

    # Application Settings
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Convenience function for direct access
settings = get_settings()
