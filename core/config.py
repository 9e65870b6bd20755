"""
Core configuration using Pydantic Settings.
Loads from environment variables.
"""

from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    app_name: str = Field(default="talentflow", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="development", alias="APP_ENV"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    # Store
    store_url: str = Field(
        default="sqlite+aiosqlite:///./talentflow.db", alias="STORE_URL"
    )
    store_echo: bool = Field(default=False, alias="STORE_ECHO")

    # Network simulation
    simulated_latency_ms: int = Field(default=500, ge=0, alias="SIMULATED_LATENCY_MS")
    failure_rate: float = Field(default=0.1, ge=0.0, le=1.0, alias="FAILURE_RATE")
    failure_seed: int | None = Field(default=None, alias="FAILURE_SEED")

    # Client cache
    cache_stale_time_seconds: float = Field(
        default=60.0, ge=0.0, alias="CACHE_STALE_TIME_SECONDS"
    )

    # Actor recorded on timeline events when the request names none
    default_actor_id: str = Field(default="hr-admin-1", alias="DEFAULT_ACTOR_ID")
    default_actor_name: str = Field(default="Admin User", alias="DEFAULT_ACTOR_NAME")

    # Seeding
    seed_jobs: int = Field(default=25, ge=0, alias="SEED_JOBS")
    seed_candidates: int = Field(default=1000, ge=0, alias="SEED_CANDIDATES")
    seed_random_seed: int | None = Field(default=None, alias="SEED_RANDOM_SEED")

    # Logging
    log_request_body: bool = Field(default=False, alias="LOG_REQUEST_BODY")
    log_max_body_size: int = Field(default=1024, alias="LOG_MAX_BODY_SIZE")
    json_logs: bool = Field(default=True, alias="JSON_LOGS")

    @property
    def simulated_latency(self) -> float:
        """Latency in seconds."""
        return self.simulated_latency_ms / 1000


# Global settings instance
settings = Settings()
