"""
Director Configuration

Environment-based configuration for the orchestration core.
"""
import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    log_level: str = "INFO"

    # Planning
    fast_path_min_confidence: float = 0.85  # Recognizers below this bar are skipped
    playbooks_enabled: bool = True

    # Execution loop
    doom_loop_threshold: int = 3   # Identical consecutive calls before the loop is flagged
    step_timeout_seconds: float = 30.0
    step_max_retries: int = 0      # Only transient failures are retried
    stop_on_error: bool = True

    # Backend command serialization
    command_queue_timeout_seconds: float = 30.0
    command_queue_max_pending: int = 100

    # In-flight request coalescing
    dedup_max_entries: int = 100
    dedup_cleanup_delay_seconds: float = 0.05

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        """Clamp values that would disable safety guards outright."""
        if self.doom_loop_threshold < 2:
            logging.getLogger(__name__).warning(
                f"DIRECTOR_DOOM_LOOP_THRESHOLD={self.doom_loop_threshold} is below 2; using 2"
            )
            self.doom_loop_threshold = 2
        if not 0.0 <= self.fast_path_min_confidence <= 1.0:
            raise ValueError("fast_path_min_confidence must be between 0 and 1")
        return self

    model_config = SettingsConfigDict(
        env_prefix="DIRECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience access
settings = get_settings()
