"""
Application settings using Pydantic.

Provides environment-based configuration loading with STACKBRIDGE_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Runtime library exporting the boundary entry points
    library_path: str | None = None

    # Project used when a stack does not name one
    default_project: str = "stackbridge-project"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # Pending events buffered per operation (0 = unbounded)
    event_queue_size: int = 0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "STACKBRIDGE_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
