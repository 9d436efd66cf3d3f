"""
Configuration via environment variables.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Settings loaded from APPSCOUT_* environment variables (and .env)."""

    # Fetch
    request_timeout_s: float = 30.0
    max_attempts: int = 3
    backoff_base_ms: int = 1000
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "en-US,en;q=0.9"

    # Defaults for tool arguments
    default_country: str = "us"
    default_lang: str = "en"
    max_review_pages: int = 10

    # Extraction
    heuristic_threshold: int = 3

    log_level: str = "WARNING"

    @field_validator("max_attempts", "heuristic_threshold", "max_review_pages")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        return max(1, v)

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return (v or "WARNING").upper()

    class Config:
        env_prefix = "APPSCOUT_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
