"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from biostudies_mcp.constants import BIOSTUDIES_BASE_URL, DEFAULT_TIMEOUT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # BioStudies API
    biostudies_base_url: str = BIOSTUDIES_BASE_URL
    request_timeout_seconds: float = DEFAULT_TIMEOUT

    # Optional credentials, used once at server startup
    biostudies_login: str = ""
    biostudies_password: str = ""

    # App Settings
    log_level: str = "INFO"
    tool_profile: Literal["full", "minimal"] = "full"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
