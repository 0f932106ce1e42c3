"""
Configuration for versionchain.

Uses pydantic-settings for environment variable loading. Every setting has
a default, so a chain works without any environment configured.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """versionchain configuration loaded from environment."""

    # Migration behavior
    validate_source: bool = Field(
        default=True,
        description="Validate input against its declared version before upgrading",
    )

    # Logging (used by the CLI)
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="Log format: text or json")

    model_config = {"env_prefix": "VERSIONCHAIN_"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings (read once from the environment)."""
    return Settings()
