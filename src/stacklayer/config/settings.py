"""
Application settings using Pydantic.

Provides environment-based configuration loading with STACKLAYER_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Project identity (used for resource tagging)
    project_name: str = "stacklayer"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Tagging policy applied before every drain
    tag_resources: bool = True
    tag_prefix: str = "StackLayer"
    extra_tags: dict[str, str] = {}

    # App config file (YAML); see config.loader for the search order
    config_path: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "STACKLAYER_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
