"""
StackLayer Configuration System.

Provides:
- Pydantic-based settings (environment variables, .env files)
- YAML app configuration files (per-project and user-level)
"""

from stacklayer.config.settings import Settings, get_settings

from stacklayer.config.loader import (
    ConfigLoader,
    get_config_path,
    load_app_config,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Loader
    "ConfigLoader",
    "load_app_config",
    "get_config_path",
]
