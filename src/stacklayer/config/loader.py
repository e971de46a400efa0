"""
App configuration file loading.

Search order:
1. Explicit path (passed by the caller, else STACKLAYER_CONFIG_PATH)
2. .stacklayer/config.yaml (project root)
3. ~/.stacklayer/config.yaml (user home)
4. Empty configuration
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from stacklayer.config.settings import get_settings
from stacklayer.core.errors import ConfigurationError

logger = structlog.get_logger()


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the app configuration file to use.

    Search order:
    1. Explicit path if provided
    2. .stacklayer/config.yaml in current directory
    3. ~/.stacklayer/config.yaml in home directory

    Returns:
        Path to config file or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        return None

    cwd_config = Path.cwd() / ".stacklayer" / "config.yaml"
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / ".stacklayer" / "config.yaml"
    if home_config.exists():
        return home_config

    return None


class ConfigLoader:
    """
    Loads the app configuration record handed to App.config.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or get_config_path()

    def load(self) -> dict[str, Any]:
        """Load configuration from file or return an empty record."""
        if self.config_path and self.config_path.exists():
            return self._load_from_file(self.config_path)
        return {}

    def _load_from_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                "App config file is not valid YAML", {"path": str(path), "error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "App config file must contain a mapping",
                {"path": str(path), "type": type(data).__name__},
            )

        logger.debug("loaded_app_config", path=str(path), keys=sorted(data))
        return data


def load_app_config(explicit_path: str | Path | None = None) -> dict[str, Any]:
    """
    Load the app configuration record.

    Falls back to ``Settings.config_path`` (STACKLAYER_CONFIG_PATH) and then
    to the search order above. A path given either way must exist.
    """
    explicit_path = explicit_path or get_settings().config_path
    path = get_config_path(explicit_path)
    if explicit_path and path is None:
        raise ConfigurationError("App config file not found", {"path": str(explicit_path)})
    return ConfigLoader(path).load()
