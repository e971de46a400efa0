"""Uniform resource tagging applied through the resource observer hook."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog

from stacklayer.config.settings import Settings, get_settings

if TYPE_CHECKING:
    from stacklayer.program.app import App

logger = structlog.get_logger()

AppPolicy = Callable[["App"], None]


def default_tags(settings: Settings) -> Dict[str, str]:
    """Project/environment tags derived from settings."""
    tags = {
        f"{settings.tag_prefix}Project": settings.project_name,
        f"{settings.tag_prefix}Environment": settings.environment,
    }
    tags.update(settings.extra_tags)
    return tags


def tag_resources(app: "App", tags: Dict[str, str]) -> None:
    """Merge ``tags`` into every constructed instance that carries a tags mapping.

    Tags already present on an instance are left untouched.
    """

    def observer(instance: Any) -> None:
        existing = getattr(instance, "tags", None)
        if not isinstance(existing, MutableMapping):
            return
        for key, value in tags.items():
            existing.setdefault(key, value)

    app.on_resource(observer)
    logger.debug("tag_policy_registered", app=app.name, tags=sorted(tags))


def settings_tag_policy(settings: Optional[Settings] = None) -> AppPolicy:
    """Build the tagging policy the app applies before draining."""

    def policy(app: "App") -> None:
        active = settings or get_settings()
        if active.tag_resources:
            tag_resources(app, default_tags(active))

    return policy
