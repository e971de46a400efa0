"""In-memory provider that records constructed resources instead of creating them."""

from __future__ import annotations

import copy
import itertools
from typing import Any, Iterable, List

import structlog

from stacklayer.core.errors import ProviderError
from stacklayer.providers.base import ProviderInstance

logger = structlog.get_logger()


class RecordingProvider:
    """Hands out constructors whose instances are kept in ``created``."""

    name = "memory"

    def __init__(self) -> None:
        self.created: List[ProviderInstance] = []
        self._ids = itertools.count(1)

    def resource(
        self,
        resource_type: str,
        *,
        fields: Iterable[str] | None = None,
        fail_with: BaseException | None = None,
    ) -> "RecordingConstructor":
        return RecordingConstructor(self, resource_type, fields=fields, fail_with=fail_with)

    def names(self) -> List[str]:
        return [instance.name for instance in self.created]

    def get(self, name: str) -> ProviderInstance:
        for instance in self.created:
            if instance.name == name:
                return instance
        raise ProviderError(f"No resource named '{name}' was created", {"provider": self.name})

    def _next_id(self, resource_type: str) -> str:
        return f"{resource_type}-{next(self._ids)}"


class RecordingConstructor:
    """Constructor for one resource type backed by a RecordingProvider."""

    def __init__(
        self,
        provider: RecordingProvider,
        resource_type: str,
        *,
        fields: Iterable[str] | None = None,
        fail_with: BaseException | None = None,
    ) -> None:
        self.provider = provider
        self.resource_type = resource_type
        self.config_fields = frozenset(fields) if fields is not None else None
        self._fail_with = fail_with

    def __call__(self, name: str, config: dict[str, Any], opts: dict[str, Any]) -> ProviderInstance:
        if self._fail_with is not None:
            raise self._fail_with

        snapshot = copy.deepcopy(config)
        tags = snapshot.get("tags")
        instance = ProviderInstance(
            name=name,
            type=self.resource_type,
            id=self.provider._next_id(self.resource_type),
            config=snapshot,
            opts=dict(opts),
            tags=dict(tags) if isinstance(tags, dict) else {},
        )
        self.provider.created.append(instance)
        logger.debug("memory_resource_created", resource=name, type=self.resource_type, id=instance.id)
        return instance

    def __repr__(self) -> str:
        return f"RecordingConstructor({self.resource_type})"
