from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from stacklayer.core.errors import ProviderError
from stacklayer.providers.base import ResourceConstructor


@dataclass(frozen=True)
class ConstructorSpec:
    """Metadata describing a registered resource constructor."""

    name: str
    constructor: ResourceConstructor
    version: str | None = None
    description: str | None = None


class ConstructorRegistry:
    """Simple in-memory registry mapping resource type names to constructors."""

    def __init__(self) -> None:
        self._constructors: Dict[str, ConstructorSpec] = {}

    def register(
        self,
        name: str,
        constructor: ResourceConstructor,
        *,
        version: str | None = None,
        description: str | None = None,
    ) -> None:
        if not name:
            raise ValueError("Resource type name is required")
        spec = ConstructorSpec(
            name=name,
            constructor=constructor,
            version=version,
            description=description,
        )
        self._constructors[name] = spec

    def get(self, name: str) -> ResourceConstructor:
        spec = self._constructors.get(name)
        if spec is None:
            raise ProviderError(
                f"Resource type '{name}' is not registered",
                {"registered": sorted(self._constructors)},
            )
        return spec.constructor

    def resolve(self, constructor: ResourceConstructor | str) -> ResourceConstructor:
        """Accept either a constructor or the name it was registered under."""
        if isinstance(constructor, str):
            return self.get(constructor)
        return constructor

    def list(self) -> List[ConstructorSpec]:
        return list(self._constructors.values())


constructor_registry = ConstructorRegistry()


def register_constructor(
    name: str,
    constructor: ResourceConstructor,
    *,
    version: str | None = None,
    description: str | None = None,
) -> None:
    constructor_registry.register(name, constructor, version=version, description=description)


def get_constructor(name: str) -> Any:
    return constructor_registry.get(name)


def list_constructors() -> List[ConstructorSpec]:
    return constructor_registry.list()
