from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Protocol, runtime_checkable


@runtime_checkable
class ResourceConstructor(Protocol):
    """Contract for the external constructor that materializes a resource.

    Constructors may be plain callables or coroutine functions. A constructor
    that knows its config shape exposes it as a ``config_fields`` attribute.
    """

    def __call__(self, name: str, config: dict[str, Any], opts: dict[str, Any]) -> Any:
        ...


@dataclass
class ProviderInstance:
    """A constructed resource as reported back by a provider."""

    name: str
    type: str
    id: str
    config: dict[str, Any]
    opts: dict[str, Any] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)


def declared_fields(constructor: Any) -> Optional[FrozenSet[str]]:
    """Return the config shape a constructor declares, if any."""
    fields = getattr(constructor, "config_fields", None)
    if fields is None:
        return None
    return frozenset(fields)


def constructor_label(constructor: Any) -> str:
    """Human-readable name of a constructor for logs and errors."""
    for attr in ("resource_type", "__qualname__", "__name__"):
        value = getattr(constructor, attr, None)
        if isinstance(value, str):
            return value
    return type(constructor).__name__
