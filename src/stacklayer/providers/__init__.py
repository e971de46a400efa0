"""Resource constructor contracts, registry and the in-memory provider."""

from stacklayer.providers.base import (
    ProviderInstance,
    ResourceConstructor,
    constructor_label,
    declared_fields,
)
from stacklayer.providers.memory import RecordingConstructor, RecordingProvider
from stacklayer.providers.registry import (
    ConstructorRegistry,
    constructor_registry,
    get_constructor,
    list_constructors,
    register_constructor,
)

__all__ = [
    "ConstructorRegistry",
    "ProviderInstance",
    "RecordingConstructor",
    "RecordingProvider",
    "ResourceConstructor",
    "constructor_label",
    "constructor_registry",
    "declared_fields",
    "get_constructor",
    "list_constructors",
    "register_constructor",
]
