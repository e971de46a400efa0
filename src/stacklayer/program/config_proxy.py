"""
Overridable resource configuration.

A ConfigProxy wraps the plain config dict of a declared resource. Reading a
field yields a setter instead of a value::

    bucket.config.force_destroy(True)                  # overwrite
    table.config.read_capacity(lambda v: v * 2)        # transform

Transforms are recorded as Output compositions, so a field can depend on a
value that only exists once an earlier resource has been constructed.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator, Optional

import structlog

from stacklayer.core.errors import ConfigShapeError
from stacklayer.program.output import Output

logger = structlog.get_logger()


class ConfigSetter:
    """Setter bound to one field of a config record."""

    def __init__(self, record: Dict[str, Any], key: str, owner: str | None = None) -> None:
        self._record = record
        self._key = key
        self._owner = owner

    def __call__(self, value: Any) -> None:
        if callable(value):
            self._record[self._key] = _compose(self._record.get(self._key), value, self._label)
        else:
            self._record[self._key] = value

    @property
    def _label(self) -> str:
        return f"{self._owner}.{self._key}" if self._owner else self._key

    def __repr__(self) -> str:
        return f"ConfigSetter({self._label})"


def _compose(current: Any, modifier: Callable[[Any], Any], label: str) -> Output[Any]:
    def apply(value: Any) -> Any:
        result = modifier(value)
        # In-place modifiers return nothing; keep the (mutated) value.
        return value if result is None else result

    # The transform sees the field with every nested Output resolved.
    composed = Output.deep(current).map(apply)
    composed.label = label
    return composed


class ConfigProxy:
    """Closed-shape view over a config record where each field is a setter."""

    def __init__(
        self,
        record: Dict[str, Any],
        allowed: Optional[Iterable[str]] = None,
        *,
        owner: str | None = None,
    ) -> None:
        object.__setattr__(self, "_record", record)
        object.__setattr__(self, "_owner", owner)
        fields = set(record)
        if allowed is not None:
            fields.update(allowed)
        object.__setattr__(self, "_fields", frozenset(fields))

    def __getattr__(self, key: str) -> ConfigSetter:
        if key.startswith("_") and key not in self.__dict__.get("_fields", ()):
            raise AttributeError(key)
        return self[key]

    def __getitem__(self, key: str) -> ConfigSetter:
        if key not in self._fields:
            raise ConfigShapeError(
                f"Unknown config field '{key}'",
                {"resource": self._owner, "field": key, "fields": sorted(self._fields)},
            )
        return ConfigSetter(self._record, key, self._owner)

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"Use config.{key}(value) to set a config field")

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._fields))

    def __repr__(self) -> str:
        return f"ConfigProxy({self._owner or ''}, fields={sorted(self._fields)})"


def resolve_config(value: Any, *, owner: str | None = None) -> Any:
    """
    Substitute settled Outputs in a config record with their values.

    Pending Outputs are forward references to resources declared later; they
    stay in place for the constructor to await. Rejected Outputs raise.
    """
    if isinstance(value, Output):
        if value.is_pending:
            logger.warning("config_forward_reference", resource=owner, output=value.label)
            return value
        return resolve_config(value.get(), owner=owner)
    if isinstance(value, dict):
        return {key: resolve_config(item, owner=owner) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_config(item, owner=owner) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve_config(item, owner=owner) for item in value)
    return value
