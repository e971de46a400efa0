"""Resource handles returned by ``App.add_resource``."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Generic, Iterable, Optional, TypeVar

import structlog

from stacklayer.core.errors import ResourceConstructionError
from stacklayer.program.config_proxy import ConfigProxy, resolve_config
from stacklayer.program.output import Output
from stacklayer.providers.base import ResourceConstructor, constructor_label

logger = structlog.get_logger()

T = TypeVar("T")

ResourceObserver = Callable[[Any], None]


class AppResource(Generic[T]):
    """
    A declared infrastructure object.

    ``config`` stays overridable until the resource's handler runs; the
    constructed instance is only reachable through ``output``.
    """

    def __init__(
        self,
        name: str,
        constructor: ResourceConstructor,
        config: Dict[str, Any],
        opts: Dict[str, Any],
        allowed_fields: Optional[Iterable[str]] = None,
    ) -> None:
        self.name = name
        self.constructor = constructor
        self.opts = opts
        self._record = config
        self.config = ConfigProxy(config, allowed_fields, owner=name)
        self.output: Output[T] = Output(label=name)

    @property
    def type(self) -> str:
        return constructor_label(self.constructor)

    async def construct(self, observers: Iterable[ResourceObserver]) -> T:
        """Materialize the resource from its config as it stands right now."""
        try:
            config = resolve_config(self._record, owner=self.name)
            instance = self.constructor(self.name, config, self.opts)
            if inspect.isawaitable(instance):
                instance = await instance
        except Exception as exc:
            error = ResourceConstructionError(
                f"Resource '{self.name}' could not be constructed",
                {"resource": self.name, "type": self.type, "error": str(exc)},
                original=exc,
            )
            self.output.reject(error)
            raise error from exc

        try:
            for observer in observers:
                observer(instance)
        except Exception as exc:
            error = ResourceConstructionError(
                f"Resource observer failed for '{self.name}'",
                {"resource": self.name, "type": self.type, "error": str(exc)},
                original=exc,
            )
            self.output.reject(error)
            raise error from exc

        self.output.resolve(instance)
        logger.info("resource_constructed", resource=self.name, type=self.type)
        return instance

    def __repr__(self) -> str:
        return f"AppResource({self.name!r}, type={self.type!r})"
