"""
The program builder.

A program function declares resources, modules and handlers against an App.
Declarations are only recorded; nothing is constructed until ``run_program``
drains the recorded handlers, one at a time, in the order they were added.
"""

from __future__ import annotations

import functools
import inspect
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    TypeVar,
    Union,
    overload,
)

import structlog
from structlog.contextvars import bound_contextvars

from stacklayer.config.loader import load_app_config
from stacklayer.core.errors import (
    ConfigShapeError,
    HandlerExecutionError,
    ModuleAlreadyRegisteredError,
    ModuleNotFoundInAppError,
    ModuleRunError,
    ProgramStateError,
    RunNotActiveError,
    StackLayerError,
)
from stacklayer.orchestration import (
    DrainResult,
    ExecutionEngine,
    HandlerQueue,
    QueuedHandler,
    ResultCollector,
)
from stacklayer.program.inputs import AppInput, get_app_input
from stacklayer.program.module import AppModuleDefinition
from stacklayer.program.output import Output
from stacklayer.program.resource import AppResource, ResourceObserver
from stacklayer.program.tags import AppPolicy, settings_tag_policy
from stacklayer.providers.base import ResourceConstructor, declared_fields
from stacklayer.providers.registry import ConstructorRegistry, constructor_registry

logger = structlog.get_logger()

T = TypeVar("T")
TModule = TypeVar("TModule")

Program = Callable[["App"], Union[Mapping[str, Any], None, Awaitable[Optional[Mapping[str, Any]]]]]

_IDLE = "idle"
_RUNNING = "running"
_FINISHED = "finished"


@dataclass
class RunContext:
    """Parameters of the run in progress."""

    params: Dict[str, Any] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)


class App:
    """Per-run container for the handler queue, outputs and module registry."""

    def __init__(
        self,
        name: str,
        program: Program,
        *,
        config: Optional[Dict[str, Any]] = None,
        policies: Optional[Iterable[AppPolicy]] = None,
        registry: Optional[ConstructorRegistry] = None,
    ) -> None:
        self.name = name
        self.program = program
        self.config: Dict[str, Any] = config or {}
        self.resources: Dict[str, Any] = {}
        self.outputs: Dict[str, Any] = {}
        self.modules: Dict[AppModuleDefinition[Any], Any] = {}
        self.resource_observers: List[ResourceObserver] = []
        self.handlers = HandlerQueue()
        self.policies: List[AppPolicy] = (
            list(policies) if policies is not None else [settings_tag_policy()]
        )
        self.last_run: Optional[DrainResult] = None
        self._registry = registry or constructor_registry
        self._run: Optional[RunContext] = None
        self._state = _IDLE

    @property
    def run(self) -> RunContext:
        """Run-scoped parameters; only readable while ``run_program`` is active."""
        if self._run is None:
            raise RunNotActiveError(
                "Run parameters are only available while the program runs",
                {"app": self.name},
            )
        return self._run

    async def run_program(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run the program, drain the recorded handlers and return the outputs."""
        if self._state != _IDLE:
            raise ProgramStateError(
                "App program can only run once", {"app": self.name, "state": self._state}
            )
        self._state = _RUNNING
        self._run = RunContext(params=dict(params or {}))
        collector = ResultCollector(self.name)
        started = time.monotonic()

        with bound_contextvars(app=self.name):
            try:
                resources = self.program(self)
                if inspect.isawaitable(resources):
                    resources = await resources
                if resources:
                    self.resources.update(resources)

                for policy in self.policies:
                    policy(self)

                logger.info("drain_started", queued=len(self.handlers))
                await ExecutionEngine(self.handlers).drain(collector)
            finally:
                summary = collector.finalize(time.monotonic() - started)
                self.last_run = summary
                self.handlers.clear()
                self._run = None
                self._state = _FINISHED

            logger.info(
                "drain_completed",
                resources=len(summary.resources_created),
                handlers=len(summary.handlers_run),
                duration_seconds=round(summary.duration_seconds, 3),
            )
        return self.outputs

    def on_resource(self, observer: ResourceObserver) -> None:
        """Register a callback invoked with every constructed instance."""
        self.resource_observers.append(observer)

    def add_resource(
        self,
        constructor: Union[ResourceConstructor, str],
        *,
        name: str,
        config: Optional[Dict[str, Any]] = None,
        opts: Optional[Dict[str, Any]] = None,
    ) -> AppResource[Any]:
        """
        Declare a resource without constructing it.

        The constructor is invoked during the drain with the config as it
        stands at that moment, so later code may still override fields
        through ``resource.config``.
        """
        self._ensure_recording()
        ctor = self._registry.resolve(constructor)
        record = config if config is not None else {}

        fields = declared_fields(ctor)
        if fields is not None:
            unknown = sorted(set(record) - fields)
            if unknown:
                raise ConfigShapeError(
                    f"Resource '{name}' config has unknown fields",
                    {"resource": name, "fields": unknown},
                )

        resource: AppResource[Any] = AppResource(name, ctor, record, dict(opts or {}), fields)
        self.handlers.append(
            QueuedHandler(
                label=name,
                kind="resource",
                run=functools.partial(resource.construct, self.resource_observers),
            )
        )
        logger.debug("resource_enqueued", resource=name, type=resource.type, position=len(self.handlers))
        return resource

    def add_handler(
        self, handler: Callable[[], Union[T, Awaitable[T]]], *, name: Optional[str] = None
    ) -> Output[T]:
        """Schedule ``handler`` for the drain; its result becomes an Output."""
        self._ensure_recording()
        label = name or getattr(handler, "__name__", "handler")
        output: Output[T] = Output(label=label)

        async def run() -> None:
            try:
                result = handler()
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                error = HandlerExecutionError(
                    f"Handler '{label}' failed",
                    {"handler": label, "error": str(exc)},
                    original=exc,
                )
                output.reject(error)
                raise error from exc
            output.resolve(result)

        self.handlers.append(QueuedHandler(label=label, kind="handler", run=run))
        logger.debug("handler_enqueued", handler=label, position=len(self.handlers))
        return output

    def add_output(self, name: str, value: Any) -> None:
        self.outputs[name] = value

    def add_outputs(self, outputs: Mapping[str, Any]) -> None:
        self.outputs.update(outputs)

    @overload
    def add_module(self, definition: AppModuleDefinition[TModule]) -> TModule:
        ...

    @overload
    def add_module(self, definition: AppModuleDefinition[TModule], config: Any) -> TModule:
        ...

    def add_module(self, definition: AppModuleDefinition[TModule], config: Any = None) -> TModule:
        """Run a module factory once and register its result for ``get_module``."""
        self._ensure_recording()
        if definition in self.modules:
            raise ModuleAlreadyRegisteredError(
                f'Module "{definition.name}" is already present in the "{self.name}" application',
                {"module": definition.name, "app": self.name},
            )

        try:
            created = definition.run(self, config)
        except StackLayerError:
            raise
        except Exception as exc:
            raise ModuleRunError(
                f'Module "{definition.name}" failed to run',
                {"module": definition.name, "app": self.name, "error": str(exc)},
            ) from exc

        self.modules[definition] = created
        logger.debug("module_registered", module=definition.name)
        return created

    @overload
    def get_module(self, definition: AppModuleDefinition[TModule]) -> TModule:
        ...

    @overload
    def get_module(
        self, definition: AppModuleDefinition[TModule], *, optional: bool
    ) -> Optional[TModule]:
        ...

    def get_module(
        self, definition: AppModuleDefinition[TModule], *, optional: bool = False
    ) -> Optional[TModule]:
        """Look up a registered module by its definition."""
        if definition not in self.modules:
            if optional:
                return None
            raise ModuleNotFoundInAppError(
                f'Module "{definition.name}" not found in "{self.name}" app',
                {"module": definition.name, "app": self.name},
            )
        return self.modules[definition]

    def get_input(self, value: AppInput[T]) -> T:
        return get_app_input(self, value)

    def _ensure_recording(self) -> None:
        if self._state == _FINISHED:
            raise ProgramStateError(
                "App has already run; nothing more can be declared", {"app": self.name}
            )


def create_app(
    *,
    name: str,
    program: Program,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[Union[str, Path]] = None,
    policies: Optional[Iterable[AppPolicy]] = None,
    registry: Optional[ConstructorRegistry] = None,
) -> App:
    """
    Create an App for a single program run.

    Args:
        name: App name used in logs and error messages
        program: Function declaring the resource graph
        config: App config record; when omitted it is loaded from
            ``config_path``, STACKLAYER_CONFIG_PATH or the default locations
        config_path: YAML app config file (see config.loader search order)
        policies: Cross-cutting callbacks applied before the drain;
            defaults to the settings-driven tagging policy
        registry: Registry used to look up constructors given by name
    """
    if config is None:
        config = load_app_config(config_path)
    return App(name, program, config=config, policies=policies, registry=registry)
