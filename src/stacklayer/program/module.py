"""Reusable sub-graphs registered once per app."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from stacklayer.program.app import App

TModule = TypeVar("TModule")

ModuleFactory = Callable[["App", Any], TModule]


class AppModuleDefinition(Generic[TModule]):
    """
    A named module factory.

    Definitions are compared by identity: two definitions with the same name
    are different modules, and the registry never looks at the name.
    """

    def __init__(self, name: str, run: ModuleFactory[TModule]) -> None:
        if not name:
            raise ValueError("Module name is required")
        self.name = name
        self.run = run

    def __repr__(self) -> str:
        return f"AppModuleDefinition({self.name!r})"


def create_app_module(*, name: str, run: ModuleFactory[TModule]) -> AppModuleDefinition[TModule]:
    return AppModuleDefinition(name, run)


def app_module(name: str) -> Callable[[ModuleFactory[TModule]], AppModuleDefinition[TModule]]:
    """Decorator form of ``create_app_module``.

    Usage:
        @app_module("Storage")
        def storage(app, config):
            bucket = app.add_resource(bucket_ctor, name="files", config={...})
            return {"bucket_id": bucket.output.map(lambda b: b.id)}
    """

    def decorator(run: ModuleFactory[TModule]) -> AppModuleDefinition[TModule]:
        return AppModuleDefinition(name, run)

    return decorator
