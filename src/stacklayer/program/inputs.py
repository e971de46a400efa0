"""App parameters that are either a literal or computed from the app."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, TypeVar, Union

if TYPE_CHECKING:
    from stacklayer.program.app import App

T = TypeVar("T")

AppInput = Union[T, Callable[["App"], T]]


def get_app_input(app: "App", value: "AppInput[T]") -> T:
    """Call ``value`` with the app when it is callable, otherwise return it."""
    if callable(value):
        return value(app)
    return value
