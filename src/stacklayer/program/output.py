"""
Single-assignment deferred values.

An Output starts pending and is settled exactly once, either resolved with a
value or rejected with an exception. Transforms attached with ``map`` run in
attachment order when the Output settles; a transform that returns another
Output is flattened into the child it produces.

Propagation is synchronous and needs no event loop. Awaiting an Output is
only needed by code running inside the drain (handlers, constructors).
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generator, Generic, List, Optional, Tuple, TypeVar

import structlog

from stacklayer.core.errors import AlreadyResolvedError, UnresolvedOutputError

logger = structlog.get_logger()

T = TypeVar("T")
U = TypeVar("U")

_PENDING = "pending"
_RESOLVED = "resolved"
_REJECTED = "rejected"

OnValue = Callable[[Any], None]
OnError = Callable[[BaseException], None]


class Output(Generic[T]):
    """A value that becomes known during the drain pass."""

    def __init__(self, label: str | None = None) -> None:
        self.label = label
        self._state = _PENDING
        self._claimed = False
        self._value: Any = None
        self._error: BaseException | None = None
        self._callbacks: List[Tuple[OnValue, OnError]] = []

    @classmethod
    def of(cls, value: Any, label: str | None = None) -> "Output[Any]":
        """Lift a plain value into a resolved Output; Outputs pass through."""
        if isinstance(value, Output):
            return value
        output: Output[Any] = cls(label)
        output.resolve(value)
        return output

    @classmethod
    def all(cls, *values: Any) -> "Output[List[Any]]":
        """Combine values into one Output of a list, in argument order."""
        combined: Output[List[Any]] = cls("all")
        outputs = [cls.of(value) for value in values]
        if not outputs:
            combined.resolve([])
            return combined

        collected: List[Any] = [None] * len(outputs)
        remaining = [len(outputs)]

        def collect(index: int) -> OnValue:
            def on_value(value: Any) -> None:
                collected[index] = value
                remaining[0] -= 1
                if remaining[0] == 0:
                    combined.resolve(list(collected))

            return on_value

        def on_error(exc: BaseException) -> None:
            if not combined._claimed:
                combined.reject(exc)

        for index, output in enumerate(outputs):
            output._subscribe(collect(index), on_error)
        return combined

    @classmethod
    def deep(cls, value: Any) -> "Output[Any]":
        """
        Lift a structure into one Output of its fully resolved form.

        Outputs nested in dicts, lists and tuples are awaited and substituted,
        including Outputs whose value is itself such a structure. The result
        is a rebuilt copy; plain leaves are carried over as they are.
        """
        if isinstance(value, Output):
            return value.map(cls.deep)
        if isinstance(value, dict):
            keys = list(value)
            return cls.all(*[cls.deep(value[key]) for key in keys]).map(
                lambda items: dict(zip(keys, items))
            )
        if isinstance(value, list):
            return cls.all(*[cls.deep(item) for item in value])
        if isinstance(value, tuple):
            return cls.all(*[cls.deep(item) for item in value]).map(tuple)
        return cls.of(value)

    @property
    def is_pending(self) -> bool:
        return self._state == _PENDING

    @property
    def is_resolved(self) -> bool:
        return self._state == _RESOLVED

    @property
    def is_rejected(self) -> bool:
        return self._state == _REJECTED

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def get(self) -> T:
        """Read the value synchronously; only valid once resolved."""
        if self._state == _RESOLVED:
            return self._value
        if self._state == _REJECTED and self._error is not None:
            raise self._error
        raise UnresolvedOutputError(
            "Output read before it was resolved", {"output": self._describe()}
        )

    def resolve(self, value: Any) -> None:
        """Settle with a value. An Output value is adopted instead of nested."""
        self._claim()
        if isinstance(value, Output):
            value._subscribe(self._settle_value, self._settle_error)
        else:
            self._settle_value(value)

    def reject(self, error: BaseException) -> None:
        """Settle with an error; every dependent transform is rejected too."""
        self._claim()
        self._settle_error(error)

    def map(self, transform: Callable[[T], Any]) -> "Output[Any]":
        """Return a child Output holding ``transform(value)``."""
        child: Output[Any] = Output(self.label)

        def on_value(value: Any) -> None:
            try:
                result = transform(value)
            except Exception as exc:
                logger.debug("output_transform_failed", output=self._describe(), error=str(exc))
                child.reject(exc)
                return
            child.resolve(result)

        self._subscribe(on_value, child.reject)
        return child

    def __await__(self) -> Generator[Any, None, T]:
        return self._wait().__await__()

    async def _wait(self) -> T:
        if self._state == _PENDING:
            future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

            def on_value(value: Any) -> None:
                if not future.done():
                    future.set_result(value)

            def on_error(exc: BaseException) -> None:
                if not future.done():
                    future.set_exception(exc)

            self._subscribe(on_value, on_error)
            return await future
        return self.get()

    def _claim(self) -> None:
        if self._claimed:
            raise AlreadyResolvedError(
                "Output was already resolved", {"output": self._describe()}
            )
        self._claimed = True

    def _subscribe(self, on_value: OnValue, on_error: OnError) -> None:
        if self._state == _RESOLVED:
            on_value(self._value)
        elif self._state == _REJECTED and self._error is not None:
            on_error(self._error)
        else:
            self._callbacks.append((on_value, on_error))

    def _settle_value(self, value: Any) -> None:
        self._state = _RESOLVED
        self._value = value
        callbacks, self._callbacks = self._callbacks, []
        for on_value, _ in callbacks:
            on_value(value)

    def _settle_error(self, error: BaseException) -> None:
        self._state = _REJECTED
        self._error = error
        callbacks, self._callbacks = self._callbacks, []
        for _, on_error in callbacks:
            on_error(error)

    def _describe(self) -> str:
        return self.label or "<anonymous>"

    def __repr__(self) -> str:
        if self._state == _RESOLVED:
            return f"Output({self._describe()}, resolved={self._value!r})"
        return f"Output({self._describe()}, {self._state})"


async def unwrap(value: Any) -> Any:
    """Deep-resolve Outputs nested in dicts, lists and tuples."""
    if isinstance(value, Output):
        return await unwrap(await value)
    if isinstance(value, dict):
        return {key: await unwrap(item) for key, item in value.items()}
    if isinstance(value, list):
        return [await unwrap(item) for item in value]
    if isinstance(value, tuple):
        return tuple([await unwrap(item) for item in value])
    return value
