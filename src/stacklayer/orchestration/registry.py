"""Queued handler records and the FIFO queue the drain consumes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, List, Literal

HandlerKind = Literal["resource", "handler"]


@dataclass
class QueuedHandler:
    """One deferred step recorded during the program pass."""

    label: str
    kind: HandlerKind
    run: Callable[[], Awaitable[None]]


class HandlerQueue:
    """Append-only FIFO of deferred steps, in recording order."""

    def __init__(self) -> None:
        self._handlers: List[QueuedHandler] = []

    def append(self, handler: QueuedHandler) -> None:
        self._handlers.append(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def labels(self) -> List[str]:
        """List labels of queued steps in the order they will run."""
        return [handler.label for handler in self._handlers]

    def __getitem__(self, index: int) -> QueuedHandler:
        return self._handlers[index]

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[QueuedHandler]:
        return iter(self._handlers)
