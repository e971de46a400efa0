"""Result types for a program drain."""

from dataclasses import dataclass, field
from typing import List, Optional

from stacklayer.orchestration.registry import QueuedHandler


@dataclass
class DrainResult:
    """Summary of one drain pass over the handler queue."""

    app_name: str
    resources_created: List[str] = field(default_factory=list)
    handlers_run: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    failed: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def total_steps(self) -> int:
        """Number of queued steps that completed."""
        return len(self.resources_created) + len(self.handlers_run)

    @property
    def success(self) -> bool:
        """Whether the drain ran to completion."""
        return self.failed is None


class ResultCollector:
    """Aggregates step outcomes while the queue drains."""

    def __init__(self, app_name: str) -> None:
        self._result = DrainResult(app_name=app_name)

    def record(self, handler: QueuedHandler) -> None:
        """Record a completed step."""
        if handler.kind == "resource":
            self._result.resources_created.append(handler.label)
        else:
            self._result.handlers_run.append(handler.label)

    def record_error(self, handler: QueuedHandler, error: Exception) -> None:
        """Record the step that aborted the drain."""
        self._result.failed = handler.label
        self._result.errors.append(f"{handler.kind.capitalize()} '{handler.label}' failed: {error}")

    def finalize(self, duration: float) -> DrainResult:
        """Return the final result with duration set."""
        self._result.duration_seconds = duration
        return self._result
