"""Orchestration package: FIFO drain of deferred program steps."""

from stacklayer.orchestration.engine import ExecutionEngine
from stacklayer.orchestration.registry import HandlerQueue, QueuedHandler
from stacklayer.orchestration.results import DrainResult, ResultCollector

__all__ = [
    "DrainResult",
    "ExecutionEngine",
    "HandlerQueue",
    "QueuedHandler",
    "ResultCollector",
]
