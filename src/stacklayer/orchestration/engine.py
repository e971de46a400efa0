"""Execution engine that drains recorded handlers."""

import structlog

from stacklayer.orchestration.registry import HandlerQueue
from stacklayer.orchestration.results import ResultCollector

logger = structlog.get_logger()


class ExecutionEngine:
    """Runs queued handlers one at a time, strictly in recording order."""

    def __init__(self, queue: HandlerQueue) -> None:
        self._queue = queue

    async def drain(self, collector: ResultCollector) -> int:
        """
        Await every queued handler in FIFO order, returning the number run.

        Handlers appended while the drain is in progress run after the
        current tail. The first failure is recorded and re-raised, leaving
        the remaining handlers unexecuted.
        """
        step = 0
        while step < len(self._queue):
            handler = self._queue[step]
            step += 1

            logger.debug(
                "handler_started",
                step=step,
                queued=len(self._queue),
                handler=handler.label,
                kind=handler.kind,
            )
            try:
                await handler.run()
            except Exception as e:
                collector.record_error(handler, e)
                logger.error(
                    "handler_failed",
                    step=step,
                    handler=handler.label,
                    kind=handler.kind,
                    error=str(e),
                    skipped=len(self._queue) - step,
                )
                raise
            collector.record(handler)

        return step
