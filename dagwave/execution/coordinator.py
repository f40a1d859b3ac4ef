"""Single-writer status coordinator.

The graph's status setter is not synchronized. Workers running tasks
concurrently therefore do not touch the graph directly: they submit
``StatusUpdate`` messages to the coordinator's queue, and one consumer
task applies them in arrival order. That consumer is the only writer.
"""

import asyncio
from collections.abc import Callable

from loguru import logger
from pydantic import BaseModel, ConfigDict

from dagwave.core.errors import CoordinatorClosedError, TaskNotFoundError
from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.models import TaskResult, TaskStatus


class StatusUpdate(BaseModel):
    """A status change published by a worker."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    status: TaskStatus
    result: TaskResult | None = None


StatusListener = Callable[[StatusUpdate], None]


class StatusCoordinator:
    """
    Own the graph's task statuses and apply updates one at a time.

    Example:
        >>> coordinator = StatusCoordinator(graph)
        >>> coordinator.start()
        >>> await coordinator.submit(StatusUpdate(task_id="T001", status=TaskStatus.RUNNING))
        >>> await coordinator.flush()
        >>> await coordinator.close()
    """

    def __init__(self, graph: DependencyGraph) -> None:
        self.graph = graph
        self._queue: asyncio.Queue[StatusUpdate | None] = asyncio.Queue()
        self._listeners: list[StatusListener] = []
        self._consumer: asyncio.Task[None] | None = None
        self._closed = False
        self.applied = 0

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def add_listener(self, listener: StatusListener) -> None:
        """Add a callback invoked after each applied update."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        """Remove a listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, update: StatusUpdate) -> None:
        for listener in self._listeners:
            try:
                listener(update)
            except Exception as e:
                logger.warning(f"Status listener error: {e}")

    async def submit(self, update: StatusUpdate) -> None:
        """
        Queue a status update for the consumer.

        The node set never changes after construction, so unknown IDs are
        rejected here, in the submitting worker.

        Raises:
            TaskNotFoundError: If the task is not in the graph.
            CoordinatorClosedError: If the coordinator was closed.
        """
        if self._closed:
            raise CoordinatorClosedError(f"cannot submit update for {update.task_id}: coordinator closed")
        if not self.graph.has_task(update.task_id):
            raise TaskNotFoundError(update.task_id, "submitting status")
        await self._queue.put(update)

    def _apply(self, update: StatusUpdate) -> None:
        if update.result is not None:
            self.graph.record_result(update.result)
            # Results decide completed/failed/skipped; an explicit status still wins
            if self.graph.nodes[update.task_id].status != update.status:
                self.graph.set_node_status(update.task_id, update.status)
        else:
            self.graph.set_node_status(update.task_id, update.status)
        self.applied += 1
        logger.debug(f"Task {update.task_id} -> {update.status.value}")
        self._emit(update)

    async def run(self) -> None:
        """Consume updates until ``close`` is called."""
        while True:
            update = await self._queue.get()
            try:
                if update is None:
                    return
                self._apply(update)
            finally:
                self._queue.task_done()

    def start(self) -> asyncio.Task[None]:
        """Start the consumer as a background task on the running loop."""
        if self._consumer is None:
            self._consumer = asyncio.create_task(self.run())
        return self._consumer

    async def flush(self) -> None:
        """Wait until every queued update has been applied."""
        await self._queue.join()

    async def close(self) -> None:
        """Apply outstanding updates, then stop the consumer."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)
        if self._consumer is not None:
            await self._consumer
