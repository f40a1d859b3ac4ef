"""
Parallel wave executor.

This module drives a scheduled DependencyGraph: waves run strictly in
order, tasks within a wave run concurrently under a semaphore, and tasks
whose dependencies failed are skipped instead of run. All status changes
flow through a StatusCoordinator so the graph has a single writer.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from dagwave.core.config import get_settings
from dagwave.execution.coordinator import StatusCoordinator, StatusUpdate
from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.models import ExecutionWave, TaskResult, TaskStatus, WaveStatus
from dagwave.render.visualize import render_progress

# =============================================================================
# TYPES
# =============================================================================


TaskRunner = Callable[[str], Awaitable[Any]]
"""Runs one task by ID; raising an exception marks the task failed."""

ProgressCallback = Callable[[int, str, TaskStatus, str], None]
"""Receives (wave number, task ID, new status, progress line)."""

# Same bounds as Settings.dagwave_max_parallel
MIN_PARALLEL = 1
MAX_PARALLEL = 64


class WaveExecutionResult:
    """Result of executing a full wave of tasks."""

    def __init__(
        self,
        wave_number: int,
        results: dict[str, TaskResult],
        status: WaveStatus,
        duration_ms: int = 0,
    ):
        self.wave_number = wave_number
        self.results = results
        self.status = status
        self.duration_ms = duration_ms

    @property
    def completed_tasks(self) -> list[str]:
        """Get IDs of successfully completed tasks."""
        return sorted(t for t, r in self.results.items() if r.success)

    @property
    def failed_tasks(self) -> list[str]:
        """Get IDs of tasks that ran and failed."""
        return sorted(t for t, r in self.results.items() if not r.success and not r.skipped)

    @property
    def skipped_tasks(self) -> list[str]:
        return sorted(t for t, r in self.results.items() if r.skipped)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "wave_number": self.wave_number,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "results": {t: r.model_dump() for t, r in self.results.items()},
            "completed_tasks": self.completed_tasks,
            "failed_tasks": self.failed_tasks,
            "skipped_tasks": self.skipped_tasks,
        }


# =============================================================================
# PARALLEL EXECUTOR
# =============================================================================


class ParallelExecutor:
    """
    Execute a dependency graph wave by wave.

    Every task of wave N settles before wave N + 1 starts. Inside a wave
    tasks have no ordering guarantee and run concurrently, bounded by
    ``max_parallel``.

    Example:
        >>> async def run_task(task_id: str) -> None:
        ...     ...
        >>> executor = ParallelExecutor(graph, run_task, max_parallel=2)
        >>> results = await executor.execute_waves()
        >>> results[0].status
        <WaveStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        graph: DependencyGraph,
        runner: TaskRunner,
        max_parallel: int | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        """
        Initialize parallel executor.

        Args:
            graph: Graph to execute. Waves are computed on first use if needed.
            runner: Async callable that runs a single task.
            max_parallel: Concurrency limit, 1 to 64 (default ``DAGWAVE_MAX_PARALLEL``).
            progress_callback: Optional callback for status changes.

        Raises:
            ValueError: If max_parallel is outside 1..64
        """
        if max_parallel is None:
            max_parallel = get_settings().dagwave_max_parallel
        elif not MIN_PARALLEL <= max_parallel <= MAX_PARALLEL:
            raise ValueError(
                f"max_parallel must be between {MIN_PARALLEL} and {MAX_PARALLEL}, "
                f"got {max_parallel}"
            )

        self.graph = graph
        self.runner = runner
        self.max_parallel = max_parallel
        self.progress_callback = progress_callback
        self._failed: dict[str, str] = {}
        self._skipped: dict[str, str] = {}

    @property
    def failed_tasks(self) -> dict[str, str]:
        """Task ID -> error message for tasks that failed."""
        return dict(self._failed)

    @property
    def skipped_tasks(self) -> dict[str, str]:
        """Task ID -> skip reason for tasks not run."""
        return dict(self._skipped)

    def dry_run(self) -> list[ExecutionWave]:
        """Return the planned waves without running anything."""
        if not self.graph.is_scheduled:
            self.graph.compute_waves()
        return self.graph.waves

    async def execute_waves(self, start_from: str | None = None) -> list[WaveExecutionResult]:
        """
        Execute all waves in order.

        Args:
            start_from: Resume from the wave containing this task ID.
                Unknown IDs execute nothing.

        Returns:
            One WaveExecutionResult per executed wave.
        """
        waves = self.dry_run()
        if start_from is not None:
            waves = self.graph.get_waves_from_task(start_from)
            if not waves:
                logger.warning(f"Task {start_from} is not scheduled; nothing to execute")

        coordinator = StatusCoordinator(self.graph)
        coordinator.add_listener(self._report_progress)
        coordinator.start()

        results: list[WaveExecutionResult] = []
        try:
            for wave in waves:
                results.append(await self._execute_wave(wave, coordinator))
        finally:
            await coordinator.close()

        logger.info(
            f"Executed {len(results)} waves: {len(self._failed)} failed, "
            f"{len(self._skipped)} skipped"
        )
        return results

    async def _execute_wave(
        self,
        wave: ExecutionWave,
        coordinator: StatusCoordinator,
    ) -> WaveExecutionResult:
        """Execute all tasks in a single wave concurrently."""
        started = time.monotonic()
        logger.info(f"Executing wave {wave.number} with {wave.size} tasks")

        to_run, skipped = self._filter_tasks_to_run(wave.task_ids)
        for task_id, reason in skipped.items():
            result = TaskResult.skip(task_id, reason)
            await coordinator.submit(
                StatusUpdate(task_id=task_id, status=TaskStatus.SKIPPED, result=result)
            )

        semaphore = asyncio.Semaphore(self.max_parallel)
        await asyncio.gather(
            *(self._execute_task(task_id, semaphore, coordinator) for task_id in to_run)
        )
        await coordinator.flush()

        status = self.graph.get_wave_status(wave.number) or WaveStatus.PENDING
        wave_result = WaveExecutionResult(
            wave_number=wave.number,
            results={t: wave.results[t] for t in wave.task_ids if t in wave.results},
            status=status,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        logger.info(
            f"Wave {wave.number} complete: "
            f"{len(wave_result.completed_tasks)} succeeded, "
            f"{len(wave_result.failed_tasks)} failed, "
            f"{len(wave_result.skipped_tasks)} skipped"
        )
        return wave_result

    def _filter_tasks_to_run(self, task_ids: tuple[str, ...]) -> tuple[list[str], dict[str, str]]:
        """Split a wave into runnable tasks and tasks blocked by a failure."""
        to_run: list[str] = []
        skipped: dict[str, str] = {}

        for task_id in task_ids:
            node = self.graph.nodes[task_id]
            blocker = next((d for d in node.dependencies if self._is_blocked_by(d)), None)
            if blocker is None:
                to_run.append(task_id)
            else:
                reason = f"dependency {blocker} failed"
                skipped[task_id] = reason
                self._skipped[task_id] = reason
                logger.warning(f"Skipping task {task_id}: {reason}")

        return to_run, skipped

    def _is_blocked_by(self, dependency_id: str) -> bool:
        """Check a dependency failed or was skipped, in this run or a previous one."""
        if dependency_id in self._failed or dependency_id in self._skipped:
            return True
        return self.graph.nodes[dependency_id].status in (TaskStatus.FAILED, TaskStatus.SKIPPED)

    async def _execute_task(
        self,
        task_id: str,
        semaphore: asyncio.Semaphore,
        coordinator: StatusCoordinator,
    ) -> None:
        """Run a single task and publish its status changes."""
        async with semaphore:
            await coordinator.submit(StatusUpdate(task_id=task_id, status=TaskStatus.RUNNING))
            started = time.monotonic()

            try:
                await self.runner(task_id)
            except Exception as e:
                error = str(e) or type(e).__name__
                self._failed[task_id] = error
                logger.error(f"Task {task_id} failed: {error}")
                result = TaskResult(
                    task_id=task_id,
                    success=False,
                    error=error,
                    duration_ms=int((time.monotonic() - started) * 1000),
                )
                status = TaskStatus.FAILED
            else:
                result = TaskResult(
                    task_id=task_id,
                    success=True,
                    duration_ms=int((time.monotonic() - started) * 1000),
                )
                status = TaskStatus.COMPLETED

            await coordinator.submit(StatusUpdate(task_id=task_id, status=status, result=result))

    def _report_progress(self, update: StatusUpdate) -> None:
        if self.progress_callback is None:
            return
        wave_number = self.graph.get_wave_for_task(update.task_id)
        line = render_progress(self.graph, wave_number)
        self.progress_callback(wave_number, update.task_id, update.status, line)
