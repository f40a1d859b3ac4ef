"""Integration tests for wave execution and the status coordinator."""

import asyncio

import pytest

from dagwave.core.config import clear_settings_cache
from dagwave.core.errors import CoordinatorClosedError, TaskNotFoundError
from dagwave.execution.coordinator import StatusCoordinator, StatusUpdate
from dagwave.execution.executor import ParallelExecutor
from dagwave.graph.builder import build_graph
from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.models import TaskResult, TaskStatus, WaveStatus


class RecordingRunner:
    """Task runner that records execution order and fails selected tasks."""

    def __init__(self, fail: set[str] | None = None, delay: float = 0.01):
        self.fail = fail or set()
        self.delay = delay
        self.started: list[str] = []
        self.finished: list[str] = []
        self.active = 0
        self.peak = 0

    async def __call__(self, task_id: str) -> None:
        self.started.append(task_id)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if task_id in self.fail:
                raise RuntimeError(f"{task_id} exploded")
        finally:
            self.active -= 1
            self.finished.append(task_id)


class TestStatusCoordinator:
    """Tests for the single-writer coordinator."""

    @pytest.mark.asyncio
    async def test_applies_updates_in_order(self, diamond_graph: DependencyGraph) -> None:
        coordinator = StatusCoordinator(diamond_graph)
        seen: list[tuple[str, TaskStatus]] = []
        coordinator.add_listener(lambda u: seen.append((u.task_id, u.status)))
        coordinator.start()

        await coordinator.submit(StatusUpdate(task_id="A", status=TaskStatus.RUNNING))
        await coordinator.submit(StatusUpdate(task_id="A", status=TaskStatus.COMPLETED))
        await coordinator.flush()

        assert diamond_graph.get_node("A").status == TaskStatus.COMPLETED
        assert seen == [("A", TaskStatus.RUNNING), ("A", TaskStatus.COMPLETED)]
        assert coordinator.applied == 2

        await coordinator.close()
        assert not coordinator.is_running

    @pytest.mark.asyncio
    async def test_concurrent_workers(self, sample_tasks: list) -> None:
        """Test many workers publishing at once all land in the graph."""
        graph = build_graph(sample_tasks)
        graph.compute_waves()
        coordinator = StatusCoordinator(graph)
        coordinator.start()

        async def worker(task_id: str) -> None:
            await coordinator.submit(StatusUpdate(task_id=task_id, status=TaskStatus.RUNNING))
            await asyncio.sleep(0)
            await coordinator.submit(
                StatusUpdate(
                    task_id=task_id,
                    status=TaskStatus.COMPLETED,
                    result=TaskResult(task_id=task_id, success=True),
                )
            )

        await asyncio.gather(*(worker(node.id) for node in graph))
        await coordinator.close()

        assert all(node.status == TaskStatus.COMPLETED for node in graph)
        assert all(wave.status == WaveStatus.COMPLETED for wave in graph.waves)
        assert coordinator.applied == 2 * graph.size

    @pytest.mark.asyncio
    async def test_rejects_unknown_task(self, diamond_graph: DependencyGraph) -> None:
        coordinator = StatusCoordinator(diamond_graph)

        with pytest.raises(TaskNotFoundError):
            await coordinator.submit(StatusUpdate(task_id="Z", status=TaskStatus.RUNNING))

    @pytest.mark.asyncio
    async def test_submit_after_close(self, diamond_graph: DependencyGraph) -> None:
        coordinator = StatusCoordinator(diamond_graph)
        coordinator.start()
        await coordinator.close()

        with pytest.raises(CoordinatorClosedError):
            await coordinator.submit(StatusUpdate(task_id="A", status=TaskStatus.RUNNING))

    @pytest.mark.asyncio
    async def test_listener_error_does_not_stop_consumer(
        self, diamond_graph: DependencyGraph
    ) -> None:
        coordinator = StatusCoordinator(diamond_graph)

        def broken(update: StatusUpdate) -> None:
            raise RuntimeError("listener failure")

        coordinator.add_listener(broken)
        coordinator.start()

        await coordinator.submit(StatusUpdate(task_id="A", status=TaskStatus.RUNNING))
        await coordinator.submit(StatusUpdate(task_id="B", status=TaskStatus.RUNNING))
        await coordinator.close()

        assert diamond_graph.get_node("B").status == TaskStatus.RUNNING

    @pytest.mark.asyncio
    async def test_removed_listener_not_called(self, diamond_graph: DependencyGraph) -> None:
        coordinator = StatusCoordinator(diamond_graph)
        seen: list[str] = []

        def listener(update: StatusUpdate) -> None:
            seen.append(update.task_id)

        coordinator.add_listener(listener)
        coordinator.start()

        await coordinator.submit(StatusUpdate(task_id="A", status=TaskStatus.RUNNING))
        await coordinator.flush()
        coordinator.remove_listener(listener)
        coordinator.remove_listener(listener)
        await coordinator.submit(StatusUpdate(task_id="B", status=TaskStatus.RUNNING))
        await coordinator.close()

        assert seen == ["A"]
        assert diamond_graph.get_node("B").status == TaskStatus.RUNNING


class TestParallelExecutor:
    """Tests for ParallelExecutor."""

    @pytest.mark.asyncio
    async def test_all_waves_succeed(self, diamond_graph: DependencyGraph) -> None:
        runner = RecordingRunner()
        executor = ParallelExecutor(diamond_graph, runner, max_parallel=4)

        results = await executor.execute_waves()

        assert [r.wave_number for r in results] == [1, 2, 3]
        assert all(r.status == WaveStatus.COMPLETED for r in results)
        assert results[1].completed_tasks == ["B", "C"]
        assert all(node.status == TaskStatus.COMPLETED for node in diamond_graph)
        assert executor.failed_tasks == {}

    @pytest.mark.asyncio
    async def test_waves_run_in_order(self, sample_tasks: list) -> None:
        """Test every dependency finishes before its dependent starts."""
        graph = build_graph(sample_tasks)
        runner = RecordingRunner()
        executor = ParallelExecutor(graph, runner)

        await executor.execute_waves()

        for node in graph:
            for dep in node.dependencies:
                assert runner.finished.index(dep) < runner.started.index(node.id)

    @pytest.mark.asyncio
    async def test_concurrency_limit(self) -> None:
        graph = build_graph([(f"T{i}", []) for i in range(8)])
        runner = RecordingRunner()
        executor = ParallelExecutor(graph, runner, max_parallel=3)

        await executor.execute_waves()

        assert runner.peak <= 3
        assert len(runner.finished) == 8

    @pytest.mark.asyncio
    async def test_failure_skips_dependents(self, diamond_graph: DependencyGraph) -> None:
        runner = RecordingRunner(fail={"B"})
        executor = ParallelExecutor(diamond_graph, runner)

        results = await executor.execute_waves()

        assert results[1].status == WaveStatus.PARTIAL_FAILED
        assert results[1].failed_tasks == ["B"]
        assert results[2].skipped_tasks == ["D"]
        assert "D" not in runner.started
        assert diamond_graph.get_node("D").status == TaskStatus.SKIPPED
        assert executor.failed_tasks == {"B": "B exploded"}
        assert executor.skipped_tasks == {"D": "dependency B failed"}
        assert diamond_graph.get_wave(2).results["B"].error == "B exploded"

    @pytest.mark.asyncio
    async def test_resume_from_task(self, diamond_graph: DependencyGraph) -> None:
        """Test execution can resume from the wave containing a task."""
        diamond_graph.set_node_status("A", TaskStatus.COMPLETED)
        runner = RecordingRunner()
        executor = ParallelExecutor(diamond_graph, runner)

        results = await executor.execute_waves(start_from="C")

        assert [r.wave_number for r in results] == [2, 3]
        assert "A" not in runner.started

    @pytest.mark.asyncio
    async def test_resume_skips_dependents_of_earlier_failure(self) -> None:
        """Test a failure recorded before resuming still blocks dependents."""
        graph = build_graph([("A", []), ("B", ["A"]), ("C", ["B"])])
        graph.compute_waves()
        graph.set_node_status("A", TaskStatus.COMPLETED)
        graph.set_node_status("B", TaskStatus.FAILED)
        runner = RecordingRunner()
        executor = ParallelExecutor(graph, runner)

        results = await executor.execute_waves(start_from="C")

        assert runner.started == []
        assert results[0].skipped_tasks == ["C"]
        assert graph.get_node("C").status == TaskStatus.SKIPPED
        assert executor.skipped_tasks == {"C": "dependency B failed"}

    @pytest.mark.asyncio
    async def test_resume_skips_dependents_of_earlier_skip(self) -> None:
        graph = build_graph([("A", []), ("B", ["A"]), ("C", ["B"])])
        graph.compute_waves()
        graph.set_node_status("B", TaskStatus.SKIPPED)
        runner = RecordingRunner()
        executor = ParallelExecutor(graph, runner)

        await executor.execute_waves(start_from="C")

        assert "C" not in runner.started
        assert graph.get_node("C").status == TaskStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_resume_unknown_task(self, diamond_graph: DependencyGraph) -> None:
        executor = ParallelExecutor(diamond_graph, RecordingRunner())

        assert await executor.execute_waves(start_from="nope") == []

    @pytest.mark.asyncio
    async def test_progress_callback(self, diamond_graph: DependencyGraph) -> None:
        lines: list[str] = []
        executor = ParallelExecutor(
            diamond_graph,
            RecordingRunner(),
            max_parallel=1,
            progress_callback=lambda wave, task, status, line: lines.append(line),
        )

        await executor.execute_waves()

        assert lines[0] == "Wave 1: A *"
        assert lines[1] == "Wave 1: A +"
        assert lines[-1] == "Wave 3: D +"

    @pytest.mark.asyncio
    async def test_computes_waves_when_needed(self, diamond_tasks: list) -> None:
        graph = build_graph(diamond_tasks)
        executor = ParallelExecutor(graph, RecordingRunner())

        planned = executor.dry_run()

        assert [w.task_ids for w in planned] == [("A",), ("B", "C"), ("D",)]
        assert all(node.status == TaskStatus.PENDING for node in graph)

    @pytest.mark.asyncio
    async def test_empty_graph(self) -> None:
        executor = ParallelExecutor(build_graph([]), RecordingRunner())

        assert await executor.execute_waves() == []

    def test_default_max_parallel(self, mock_settings, monkeypatch, diamond_graph) -> None:
        monkeypatch.setenv("DAGWAVE_MAX_PARALLEL", "6")
        clear_settings_cache()

        executor = ParallelExecutor(diamond_graph, RecordingRunner())

        assert executor.max_parallel == 6

    @pytest.mark.parametrize("max_parallel", [0, -1, 65])
    def test_max_parallel_out_of_range(self, diamond_graph, max_parallel: int) -> None:
        with pytest.raises(ValueError, match="between 1 and 64"):
            ParallelExecutor(diamond_graph, RecordingRunner(), max_parallel=max_parallel)

    def test_max_parallel_bounds_accepted(self, diamond_graph) -> None:
        assert ParallelExecutor(diamond_graph, RecordingRunner(), max_parallel=1).max_parallel == 1
        assert ParallelExecutor(diamond_graph, RecordingRunner(), max_parallel=64).max_parallel == 64


class TestWaveExecutionResult:
    """Tests for per-wave execution results."""

    @pytest.mark.asyncio
    async def test_to_dict(self, diamond_graph: DependencyGraph) -> None:
        executor = ParallelExecutor(diamond_graph, RecordingRunner(fail={"B"}))

        results = await executor.execute_waves()
        data = results[1].to_dict()

        assert data["wave_number"] == 2
        assert data["status"] == "partial_failed"
        assert data["completed_tasks"] == ["C"]
        assert data["failed_tasks"] == ["B"]
        assert data["skipped_tasks"] == []
        assert data["results"]["B"]["error"] == "B exploded"
        assert data["duration_ms"] >= 0
        assert results[2].to_dict()["results"]["D"]["skip_reason"] == "dependency B failed"
