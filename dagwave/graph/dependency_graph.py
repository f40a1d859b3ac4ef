"""The dependency graph: nodes, roots, computed waves and task status.

``DependencyGraph`` exclusively owns its ``TaskNode`` objects. Dependents
are derived from dependencies once, when the graph is created, so the two
relations cannot drift apart. Depths and waves are computed on demand by
``compute_waves`` and cached until it is called again; afterwards only task
status changes, and only through ``set_node_status`` / ``record_result``.

Status writes are not synchronized. Concurrent workers should publish
updates through a single owner such as
``dagwave.execution.coordinator.StatusCoordinator``.
"""

from collections.abc import Iterable, Iterator
from typing import Any

from loguru import logger

from dagwave.core.errors import (
    GraphValidationError,
    TaskNotFoundError,
    Violation,
    WaveComputationError,
)
from dagwave.graph.depth import compute_depths
from dagwave.graph.models import (
    ExecutionWave,
    TaskNode,
    TaskResult,
    TaskStatus,
    WaveStats,
    WaveStatus,
)
from dagwave.graph.validator import collect_violations
from dagwave.graph.waves import compute_wave_stats, derive_wave_status, partition_waves


class DependencyGraph:
    """
    Directed acyclic graph of task dependencies.

    Graphs are normally created with ``dagwave.graph.builder.build_graph``,
    which validates the input first.

    Example:
        >>> graph = build_graph([("A", []), ("B", ["A"]), ("C", ["A"]), ("D", ["B", "C"])])
        >>> [w.task_ids for w in graph.compute_waves()]
        [('A',), ('B', 'C'), ('D',)]
        >>> graph.get_wave_for_task("D")
        3
    """

    def __init__(self, nodes: Iterable[TaskNode] = ()) -> None:
        """
        Initialize the graph from nodes whose dependencies are set.

        Args:
            nodes: Task nodes in input order. Their ``dependents`` are
                recomputed here as the transpose of ``dependencies``. If an
                ID repeats, the first node is kept and the repeat is
                reported by ``validate``.
        """
        self._nodes: dict[str, TaskNode] = {}
        self._task_ids: list[str] = []
        self._roots: list[str] = []
        self._waves: list[ExecutionWave] = []
        self._wave_of: dict[str, int] = {}

        for node in nodes:
            self._task_ids.append(node.id)
            if node.id in self._nodes:
                logger.warning(f"Duplicate task ID {node.id}: keeping the first definition")
                continue
            self._nodes[node.id] = node

        self._wire_dependents()
        self._roots = [task_id for task_id, node in self._nodes.items() if node.is_root]

    def _wire_dependents(self) -> None:
        """Derive every node's dependents from the forward dependencies."""
        dependents: dict[str, list[str]] = {task_id: [] for task_id in self._nodes}
        for task_id, node in self._nodes.items():
            for dep in node.dependencies:
                if dep in dependents:
                    dependents[dep].append(task_id)
        for task_id, node in self._nodes.items():
            node._attach_dependents(tuple(dependents[task_id]))

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def nodes(self) -> dict[str, TaskNode]:
        """Task ID -> node mapping, in input order."""
        return self._nodes

    @property
    def roots(self) -> list[str]:
        """IDs of tasks with no dependencies, in input order."""
        return list(self._roots)

    @property
    def waves(self) -> list[ExecutionWave]:
        """Computed waves; empty until ``compute_waves`` runs."""
        return self._waves

    @property
    def size(self) -> int:
        return len(self._nodes)

    @property
    def is_scheduled(self) -> bool:
        """True once waves have been computed for a non-empty graph."""
        return bool(self._waves)

    def get_node(self, task_id: str) -> TaskNode | None:
        """Get a node by ID, or None if not found."""
        return self._nodes.get(task_id)

    def has_task(self, task_id: str) -> bool:
        return task_id in self._nodes

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[TaskNode]:
        return iter(self._nodes.values())

    def __repr__(self) -> str:
        return f"DependencyGraph(tasks={self.size}, roots={len(self._roots)}, waves={len(self._waves)})"

    def _require(self, task_id: str, action: str) -> TaskNode:
        node = self._nodes.get(task_id)
        if node is None:
            raise TaskNotFoundError(task_id, action)
        return node

    # =========================================================================
    # VALIDATION & SCHEDULING
    # =========================================================================

    def find_violations(self) -> list[Violation]:
        """Re-run structural and cycle checks over every node given to the graph."""
        return collect_violations(
            self._task_ids,
            {task_id: node.dependencies for task_id, node in self._nodes.items()},
        )

    def validate(self) -> None:
        """
        Validate the graph.

        Raises:
            GraphValidationError: If any violation is found.
        """
        violations = self.find_violations()
        if violations:
            raise GraphValidationError(violations)

    def compute_waves(self) -> list[ExecutionWave]:
        """
        Compute execution waves from task dependencies.

        Re-validates, assigns every node its longest-path depth, then groups
        nodes by depth. Wave N contains the tasks whose longest dependency
        chain has N - 1 edges. The result replaces any previously computed
        waves, including their recorded results.

        Returns:
            The computed waves (also cached on the graph).

        Raises:
            WaveComputationError: If the graph fails validation.
        """
        try:
            self.validate()
        except GraphValidationError as e:
            raise WaveComputationError(e.violations) from e

        depths = compute_depths(self._nodes, self._roots)
        for task_id, node in self._nodes.items():
            node._assign_depth(depths[task_id])

        self._waves = partition_waves(depths)
        self._wave_of = {
            task_id: wave.number for wave in self._waves for task_id in wave.task_ids
        }
        for wave in self._waves:
            wave.status = self._derive_status(wave)

        logger.info(f"Scheduled {self.size} tasks into {len(self._waves)} waves")
        return self._waves

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_wave_for_task(self, task_id: str) -> int:
        """Return the 1-based wave number containing the task, or 0."""
        return self._wave_of.get(task_id, 0)

    def get_waves_from_task(self, task_id: str) -> list[ExecutionWave]:
        """
        Return every wave from the one containing ``task_id`` onwards.

        Used to resume execution after a partial run. Returns an empty list
        if the task is unknown or waves have not been computed.
        """
        start = self.get_wave_for_task(task_id)
        if start == 0:
            return []
        return self._waves[start - 1:]

    def get_wave(self, number: int) -> ExecutionWave | None:
        """Get a wave by its 1-based number, or None."""
        if 1 <= number <= len(self._waves):
            return self._waves[number - 1]
        return None

    def get_wave_stats(self) -> WaveStats:
        """Summary statistics about the computed waves."""
        return compute_wave_stats(self._waves)

    def dependencies_met(self, task_id: str) -> bool:
        """
        Check whether every dependency of a task has completed.

        Raises:
            TaskNotFoundError: If the task is not in the graph.
        """
        node = self._require(task_id, "checking dependencies")
        return all(
            self._nodes[dep].status == TaskStatus.COMPLETED for dep in node.dependencies
        )

    def get_ready_tasks(self) -> list[str]:
        """Sorted IDs of pending tasks whose dependencies have all completed."""
        return sorted(
            task_id
            for task_id, node in self._nodes.items()
            if node.status == TaskStatus.PENDING and self.dependencies_met(task_id)
        )

    def get_transitive_dependents(self, task_id: str) -> list[str]:
        """
        Get every task downstream of the given one.

        Returns:
            Sorted IDs; empty if the task is unknown or a leaf.
        """
        node = self._nodes.get(task_id)
        if node is None:
            return []

        seen: set[str] = set()
        stack = list(node.dependents)
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._nodes[current].dependents)
        return sorted(seen)

    def topological_order(self) -> list[str]:
        """
        Task IDs in wave order, sorted within each wave.

        Raises:
            GraphValidationError: If the graph is invalid.
        """
        self.validate()
        waves = self._waves or partition_waves(compute_depths(self._nodes, self._roots))
        return [task_id for wave in waves for task_id in wave.task_ids]

    def get_critical_path(self) -> list[str]:
        """
        Find one longest dependency chain through the graph.

        The chain determines the minimum number of sequential steps. Ties
        are broken by the lexicographically smallest ID.

        Returns:
            Task IDs from a root to the deepest task; empty for an empty graph.

        Raises:
            GraphValidationError: If the graph is invalid.
        """
        self.validate()
        if not self._nodes:
            return []

        depths = compute_depths(self._nodes, self._roots)
        deepest = max(depths.values())
        current = min(t for t, d in depths.items() if d == deepest)

        path = [current]
        while depths[current] > 0:
            current = min(
                dep for dep in self._nodes[current].dependencies
                if depths[dep] == depths[current] - 1
            )
            path.append(current)

        return list(reversed(path))

    # =========================================================================
    # STATUS TRACKING
    # =========================================================================

    def set_node_status(self, task_id: str, status: TaskStatus) -> None:
        """
        Update the status of a task.

        No transition rules are enforced; that is up to the execution
        driver. If waves are computed, the containing wave's aggregate
        status is refreshed.

        Raises:
            TaskNotFoundError: If the task is not in the graph.
        """
        node = self._require(task_id, "setting node status")
        node.status = status

        wave = self.get_wave(self.get_wave_for_task(task_id))
        if wave is not None:
            wave.status = self._derive_status(wave)

    def record_result(self, result: TaskResult) -> None:
        """
        Record a task's outcome and update its status to match.

        Raises:
            TaskNotFoundError: If the task is not in the graph.
        """
        self._require(result.task_id, "recording result")

        wave = self.get_wave(self.get_wave_for_task(result.task_id))
        if wave is not None:
            wave.record_result(result)

        if result.skipped:
            status = TaskStatus.SKIPPED
        elif result.success:
            status = TaskStatus.COMPLETED
        else:
            status = TaskStatus.FAILED
        self.set_node_status(result.task_id, status)

    def get_wave_status(self, number: int) -> WaveStatus | None:
        """Re-derive and return a wave's aggregate status, or None if absent."""
        wave = self.get_wave(number)
        if wave is None:
            return None
        wave.status = self._derive_status(wave)
        return wave.status

    def _derive_status(self, wave: ExecutionWave) -> WaveStatus:
        return derive_wave_status(self._nodes[t].status for t in wave.task_ids)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "nodes": {
                task_id: node.to_dict() for task_id, node in self._nodes.items()
            },
            "roots": self.roots,
            "waves": [wave.model_dump(mode="json") for wave in self._waves],
            "stats": self.get_wave_stats().to_dict(),
        }
