"""Pydantic models for the dependency graph.

This module defines the data structures shared by the graph builder, the
depth calculator, the wave partitioner and the execution driver: task
descriptors, task nodes, execution waves, task results and wave
statistics.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# =============================================================================
# ENUMS
# =============================================================================


class TaskStatus(str, Enum):
    """Execution status of a task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def display_name(self) -> str:
        """Capitalized name used by the text renderers."""
        return self.value.capitalize()

    @property
    def is_settled(self) -> bool:
        """True once the task will not run (again) in this pass."""
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.SKIPPED)


class WaveStatus(str, Enum):
    """Aggregate execution status of a wave."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL_FAILED = "partial_failed"

    @property
    def display_name(self) -> str:
        """Name used by the text renderers."""
        if self is WaveStatus.PARTIAL_FAILED:
            return "PartialFailed"
        return self.value.capitalize()


# =============================================================================
# INPUT
# =============================================================================


class TaskDescriptor(BaseModel):
    """A task as supplied by the parsing layer: an ID and its prerequisites.

    Example:
        >>> TaskDescriptor(id="T002", dependencies=["T001"])
        TaskDescriptor(id='T002', dependencies=['T001'])
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique task identifier",
    )
    dependencies: list[str] = Field(
        default_factory=list,
        description="Task IDs this task depends on, in declared order",
    )


# =============================================================================
# GRAPH NODES
# =============================================================================


class TaskNode(BaseModel):
    """A node in the dependency graph.

    ``dependencies`` is fixed at construction. ``dependents`` is the
    transpose of ``dependencies`` across the graph and is filled in by the
    owning ``DependencyGraph``; ``depth`` is written by ``compute_waves``.
    Both are read-only from outside the graph, so only ``status`` changes
    after construction.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(..., min_length=1, frozen=True, description="Task identifier")
    dependencies: tuple[str, ...] = Field(
        default=(),
        frozen=True,
        description="IDs of tasks this depends on (ordered, unique)",
    )
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        description="Current execution status",
    )
    descriptor: TaskDescriptor | None = Field(
        default=None,
        frozen=True,
        description="Original descriptor this node was built from",
    )

    _dependents: tuple[str, ...] = PrivateAttr(default=())
    _depth: int = PrivateAttr(default=0)

    @property
    def dependents(self) -> tuple[str, ...]:
        """IDs of tasks that depend on this one."""
        return self._dependents

    @property
    def depth(self) -> int:
        """Longest dependency chain ending at this task."""
        return self._depth

    @property
    def is_root(self) -> bool:
        """True if the task has no dependencies."""
        return not self.dependencies

    def _attach_dependents(self, dependents: tuple[str, ...]) -> None:
        self._dependents = dependents

    def _assign_depth(self, depth: int) -> None:
        if depth < 0:
            raise ValueError(f"depth must be non-negative, got {depth}")
        self._depth = depth

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "dependencies": list(self.dependencies),
            "dependents": list(self._dependents),
            "depth": self._depth,
            "status": self.status.value,
        }


# =============================================================================
# EXECUTION RESULTS
# =============================================================================


class TaskResult(BaseModel):
    """Outcome of a single task execution."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    success: bool
    error: str | None = None
    duration_ms: int = Field(default=0, ge=0)
    workspace_path: str | None = None
    skipped: bool = False
    skip_reason: str | None = None

    @classmethod
    def skip(cls, task_id: str, reason: str) -> "TaskResult":
        """Build the result recorded for a task that was not run."""
        return cls(task_id=task_id, success=False, skipped=True, skip_reason=reason)


class ExecutionWave(BaseModel):
    """A group of tasks that may execute concurrently.

    Example:
        >>> wave = ExecutionWave(number=1, task_ids=("T001", "T002"))
        >>> wave.size
        2
    """

    model_config = ConfigDict(frozen=False)

    number: int = Field(..., ge=1, description="1-based wave number")
    task_ids: tuple[str, ...] = Field(
        default=(),
        description="Sorted IDs of the tasks in this wave",
    )
    status: WaveStatus = Field(
        default=WaveStatus.PENDING,
        description="Aggregate wave status",
    )
    results: dict[str, TaskResult] = Field(
        default_factory=dict,
        description="Execution results per task",
    )

    @property
    def size(self) -> int:
        """Number of tasks in the wave."""
        return len(self.task_ids)

    def is_complete(self) -> bool:
        """True once the wave has finished execution."""
        return self.status in (WaveStatus.COMPLETED, WaveStatus.PARTIAL_FAILED)

    def contains(self, task_id: str) -> bool:
        """True if the task is a member of this wave."""
        return task_id in self.task_ids

    def record_result(self, result: TaskResult) -> None:
        """Store the result for one of this wave's tasks.

        Raises:
            ValueError: If the task is not a member of this wave.
        """
        if not self.contains(result.task_id):
            raise ValueError(f"task {result.task_id} is not in wave {self.number}")
        self.results[result.task_id] = result


class WaveStats(BaseModel):
    """Summary statistics over a list of waves."""

    model_config = ConfigDict(frozen=True)

    total_waves: int = 0
    total_tasks: int = 0
    max_wave_size: int = 0
    min_wave_size: int = 0

    @property
    def average_wave_size(self) -> float:
        if self.total_waves == 0:
            return 0.0
        return self.total_tasks / self.total_waves

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            **self.model_dump(),
            "average_wave_size": self.average_wave_size,
        }
