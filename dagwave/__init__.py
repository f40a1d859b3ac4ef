"""
dagwave - dependency graph scheduling for parallel task execution.

Turns a flat list of tasks with declared prerequisites into a validated
DAG, partitions it into deterministic waves of maximal parallelism, and
tracks per-task status while the waves execute.
"""

__version__ = "0.1.0"
__author__ = "Dagwave Team"

from dagwave.core.errors import (
    DagwaveError,
    GraphValidationError,
    TaskNotFoundError,
    ViolationKind,
    WaveComputationError,
)
from dagwave.graph import (
    DependencyGraph,
    ExecutionWave,
    TaskDescriptor,
    TaskResult,
    TaskStatus,
    WaveStats,
    WaveStatus,
    build_graph,
    schedule,
)

__all__ = [
    "DagwaveError",
    "DependencyGraph",
    "ExecutionWave",
    "GraphValidationError",
    "TaskDescriptor",
    "TaskNotFoundError",
    "TaskResult",
    "TaskStatus",
    "ViolationKind",
    "WaveComputationError",
    "WaveStats",
    "WaveStatus",
    "__version__",
    "build_graph",
    "schedule",
]
