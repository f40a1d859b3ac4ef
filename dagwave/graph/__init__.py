"""Dependency graph - validation, depth calculation and wave partitioning.

This module provides the scheduling core:
- Graph building (descriptors -> validated DAG)
- Depth calculation (longest path from any root)
- Wave partitioning (depth -> ordered, deterministic waves)
- Status tracking and queries over the scheduled graph
"""

from dagwave.graph.builder import build_graph, schedule
from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.depth import compute_depths
from dagwave.graph.models import (
    ExecutionWave,
    TaskDescriptor,
    TaskNode,
    TaskResult,
    TaskStatus,
    WaveStats,
    WaveStatus,
)
from dagwave.graph.validator import collect_violations, find_cycle, validate_graph
from dagwave.graph.waves import compute_wave_stats, derive_wave_status, partition_waves

__all__ = [
    # Models
    "ExecutionWave",
    "TaskDescriptor",
    "TaskNode",
    "TaskResult",
    "TaskStatus",
    "WaveStats",
    "WaveStatus",
    # Graph
    "DependencyGraph",
    "build_graph",
    "schedule",
    # Algorithms
    "collect_violations",
    "compute_depths",
    "compute_wave_stats",
    "derive_wave_status",
    "find_cycle",
    "partition_waves",
    "validate_graph",
]
