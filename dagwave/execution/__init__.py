"""Execution module - drives scheduled graphs wave by wave.

- StatusCoordinator: single writer for task status updates
- ParallelExecutor: runs waves in order with bounded concurrency
"""

from dagwave.execution.coordinator import StatusCoordinator, StatusListener, StatusUpdate
from dagwave.execution.executor import (
    ParallelExecutor,
    ProgressCallback,
    TaskRunner,
    WaveExecutionResult,
)

__all__ = [
    "ParallelExecutor",
    "ProgressCallback",
    "StatusCoordinator",
    "StatusListener",
    "StatusUpdate",
    "TaskRunner",
    "WaveExecutionResult",
]
