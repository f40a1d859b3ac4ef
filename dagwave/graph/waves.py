"""Wave partitioner - groups tasks by depth into ordered execution waves."""

from collections import defaultdict
from collections.abc import Iterable, Mapping

from loguru import logger

from dagwave.graph.models import ExecutionWave, TaskStatus, WaveStats, WaveStatus


def partition_waves(depths: Mapping[str, int]) -> list[ExecutionWave]:
    """
    Group task IDs by depth into 1-based, contiguous waves.

    Waves are numbered densely over the depths actually present, and IDs
    are sorted within each wave so the partition does not depend on input
    or dictionary order.

    Args:
        depths: Task ID -> depth mapping.

    Returns:
        Waves in execution order; empty when there are no tasks.

    Example:
        >>> partition_waves({"A": 0, "C": 1, "B": 1})
        [ExecutionWave(number=1, task_ids=('A',), ...), ExecutionWave(number=2, task_ids=('B', 'C'), ...)]
    """
    groups: dict[int, list[str]] = defaultdict(list)
    for task_id, depth in depths.items():
        groups[depth].append(task_id)

    waves = [
        ExecutionWave(number=number, task_ids=tuple(sorted(groups[depth])))
        for number, depth in enumerate(sorted(groups), start=1)
    ]

    for wave in waves:
        logger.debug(f"Wave {wave.number}: {wave.size} tasks")

    return waves


def compute_wave_stats(waves: Iterable[ExecutionWave]) -> WaveStats:
    """
    Summarize a list of waves in a single pass.

    Returns:
        WaveStats with every field zero when there are no waves.
    """
    total_waves = 0
    total_tasks = 0
    max_size = 0
    min_size = 0

    for wave in waves:
        size = wave.size
        total_waves += 1
        total_tasks += size
        max_size = max(max_size, size)
        min_size = size if total_waves == 1 else min(min_size, size)

    return WaveStats(
        total_waves=total_waves,
        total_tasks=total_tasks,
        max_wave_size=max_size,
        min_wave_size=min_size,
    )


def derive_wave_status(statuses: Iterable[TaskStatus]) -> WaveStatus:
    """
    Derive a wave's aggregate status from its members' statuses.

    Any failure makes the wave partially failed. A wave whose members are
    all completed or skipped is completed. A wave with running members, or
    with some members settled and others still pending, is running.
    """
    statuses = list(statuses)
    if not statuses:
        return WaveStatus.PENDING

    if TaskStatus.FAILED in statuses:
        return WaveStatus.PARTIAL_FAILED
    if all(s.is_settled for s in statuses):
        return WaveStatus.COMPLETED
    if all(s == TaskStatus.PENDING for s in statuses):
        return WaveStatus.PENDING
    return WaveStatus.RUNNING
