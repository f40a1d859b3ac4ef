"""Text renderers for scheduled dependency graphs.

Every renderer reads the graph without modifying it and emits printable
ASCII only, so output is safe for any terminal and stable across runs:
task IDs are always sorted within a wave.
"""

from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.models import TaskNode, TaskStatus

NO_WAVES_MESSAGE = "No waves computed. Run compute_waves() first."

STATUS_SYMBOLS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "o",
    TaskStatus.RUNNING: "*",
    TaskStatus.COMPLETED: "+",
    TaskStatus.FAILED: "x",
    TaskStatus.SKIPPED: "-",
}


def status_symbol(status: TaskStatus | None) -> str:
    """ASCII symbol for a task status; ``?`` for anything unrecognized."""
    return STATUS_SYMBOLS.get(status, "?")


# =============================================================================
# FULL LISTING
# =============================================================================


def render_ascii(graph: DependencyGraph) -> str:
    """
    Render the waves as a multi-line listing with a summary.

    Example output::

        Task Execution Waves
        ====================

        Wave 1 (1 task)
          +- [A]
            |
            v
        Wave 2 (2 tasks)
          |- [B]
          +- [C]

        Summary:
          Total Waves: 2
          Total Tasks: 3
          Max Parallel: 2
    """
    if not graph.waves:
        return NO_WAVES_MESSAGE

    lines = ["Task Execution Waves", "====================", ""]

    last = len(graph.waves) - 1
    for i, wave in enumerate(graph.waves):
        lines.append(_wave_header(wave.number, wave.size))
        lines.extend(_wave_tasks(wave.task_ids))
        if i < last:
            lines.extend(["    |", "    v"])

    stats = graph.get_wave_stats()
    lines.extend([
        "",
        "Summary:",
        f"  Total Waves: {stats.total_waves}",
        f"  Total Tasks: {stats.total_tasks}",
        f"  Max Parallel: {stats.max_wave_size}",
    ])

    return "\n".join(lines) + "\n"


def _wave_header(number: int, task_count: int) -> str:
    plural = "" if task_count == 1 else "s"
    return f"Wave {number} ({task_count} task{plural})"


def _wave_tasks(task_ids: tuple[str, ...]) -> list[str]:
    if not task_ids:
        return ["  (empty)"]

    ordered = sorted(task_ids)
    return [
        f"{'  +-' if i == len(ordered) - 1 else '  |-'} [{task_id}]"
        for i, task_id in enumerate(ordered)
    ]


# =============================================================================
# COMPACT & DETAILED
# =============================================================================


def render_compact(graph: DependencyGraph) -> str:
    """
    Render the waves on a single line.

    Format: ``Wave 1: [T001] -> Wave 2: [T002, T003] -> Wave 3: [T004]``
    """
    if not graph.waves:
        return "No waves computed"

    return " -> ".join(
        f"Wave {wave.number}: [{', '.join(sorted(wave.task_ids))}]"
        for wave in graph.waves
    )


def render_detailed(graph: DependencyGraph) -> str:
    """Render every task with its status, dependencies and dependents."""
    if not graph.waves:
        return NO_WAVES_MESSAGE

    lines = ["Detailed Task Execution Plan", "============================", ""]

    for wave in graph.waves:
        lines.append(f"Wave {wave.number}:")
        lines.append("-" * 40)
        for task_id in sorted(wave.task_ids):
            node = graph.get_node(task_id)
            if node is not None:
                lines.extend(_detailed_task(node))
        lines.append("")

    return "\n".join(lines) + "\n"


def _detailed_task(node: TaskNode) -> list[str]:
    lines = [f"  [{node.id}] {node.status.display_name}"]
    if node.dependencies:
        lines.append(f"    Depends on: {', '.join(sorted(node.dependencies))}")
    if node.dependents:
        lines.append(f"    Blocks: {', '.join(sorted(node.dependents))}")
    return lines


# =============================================================================
# PROGRESS & STATS
# =============================================================================


def render_progress(graph: DependencyGraph, wave_number: int) -> str:
    """
    Render the execution progress of one wave.

    Format: ``Wave 2: T002 + T003 * T004 o`` where o = pending,
    * = running, + = completed, x = failed, - = skipped.

    Returns:
        The progress line, or an empty string for an unknown wave.
    """
    wave = graph.get_wave(wave_number)
    if wave is None:
        return ""

    parts = []
    for task_id in sorted(wave.task_ids):
        node = graph.get_node(task_id)
        if node is None:
            continue
        parts.append(f"{task_id} {status_symbol(node.status)}")

    return f"Wave {wave.number}: {' '.join(parts)}"


def render_stats(graph: DependencyGraph) -> str:
    """Render wave statistics, including the average wave size."""
    stats = graph.get_wave_stats()
    lines = [
        "Wave Statistics:",
        f"  Total Waves: {stats.total_waves}",
        f"  Total Tasks: {stats.total_tasks}",
        f"  Max Wave Size: {stats.max_wave_size}",
        f"  Min Wave Size: {stats.min_wave_size}",
    ]
    if stats.total_waves > 0:
        lines.append(f"  Avg Wave Size: {stats.average_wave_size:.1f}")
    return "\n".join(lines) + "\n"
