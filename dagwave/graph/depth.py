"""Depth calculator - longest path from any root to every task.

Depth drives wave assignment: a task's wave number is its depth plus one.
The traversal is Kahn's algorithm, so every node and every edge is visited
exactly once.
"""

from collections import deque
from collections.abc import Iterable, Mapping

from loguru import logger

from dagwave.graph.models import TaskNode


def compute_depths(
    nodes: Mapping[str, TaskNode],
    roots: Iterable[str],
) -> dict[str, int]:
    """
    Compute the longest-path depth of every node reachable from the roots.

    A node reachable along several paths of different length (a diamond)
    keeps the maximum proposed depth, not the first one it receives. A
    dependent is only dequeued once its remaining in-degree reaches zero,
    so all of its dependencies have contributed by then.

    The graph must already be validated as acyclic: nodes on or behind a
    cycle never reach in-degree zero and are left out of the result.

    Args:
        nodes: Task ID -> TaskNode mapping with dependents wired.
        roots: IDs of the nodes with no dependencies.

    Returns:
        Task ID -> depth for every node that was reached.

    Example:
        >>> depths = compute_depths(graph.nodes, graph.roots)
        >>> depths["D"]  # A -> B -> D and A -> C -> D
        2
    """
    in_degree = {task_id: len(node.dependencies) for task_id, node in nodes.items()}
    proposals: dict[str, int] = {}
    depths: dict[str, int] = {}

    queue: deque[str] = deque(roots)

    while queue:
        task_id = queue.popleft()
        depths[task_id] = proposals.get(task_id, 0)
        proposed = depths[task_id] + 1

        for dependent in nodes[task_id].dependents:
            # Longest path wins
            if proposed > proposals.get(dependent, 0):
                proposals[dependent] = proposed

            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    unreached = len(nodes) - len(depths)
    if unreached:
        logger.debug(f"Depth calculation skipped {unreached} tasks that never became ready")

    return depths
