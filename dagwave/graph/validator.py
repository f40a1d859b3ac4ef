"""Structural validation of task lists.

Checks run in two stages. The structural checks (duplicate IDs, dangling
references, self-dependencies) are collected across the whole input so a
single run reports everything that needs repair. Cycle detection only runs
once the structure is clean, since a dangling edge makes cycle paths
meaningless.
"""

from collections import Counter, deque
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from dagwave.core.errors import Violation, ViolationKind

if TYPE_CHECKING:
    from dagwave.graph.dependency_graph import DependencyGraph


def find_cycle(dependencies: Mapping[str, Sequence[str]]) -> list[str] | None:
    """
    Find one dependency cycle, if any exists.

    Runs a Kahn pass over the whole graph; every node that never reaches
    in-degree zero lies on or behind a cycle, so the check is exhaustive
    even when the graph holds several disjoint cycles. The reported path is
    found by following unresolved dependencies from the smallest remaining
    ID until a task repeats.

    Args:
        dependencies: Task ID -> IDs it depends on. Unknown IDs are ignored.

    Returns:
        The cycle as a closed path (first ID repeated at the end), or None.

    Example:
        >>> find_cycle({"a": ["c"], "b": ["a"], "c": ["b"]})
        ['a', 'c', 'b', 'a']
    """
    in_degree: dict[str, int] = {}
    dependents: dict[str, list[str]] = {task_id: [] for task_id in dependencies}

    for task_id, deps in dependencies.items():
        known = [d for d in dict.fromkeys(deps) if d in dependents]
        in_degree[task_id] = len(known)
        for dep in known:
            dependents[dep].append(task_id)

    queue: deque[str] = deque(t for t, degree in in_degree.items() if degree == 0)
    resolved: set[str] = set()

    while queue:
        task_id = queue.popleft()
        resolved.add(task_id)
        for dependent in dependents[task_id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    remaining = set(dependencies) - resolved
    if not remaining:
        return None

    # Every remaining task still waits on another remaining task
    path: list[str] = []
    position: dict[str, int] = {}
    current = min(remaining)
    while current not in position:
        position[current] = len(path)
        path.append(current)
        current = next(d for d in dependencies[current] if d in remaining)

    return path[position[current]:] + [current]


def collect_violations(
    task_ids: Sequence[str],
    dependencies: Mapping[str, Sequence[str]],
    *,
    fail_fast: bool = False,
) -> list[Violation]:
    """
    Validate a task list and return every violation found.

    Args:
        task_ids: Task IDs in input order, duplicates included.
        dependencies: Task ID -> declared dependency IDs.
        fail_fast: Stop at the first violation.

    Returns:
        Violations in input order; empty if the graph is a valid DAG.
    """
    violations: list[Violation] = []

    counts = Counter(task_ids)
    for task_id in dict.fromkeys(task_ids):
        if counts[task_id] > 1:
            violations.append(
                Violation(
                    kind=ViolationKind.DUPLICATE,
                    task_ids=(task_id,),
                    message=f"duplicate task ID {task_id} ({counts[task_id]} definitions)",
                )
            )
            if fail_fast:
                return violations

    for task_id, deps in dependencies.items():
        for dep in dict.fromkeys(deps):
            if dep == task_id:
                violations.append(
                    Violation(
                        kind=ViolationKind.SELF_DEPENDENCY,
                        task_ids=(task_id,),
                        message=f"task {task_id} depends on itself",
                    )
                )
            elif dep not in dependencies:
                violations.append(
                    Violation(
                        kind=ViolationKind.MISSING_DEPENDENCY,
                        task_ids=(task_id, dep),
                        message=f"task {task_id} depends on non-existent task {dep}",
                    )
                )
            else:
                continue
            if fail_fast:
                return violations

    if not violations:
        cycle = find_cycle(dependencies)
        if cycle:
            violations.append(
                Violation(
                    kind=ViolationKind.CYCLE,
                    task_ids=tuple(cycle),
                    message=f"circular dependency detected: {' -> '.join(cycle)}",
                )
            )

    if violations:
        logger.warning(f"Graph validation found {len(violations)} violation(s)")

    return violations


def validate_graph(graph: "DependencyGraph") -> list[Violation]:
    """
    Re-run every check over an already built graph.

    Useful before scheduling a graph that was assembled directly from
    ``TaskNode`` objects rather than through ``build_graph``.

    Returns:
        The violations found; empty if the graph is valid.
    """
    return graph.find_violations()
