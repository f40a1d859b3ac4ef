"""Graph builder - turns task descriptors into a validated DependencyGraph."""

from collections.abc import Iterable, Sequence

from loguru import logger

from dagwave.core.config import get_settings
from dagwave.core.errors import GraphValidationError
from dagwave.graph.dependency_graph import DependencyGraph
from dagwave.graph.models import ExecutionWave, TaskDescriptor, TaskNode
from dagwave.graph.validator import collect_violations

# A descriptor model, or an (id, dependency IDs) pair
DescriptorLike = TaskDescriptor | tuple[str, Sequence[str]]


def _to_descriptor(item: DescriptorLike) -> TaskDescriptor:
    if isinstance(item, TaskDescriptor):
        return item
    task_id, deps = item
    if isinstance(deps, str):
        raise TypeError(
            f"dependencies of task {task_id} must be a sequence of IDs, not a string"
        )
    return TaskDescriptor(id=task_id, dependencies=list(deps))


def build_graph(
    descriptors: Iterable[DescriptorLike],
    *,
    fail_fast: bool | None = None,
) -> DependencyGraph:
    """
    Build and validate a dependency graph from task descriptors.

    All nodes are created before any edge is checked, so a task may list a
    dependency defined later in the input. A dependency repeated within one
    task is collapsed to a single edge.

    Args:
        descriptors: TaskDescriptor objects or (id, dependency IDs) pairs.
        fail_fast: Stop at the first violation instead of collecting all of
            them. Defaults to the ``DAGWAVE_FAIL_FAST`` setting.

    Returns:
        A validated DependencyGraph with dependents and roots wired. Waves
        are not computed yet.

    Raises:
        GraphValidationError: On duplicate IDs, dangling references,
            self-dependencies or cycles.

    Example:
        >>> graph = build_graph([("T002", ["T001"]), ("T001", [])])
        >>> graph.roots
        ['T001']
    """
    if fail_fast is None:
        fail_fast = get_settings().dagwave_fail_fast

    items = [_to_descriptor(d) for d in descriptors]
    logger.debug(f"Building dependency graph for {len(items)} tasks")

    task_ids: list[str] = []
    nodes: dict[str, TaskNode] = {}

    for descriptor in items:
        task_ids.append(descriptor.id)
        if descriptor.id in nodes:
            continue  # reported as a duplicate below

        deps = tuple(dict.fromkeys(descriptor.dependencies))
        if len(deps) != len(descriptor.dependencies):
            logger.warning(f"Task {descriptor.id} lists repeated dependencies; collapsing")

        nodes[descriptor.id] = TaskNode(
            id=descriptor.id,
            dependencies=deps,
            descriptor=descriptor,
        )

    violations = collect_violations(
        task_ids,
        {task_id: node.dependencies for task_id, node in nodes.items()},
        fail_fast=fail_fast,
    )
    if violations:
        raise GraphValidationError(violations, context="building graph")

    graph = DependencyGraph(nodes.values())
    logger.info(f"Built dependency graph: {graph.size} tasks, {len(graph.roots)} roots")
    return graph


def schedule(
    descriptors: Iterable[DescriptorLike],
    *,
    fail_fast: bool | None = None,
) -> tuple[DependencyGraph, list[ExecutionWave]]:
    """
    Convenience function to build a graph and compute its waves.

    Returns:
        Tuple of (graph, waves).

    Example:
        >>> graph, waves = schedule([("A", []), ("B", ["A"])])
        >>> len(waves)
        2
    """
    graph = build_graph(descriptors, fail_fast=fail_fast)
    waves = graph.compute_waves()
    return graph, waves
