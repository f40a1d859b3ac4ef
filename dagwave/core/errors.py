"""Exception hierarchy for dagwave.

Construction and scheduling failures carry structured ``Violation``
records so callers can tell a duplicate ID from a dangling reference or a
cycle without parsing the message. Query misses are not errors: lookups
return sentinels (0, an empty list, or None).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# VIOLATIONS
# =============================================================================


class ViolationKind(str, Enum):
    """Kind of structural problem found in a task list."""

    DUPLICATE = "duplicate"
    MISSING_DEPENDENCY = "missing_dependency"
    SELF_DEPENDENCY = "self_dependency"
    CYCLE = "cycle"


class Violation(BaseModel):
    """A single validation failure, naming the offending task IDs."""

    model_config = ConfigDict(frozen=True)

    kind: ViolationKind = Field(description="Violation kind")
    task_ids: tuple[str, ...] = Field(
        description="Offending task IDs (the cycle path for cycles)",
    )
    message: str = Field(description="Human-readable description")

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class DagwaveError(Exception):
    """Base exception for dagwave errors."""

    pass


class GraphValidationError(DagwaveError):
    """The task list does not describe a valid dependency DAG."""

    def __init__(self, violations: list[Violation], context: str = "validating graph") -> None:
        self.violations = list(violations)
        self.context = context
        super().__init__(self._format())

    @property
    def kinds(self) -> set[ViolationKind]:
        """Distinct violation kinds contained in this error."""
        return {v.kind for v in self.violations}

    def _format(self) -> str:
        if len(self.violations) == 1:
            return f"{self.context}: {self.violations[0]}"
        lines = [f"{self.context}: {len(self.violations)} violations"]
        lines.extend(f"  - {v}" for v in self.violations)
        return "\n".join(lines)


class WaveComputationError(GraphValidationError):
    """Scheduling refused because the graph failed re-validation."""

    def __init__(self, violations: list[Violation]) -> None:
        super().__init__(violations, context="computing waves")


class TaskNotFoundError(DagwaveError, LookupError):
    """A task ID does not exist in the graph."""

    def __init__(self, task_id: str, action: str = "looking up task") -> None:
        self.task_id = task_id
        super().__init__(f"{action}: task {task_id} not found")


class CoordinatorClosedError(DagwaveError):
    """A status update was submitted after the coordinator was closed."""

    pass
