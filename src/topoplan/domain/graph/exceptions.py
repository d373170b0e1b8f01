"""Graph build exceptions. All of them are fatal: no partial graph is returned."""
from typing import List, Optional

from topoplan.domain.base.exceptions import ValidationError


class GraphError(ValidationError):
    """Base exception for graph construction errors."""


class DuplicateIdError(GraphError):
    """Raised when two resources share a logical id."""

    def __init__(self, logical_id: str, kinds: List[str]):
        super().__init__(
            f"Duplicate logical id '{logical_id}' (declared by kinds: {', '.join(kinds)})",
            "DUPLICATE_ID",
            {"logical_id": logical_id, "kinds": kinds},
        )
        self.logical_id = logical_id


class DanglingReferenceError(GraphError):
    """Raised when a reference or dependency points at something that does not exist."""

    def __init__(self, logical_id: str, target: str, output_name: Optional[str] = None,
                 reason: str = "unknown logical id", owner: str = "Resource"):
        pointer = f"{target}.{output_name}" if output_name else target
        super().__init__(
            f"{owner} '{logical_id}' references '{pointer}': {reason}",
            "DANGLING_REFERENCE",
            {
                "logical_id": logical_id,
                "target": target,
                "output_name": output_name,
                "reason": reason,
            },
        )
        self.logical_id = logical_id
        self.target = target
        self.output_name = output_name


class CycleError(GraphError):
    """Raised when dependency edges form a cycle."""

    def __init__(self, cycle: List[str]):
        super().__init__(
            f"Dependency cycle detected: {' -> '.join(cycle)}",
            "DEPENDENCY_CYCLE",
            {"cycle": cycle},
        )
        self.cycle = cycle
