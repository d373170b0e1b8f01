"""Planning exceptions."""
from typing import List

from topoplan.domain.base.exceptions import DomainException


class PlanningError(DomainException):
    """Raised when operations cannot be put in a valid order."""

    def __init__(self, message: str, operations: List[str]):
        super().__init__(message, "PLANNING_ERROR", {"operations": operations})
        self.operations = operations
