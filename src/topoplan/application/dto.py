"""Data transfer objects returned by the application layer."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from topoplan.domain.plan.operation import Action, Step
from topoplan.domain.state.applied_state import AppliedState

from .exceptions import ProviderError


class OperationStatus(str, Enum):
    """Final status of one executable operation."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_ATTEMPTED = "not_attempted"


class OperationOutcome(BaseModel):
    """What happened to one step of the plan."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    logical_id: str
    action: Action
    step: Step
    status: OperationStatus
    outputs: Dict[str, str] = Field(default_factory=dict)
    error: Optional[ProviderError] = None
    adopted: bool = False

    @property
    def key(self) -> str:
        return f"{self.logical_id}:{self.step.value}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "logical_id": self.logical_id,
            "action": self.action.value,
            "step": self.step.value,
            "status": self.status.value,
            "outputs": dict(self.outputs),
        }
        if self.adopted:
            data["adopted"] = True
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


class ApplyResult:
    """
    Outcome of executing a plan.

    ``outcomes`` follows the plan's sequence. A logical id is listed under a
    status if any of its steps ended with that status.
    """

    def __init__(self, outcomes: List[OperationOutcome], state: AppliedState,
                 cancelled: bool = False, halted: bool = False):
        self.outcomes = list(outcomes)
        self.state = state
        self.cancelled = cancelled
        self.halted = halted

    def _ids_with(self, status: OperationStatus) -> List[str]:
        return sorted({o.logical_id for o in self.outcomes if o.status == status})

    @property
    def succeeded(self) -> List[str]:
        return self._ids_with(OperationStatus.SUCCEEDED)

    @property
    def failed(self) -> List[str]:
        return self._ids_with(OperationStatus.FAILED)

    @property
    def skipped(self) -> List[str]:
        return self._ids_with(OperationStatus.SKIPPED)

    @property
    def not_attempted(self) -> List[str]:
        return self._ids_with(OperationStatus.NOT_ATTEMPTED)

    @property
    def errors(self) -> List[ProviderError]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def success(self) -> bool:
        return not self.cancelled and all(o.status == OperationStatus.SUCCEEDED for o in self.outcomes)

    def outcome(self, key: str) -> Optional[OperationOutcome]:
        """Outcome of the step with plan key ``key`` (``"Id:apply"`` / ``"Id:destroy"``)."""
        for o in self.outcomes:
            if o.key == key:
                return o
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "cancelled": self.cancelled,
            "halted": self.halted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "not_attempted": self.not_attempted,
            "operations": [o.to_dict() for o in self.outcomes],
            "serial": self.state.serial,
        }

    def __repr__(self) -> str:
        return (
            f"ApplyResult(succeeded={len(self.succeeded)}, failed={len(self.failed)}, "
            f"skipped={len(self.skipped)}, not_attempted={len(self.not_attempted)}, "
            f"cancelled={self.cancelled})"
        )
