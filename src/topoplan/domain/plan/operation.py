"""Plan operations."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from topoplan.domain.resource.resource import Resource
from topoplan.domain.resource.value_objects import to_canonical
from topoplan.domain.state.applied_state import StateEntry


class Action(str, Enum):
    """What the plan does with one logical id."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


class Step(str, Enum):
    """
    Executable half of an operation.

    A replace is split into a DESTROY step followed by an APPLY step that share
    one logical id. NONE marks noop operations, which are never executed.
    """
    DESTROY = "destroy"
    APPLY = "apply"
    NONE = "none"


class Operation(BaseModel):
    """One planned change, immutable once emitted by the planner."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    action: Action
    logical_id: str
    kind: str
    step: Step
    before: Optional[StateEntry] = None
    after: Optional[Resource] = None
    changed_properties: Tuple[str, ...] = ()
    retain: bool = False

    @property
    def key(self) -> str:
        """Unique key of this step within a plan."""
        return f"{self.logical_id}:{self.step.value}"

    @property
    def is_executable(self) -> bool:
        return self.step != Step.NONE

    @property
    def state_only(self) -> bool:
        """An update with no property changes only rewrites the recorded state entry."""
        return self.action == Action.UPDATE and not self.changed_properties

    @property
    def provider_action(self) -> str:
        """Action name passed to the provider for this step."""
        if self.step == Step.DESTROY:
            return Action.DELETE.value
        if self.action == Action.UPDATE:
            return Action.UPDATE.value
        return Action.CREATE.value

    def describe(self) -> str:
        if self.action == Action.REPLACE:
            return f"replace ({self.step.value}) {self.logical_id}"
        return f"{self.action.value} {self.logical_id}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "action": self.action.value,
            "logical_id": self.logical_id,
            "kind": self.kind,
            "step": self.step.value,
            "changed_properties": list(self.changed_properties),
            "retain": self.retain,
            "state_only": self.state_only,
        }
        if self.before is not None:
            data["before"] = self.before.model_dump(mode="json")
        if self.after is not None:
            data["after"] = {
                "kind": self.after.kind,
                "logical_id": self.after.logical_id,
                "properties": to_canonical(self.after.properties),
                "depends_on": sorted(self.after.depends_on),
            }
        return data
