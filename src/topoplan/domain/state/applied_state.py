"""Applied state: the last successfully applied configuration of every resource."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from topoplan.domain.resource.resource import Resource

STATE_FORMAT_VERSION = 1


class StateEntry(BaseModel):
    """Record of one applied resource and its provider-assigned outputs."""

    model_config = ConfigDict(frozen=True)

    kind: str
    properties_hash: str
    property_hashes: Dict[str, str] = Field(default_factory=dict)
    outputs: Dict[str, str] = Field(default_factory=dict)
    resolved_references: Dict[str, str] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    retain_on_delete: bool = False
    updated_at: Optional[datetime] = None

    @classmethod
    def from_resource(cls, resource: Resource, outputs: Mapping[str, Any],
                      retain_on_delete: bool = False,
                      resolved_references: Optional[Mapping[str, Any]] = None) -> StateEntry:
        """
        Build the entry recorded after ``resource`` was applied.

        ``resolved_references`` maps each ``Id.output`` address the properties
        used to the value it had at apply time.
        """
        return cls(
            kind=resource.kind,
            properties_hash=resource.properties_hash(),
            property_hashes=resource.property_hashes(),
            outputs={str(k): str(v) for k, v in (outputs or {}).items()},
            resolved_references={str(k): str(v) for k, v in (resolved_references or {}).items()},
            dependencies=sorted(resource.dependency_ids()),
            retain_on_delete=retain_on_delete,
            updated_at=datetime.now(timezone.utc),
        )


class AppliedState(BaseModel):
    """
    Versioned mapping of logical id to ``StateEntry``.

    ``serial`` increases by one with every persisted change so readers can tell
    two snapshots apart.
    """

    version: int = STATE_FORMAT_VERSION
    serial: int = 0
    entries: Dict[str, StateEntry] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> AppliedState:
        return cls()

    def get(self, logical_id: str) -> Optional[StateEntry]:
        return self.entries.get(logical_id)

    def logical_ids(self) -> List[str]:
        return sorted(self.entries)

    def set_entry(self, logical_id: str, entry: StateEntry) -> None:
        self.entries[logical_id] = entry
        self.serial += 1

    def remove_entry(self, logical_id: str) -> Optional[StateEntry]:
        removed = self.entries.pop(logical_id, None)
        if removed is not None:
            self.serial += 1
        return removed

    def outputs_of(self, logical_id: str) -> Dict[str, str]:
        entry = self.entries.get(logical_id)
        return dict(entry.outputs) if entry else {}

    def copy_state(self) -> AppliedState:
        return self.model_copy(deep=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppliedState:
        return cls.model_validate(dict(data))

    def __contains__(self, logical_id: object) -> bool:
        return logical_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)
