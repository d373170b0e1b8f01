"""Resource model - the typed description of one infrastructure object."""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .value_objects import Reference, hash_value, iter_references, validate_logical_id


class Resource(BaseModel):
    """
    Desired configuration of a single infrastructure object.

    Property values are JSON-like literals or ``Reference`` instances, possibly
    nested inside dicts and lists. Instances are immutable once built.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: str
    logical_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    depends_on: FrozenSet[str] = Field(default_factory=frozenset)
    retain_on_delete: Optional[bool] = None

    @field_validator("logical_id")
    @classmethod
    def _check_logical_id(cls, v: str) -> str:
        return validate_logical_id(v)

    @field_validator("kind")
    @classmethod
    def _check_kind(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Resource kind must not be empty")
        return v

    def references(self) -> List[Reference]:
        """All references used in the properties, in a stable order."""
        seen = {}
        for name in sorted(self.properties):
            for ref in iter_references(self.properties[name]):
                seen.setdefault(ref.address, ref)
        return list(seen.values())

    def referenced_ids(self) -> FrozenSet[str]:
        return frozenset(ref.logical_id for ref in self.references())

    def dependency_ids(self) -> FrozenSet[str]:
        """Explicit ``depends_on`` plus every resource referenced by a property."""
        return frozenset(self.depends_on) | self.referenced_ids()

    def properties_referencing(self, logical_ids: FrozenSet[str]) -> List[str]:
        """Names of properties whose value references any of ``logical_ids``."""
        return sorted(
            name
            for name, value in self.properties.items()
            if any(ref.logical_id in logical_ids for ref in iter_references(value))
        )

    def property_hashes(self) -> Dict[str, str]:
        return {name: hash_value(value) for name, value in sorted(self.properties.items())}

    def properties_hash(self) -> str:
        return hash_value(self.properties)
