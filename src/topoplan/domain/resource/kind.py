"""Resource kinds and the catalog that declares them."""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import UnknownKindError

# Output naming the physical resource; an in-place update keeps it.
IDENTITY_OUTPUT = "id"


class ResourceKind(BaseModel):
    """
    Declaration of what a resource kind exposes and how it may change.

    Attributes:
        name: Kind name, e.g. ``network.vpc``
        outputs: Output names a resource of this kind publishes once applied
        mutable_properties: Properties that can change without replacement
        required_properties: Properties that must be present
        retain_on_delete: Deleting only forgets the resource, the provider keeps it
        stable_outputs: Outputs an in-place update never changes; ``id`` always is
    """

    model_config = ConfigDict(frozen=True)

    name: str
    outputs: FrozenSet[str] = Field(default_factory=frozenset)
    mutable_properties: FrozenSet[str] = Field(default_factory=frozenset)
    required_properties: FrozenSet[str] = Field(default_factory=frozenset)
    retain_on_delete: bool = False
    stable_outputs: FrozenSet[str] = Field(default_factory=frozenset)
    description: Optional[str] = None

    def declares_output(self, output_name: str) -> bool:
        return output_name in self.outputs

    def is_mutable(self, property_name: str) -> bool:
        return property_name in self.mutable_properties

    def is_stable_output(self, output_name: str) -> bool:
        return output_name == IDENTITY_OUTPUT or output_name in self.stable_outputs

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> ResourceKind:
        """Build a kind from the ``kinds`` section of a topology document."""
        data = data or {}
        return cls(
            name=name,
            outputs=frozenset(data.get("outputs", [])),
            mutable_properties=frozenset(data.get("mutable", data.get("mutable_properties", []))),
            required_properties=frozenset(data.get("required", data.get("required_properties", []))),
            retain_on_delete=bool(data.get("retain_on_delete", False)),
            stable_outputs=frozenset(data.get("stable", data.get("stable_outputs", []))),
            description=data.get("description"),
        )


class KindCatalog:
    """Lookup table of resource kinds by name."""

    def __init__(self, kinds: Optional[Iterable[ResourceKind]] = None):
        self._kinds: Dict[str, ResourceKind] = {}
        for kind in kinds or []:
            self.register(kind)

    def register(self, kind: ResourceKind) -> None:
        if kind.name in self._kinds and self._kinds[kind.name] != kind:
            raise ValueError(f"Kind '{kind.name}' is already registered with a different declaration")
        self._kinds[kind.name] = kind

    def get(self, name: str) -> ResourceKind:
        try:
            return self._kinds[name]
        except KeyError:
            raise UnknownKindError(name, sorted(self._kinds)) from None

    def find(self, name: str) -> Optional[ResourceKind]:
        return self._kinds.get(name)

    def names(self) -> List[str]:
        return sorted(self._kinds)

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)
