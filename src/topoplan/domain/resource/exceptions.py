"""Resource domain exceptions."""
from typing import List, Optional

from topoplan.domain.base.exceptions import ValidationError


class ResourceValidationError(ValidationError):
    """Raised when a resource declaration is invalid."""


class UnknownKindError(ResourceValidationError):
    """Raised when a resource uses a kind the catalog does not declare."""

    def __init__(self, kind: str, known_kinds: List[str], logical_id: Optional[str] = None):
        where = f" (resource '{logical_id}')" if logical_id else ""
        super().__init__(
            f"Unknown resource kind '{kind}'{where}",
            "UNKNOWN_KIND",
            {"kind": kind, "logical_id": logical_id, "known_kinds": known_kinds},
        )
        self.kind = kind
        self.logical_id = logical_id


class MissingPropertyError(ResourceValidationError):
    """Raised when a resource omits properties its kind requires."""

    def __init__(self, logical_id: str, kind: str, missing: List[str]):
        super().__init__(
            f"Resource '{logical_id}' of kind '{kind}' is missing required properties: "
            f"{', '.join(missing)}",
            "MISSING_PROPERTY",
            {"logical_id": logical_id, "kind": kind, "missing": missing},
        )
        self.logical_id = logical_id
        self.missing = missing
