"""Resource value objects: logical identifiers and output references."""
from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Callable, Iterator

from pydantic import BaseModel, ConfigDict, field_validator

LOGICAL_ID_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_\-]*$")
REFERENCE_KEY = "$ref"


def validate_logical_id(value: str) -> str:
    """Validate a logical identifier."""
    if not isinstance(value, str) or not LOGICAL_ID_PATTERN.match(value):
        raise ValueError(
            f"Invalid logical id {value!r}: must start with a letter and contain "
            "only letters, digits, '_' or '-'"
        )
    return value


class Reference(BaseModel):
    """Forward pointer to an output of another resource."""

    model_config = ConfigDict(frozen=True)

    logical_id: str
    output_name: str

    @field_validator("logical_id")
    @classmethod
    def _check_logical_id(cls, v: str) -> str:
        return validate_logical_id(v)

    @field_validator("output_name")
    @classmethod
    def _check_output_name(cls, v: str) -> str:
        if not v or "." in v:
            raise ValueError(f"Invalid output name {v!r}")
        return v

    @classmethod
    def parse(cls, expression: str) -> Reference:
        """Parse ``"LogicalId.output"``."""
        if not isinstance(expression, str) or "." not in expression:
            raise ValueError(f"Reference must look like 'LogicalId.output', got {expression!r}")
        logical_id, output_name = expression.split(".", 1)
        return cls(logical_id=logical_id, output_name=output_name)

    @property
    def address(self) -> str:
        return f"{self.logical_id}.{self.output_name}"

    def __str__(self) -> str:
        return self.address


def iter_references(value: Any) -> Iterator[Reference]:
    """Yield every Reference nested anywhere inside a property value."""
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, dict):
        for key in sorted(value):
            yield from iter_references(value[key])
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)


def substitute_references(value: Any, resolver: Callable[[Reference], Any]) -> Any:
    """Return a copy of ``value`` with each Reference replaced by ``resolver(ref)``."""
    if isinstance(value, Reference):
        return resolver(value)
    if isinstance(value, dict):
        return {k: substitute_references(v, resolver) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [substitute_references(v, resolver) for v in value]
    return value


def to_canonical(value: Any) -> Any:
    """Convert a property value to plain JSON data, references as ``{"$ref": ...}``."""
    return substitute_references(value, lambda ref: {REFERENCE_KEY: ref.address})


def hash_value(value: Any) -> str:
    """Stable SHA-256 of a property value."""
    payload = json.dumps(to_canonical(value), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
