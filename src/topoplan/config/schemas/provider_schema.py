"""Provider configuration schema."""
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class ProviderConfig(BaseModel):
    """
    Provider selection.

    ``type`` is a registered provider name (``simulated``) or an import path
    ``package.module:factory`` returning a ``ProviderPort``.
    """

    type: str = Field("simulated", description="Provider type or import path")
    options: Dict[str, Any] = Field(default_factory=dict, description="Provider options")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Provider type must not be empty")
        return v.strip()
