"""Simulated provider configuration."""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SimulatedProviderConfig(BaseModel):
    """
    Options accepted by the simulated provider.

    ``fail_on`` entries are either a logical id (every action fails) or
    ``"LogicalId:action"`` (only that action fails).
    """

    persist_path: Optional[str] = None
    fail_on: List[str] = Field(default_factory=list)
    delay_seconds: float = Field(0.0, ge=0.0)
    id_prefix: str = "sim"

    @field_validator("id_prefix")
    @classmethod
    def validate_id_prefix(cls, v: str) -> str:
        if not v or not v.replace("-", "").isalnum():
            raise ValueError("id_prefix must be alphanumeric")
        return v
