"""State store configuration schema."""
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class StateConfig(BaseModel):
    """Where and how applied state is persisted."""

    type: Literal["json", "memory"] = Field("json", description="State store type")
    path: str = Field(".topoplan/state.json", description="State file path")
    backup_count: int = Field(5, description="Number of state backups to keep")

    @field_validator("backup_count")
    @classmethod
    def validate_backup_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Backup count cannot be negative")
        return v
