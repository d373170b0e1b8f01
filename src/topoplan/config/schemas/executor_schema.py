"""Executor configuration schema."""
from pydantic import BaseModel, Field, field_validator


class ExecutorConfig(BaseModel):
    """Concurrency and failure behaviour of plan execution."""

    max_workers: int = Field(4, description="Operations run concurrently within one group")
    continue_on_error: bool = Field(
        False,
        description="Keep launching independent operations after a failure",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """Validate worker count."""
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v
