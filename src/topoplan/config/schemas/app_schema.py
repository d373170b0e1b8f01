"""Main application configuration schema."""
from typing import Any, Dict

from pydantic import BaseModel, Field

from .executor_schema import ExecutorConfig
from .logging_schema import LoggingConfig
from .provider_schema import ProviderConfig
from .state_schema import StateConfig


class AppConfig(BaseModel):
    """Application configuration."""

    version: str = Field("1.0", description="Configuration version")
    logging: LoggingConfig = Field(default_factory=lambda: LoggingConfig())
    state: StateConfig = Field(default_factory=lambda: StateConfig())
    executor: ExecutorConfig = Field(default_factory=lambda: ExecutorConfig())
    provider: ProviderConfig = Field(default_factory=lambda: ProviderConfig())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls.model_validate(data or {})

