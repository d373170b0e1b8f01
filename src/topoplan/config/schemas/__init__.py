"""Configuration schemas."""

from .app_schema import AppConfig
from .executor_schema import ExecutorConfig
from .logging_schema import LoggingConfig
from .provider_schema import ProviderConfig
from .state_schema import StateConfig

__all__ = [
    "AppConfig",
    "ExecutorConfig",
    "LoggingConfig",
    "ProviderConfig",
    "StateConfig",
]
