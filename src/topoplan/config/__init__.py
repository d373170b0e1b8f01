"""Application configuration."""

from .manager import ConfigurationManager, load_config_file
from .schemas import (
    AppConfig,
    ExecutorConfig,
    LoggingConfig,
    ProviderConfig,
    StateConfig,
)

__all__ = [
    "ConfigurationManager",
    "load_config_file",
    "AppConfig",
    "ExecutorConfig",
    "LoggingConfig",
    "ProviderConfig",
    "StateConfig",
]
