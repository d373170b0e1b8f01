"""State store factory keyed by configuration."""
from typing import Optional

from topoplan.config.schemas.state_schema import StateConfig
from topoplan.domain.base.ports.state_repository_port import StateRepositoryPort

from .json import JSONStateStore
from .memory import InMemoryStateStore


def create_state_store(config: StateConfig, path_override: Optional[str] = None) -> StateRepositoryPort:
    """Create the state store selected by ``config.type``."""
    if config.type == "memory":
        return InMemoryStateStore()
    return JSONStateStore(path_override or config.path, backup_count=config.backup_count)
