"""State persistence implementations."""

from .exceptions import PersistenceError, StateCorruptionError, StateVersionError
from .json import JSONStateStore
from .memory import InMemoryStateStore
from .registration import create_state_store

__all__ = [
    "JSONStateStore",
    "InMemoryStateStore",
    "create_state_store",
    "PersistenceError",
    "StateCorruptionError",
    "StateVersionError",
]
