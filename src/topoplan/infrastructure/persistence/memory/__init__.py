"""In-memory persistence."""

from .state_store import InMemoryStateStore

__all__ = ["InMemoryStateStore"]
