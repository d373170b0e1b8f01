"""JSON persistence."""

from .state_store import JSONStateStore

__all__ = ["JSONStateStore"]
