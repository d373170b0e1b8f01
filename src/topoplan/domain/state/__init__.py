"""State bounded context: applied state records."""

from .applied_state import STATE_FORMAT_VERSION, AppliedState, StateEntry

__all__ = ["AppliedState", "StateEntry", "STATE_FORMAT_VERSION"]
