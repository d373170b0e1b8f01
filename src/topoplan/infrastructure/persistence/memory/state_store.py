"""In-memory state store for tests and throwaway runs."""
import threading
from typing import Optional

from topoplan.domain.base.ports.state_repository_port import StateRepositoryPort
from topoplan.domain.state.applied_state import AppliedState, StateEntry


class InMemoryStateStore(StateRepositoryPort):
    """State store that keeps the document in process memory."""

    def __init__(self, initial: Optional[AppliedState] = None):
        self._lock = threading.RLock()
        self._state = initial.copy_state() if initial is not None else AppliedState.empty()
        self.writes = 0

    def load(self) -> AppliedState:
        with self._lock:
            return self._state.copy_state()

    def save_entry(self, logical_id: str, entry: StateEntry) -> AppliedState:
        with self._lock:
            self._state.set_entry(logical_id, entry)
            self.writes += 1
            return self._state.copy_state()

    def remove_entry(self, logical_id: str) -> AppliedState:
        with self._lock:
            if self._state.remove_entry(logical_id) is not None:
                self.writes += 1
            return self._state.copy_state()
