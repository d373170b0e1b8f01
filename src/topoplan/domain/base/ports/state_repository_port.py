"""Domain port for applied state persistence."""

from abc import ABC, abstractmethod

from topoplan.domain.state.applied_state import AppliedState, StateEntry


class StateRepositoryPort(ABC):
    """Persisted, versioned store of applied state keyed by logical id."""

    @abstractmethod
    def load(self) -> AppliedState:
        """Read the whole state document."""

    @abstractmethod
    def save_entry(self, logical_id: str, entry: StateEntry) -> AppliedState:
        """Record one entry durably and return the updated snapshot."""

    @abstractmethod
    def remove_entry(self, logical_id: str) -> AppliedState:
        """Forget one entry durably and return the updated snapshot."""
