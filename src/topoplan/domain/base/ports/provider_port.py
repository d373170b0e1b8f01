"""Domain port for provider operations."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional


class ProviderPort(ABC):
    """
    Capability the executor drives to create, change and remove resources.

    The core never interprets ``kind``; a provider maps kinds to real API calls.
    Implementations must be safe to call from several worker threads at once.
    """

    @abstractmethod
    def resolve(self, kind: str, logical_id: str) -> Optional[Dict[str, str]]:
        """Return the current outputs of a resource, or None if it does not exist."""

    @abstractmethod
    def apply(
        self,
        action: str,
        kind: str,
        logical_id: str,
        properties: Mapping[str, Any],
        resolved_references: Mapping[str, Any],
        prior_outputs: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """
        Perform a single resource operation.

        Args:
            action: One of ``create``, ``update`` or ``delete``
            kind: Resource kind name
            logical_id: Stable logical identifier
            properties: Desired properties with references already substituted
            resolved_references: ``"Id.output"`` -> value for every reference used
            prior_outputs: Outputs recorded by the last successful operation

        Returns:
            Outputs of the resource after the operation (empty for deletes)

        Raises:
            Exception: Any failure; the executor records it per operation
        """

    def get_provider_info(self) -> Dict[str, Any]:
        """Get provider information."""
        return {"type": self.__class__.__name__}
