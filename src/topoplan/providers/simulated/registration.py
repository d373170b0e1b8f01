"""Simulated provider registration."""
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from topoplan.domain.resource.kind import KindCatalog
    from topoplan.infrastructure.registry.provider_registry import ProviderRegistry


def create_simulated_provider(options: Dict[str, Any], catalog: Optional["KindCatalog"] = None):
    """Create a simulated provider from the ``provider.options`` mapping."""
    from .config import SimulatedProviderConfig
    from .provider import SimulatedProvider

    return SimulatedProvider(SimulatedProviderConfig(**(options or {})), catalog)


def register_simulated_provider(registry: "ProviderRegistry") -> None:
    """Register the simulated provider unless it is already present."""
    if not registry.is_provider_registered("simulated"):
        registry.register_provider("simulated", create_simulated_provider)
