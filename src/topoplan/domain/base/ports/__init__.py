"""Domain ports for infrastructure concerns."""

from .provider_port import ProviderPort
from .state_repository_port import StateRepositoryPort

__all__ = [
    "ProviderPort",
    "StateRepositoryPort",
]
