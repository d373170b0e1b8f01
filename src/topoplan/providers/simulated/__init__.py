"""Simulated provider."""

from .config import SimulatedProviderConfig
from .provider import SimulatedProvider, SimulatedProviderError
from .registration import create_simulated_provider, register_simulated_provider

__all__ = [
    "SimulatedProvider",
    "SimulatedProviderConfig",
    "SimulatedProviderError",
    "create_simulated_provider",
    "register_simulated_provider",
]
