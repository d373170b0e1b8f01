"""Infrastructure registry patterns."""

from .provider_registry import ProviderRegistry, UnsupportedProviderError, get_provider_registry

__all__ = [
    "ProviderRegistry",
    "UnsupportedProviderError",
    "get_provider_registry",
]
