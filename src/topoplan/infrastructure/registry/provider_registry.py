"""Provider Registry - registry pattern for provider factories.

Providers are created by type name. A type written as ``module:factory`` is
imported on demand, so third-party providers plug in without registration.
"""

import importlib
import threading
from typing import Any, Callable, Dict, List, Optional

from topoplan.domain.base.exceptions import ConfigurationError
from topoplan.domain.base.ports.provider_port import ProviderPort
from topoplan.domain.resource.kind import KindCatalog
from topoplan.infrastructure.logging.logger import get_logger


class UnsupportedProviderError(ConfigurationError):
    """Exception raised when an unsupported provider type is requested."""


ProviderFactory = Callable[[Dict[str, Any], Optional[KindCatalog]], ProviderPort]


class ProviderRegistry:
    """
    Registry for provider factories.

    A factory receives the ``provider.options`` mapping and the kind catalog of
    the topology being applied, and returns a ``ProviderPort``.

    Thread-safe singleton implementation.
    """

    _instance: Optional["ProviderRegistry"] = None
    _lock = threading.RLock()

    def __init__(self):
        """Initialize provider registry."""
        self._registrations: Dict[str, ProviderFactory] = {}
        self._logger = get_logger(__name__)
        self._registration_lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> "ProviderRegistry":
        """Get singleton instance of provider registry with built-in providers registered."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    from topoplan.providers.simulated.registration import register_simulated_provider

                    instance = cls()
                    register_simulated_provider(instance)
                    cls._instance = instance
        return cls._instance

    def register_provider(self, provider_type: str, factory: ProviderFactory) -> None:
        """
        Register a provider factory.

        Args:
            provider_type: Type identifier for the provider (e.g., 'simulated')
            factory: Callable building the provider from options and catalog

        Raises:
            ValueError: If provider_type is already registered
        """
        with self._registration_lock:
            if provider_type in self._registrations:
                raise ValueError(f"Provider type '{provider_type}' is already registered")
            self._registrations[provider_type] = factory
            self._logger.info(f"Registered provider: {provider_type}")

    def unregister_provider(self, provider_type: str) -> bool:
        """
        Unregister a provider.

        Returns:
            True if provider was unregistered, False if not found
        """
        with self._registration_lock:
            if provider_type in self._registrations:
                del self._registrations[provider_type]
                self._logger.info(f"Unregistered provider: {provider_type}")
                return True
            return False

    def is_provider_registered(self, provider_type: str) -> bool:
        return provider_type in self._registrations

    def get_registered_providers(self) -> List[str]:
        return sorted(self._registrations)

    def create_provider(self, provider_type: str, options: Optional[Dict[str, Any]] = None,
                        catalog: Optional[KindCatalog] = None) -> ProviderPort:
        """
        Create a provider using its registered or importable factory.

        Args:
            provider_type: Registered type name or ``module:factory`` path
            options: Provider options from configuration
            catalog: Kind catalog of the topology

        Returns:
            Created provider instance

        Raises:
            UnsupportedProviderError: If the type is neither registered nor importable
            ConfigurationError: If the factory fails
        """
        factory = self._registrations.get(provider_type)
        if factory is None:
            if ":" not in provider_type:
                available_providers = ", ".join(self.get_registered_providers())
                raise UnsupportedProviderError(
                    f"Provider type '{provider_type}' is not registered. "
                    f"Available providers: {available_providers}"
                )
            factory = self._import_factory(provider_type)

        try:
            provider = factory(dict(options or {}), catalog)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to create provider '{provider_type}': {str(e)}"
            ) from e

        if not isinstance(provider, ProviderPort):
            raise ConfigurationError(
                f"Provider factory '{provider_type}' returned {type(provider).__name__}, "
                "which does not implement ProviderPort"
            )
        self._logger.debug(f"Created provider: {provider_type}")
        return provider

    def clear_registrations(self) -> None:
        """Clear all provider registrations. Used primarily for testing."""
        with self._registration_lock:
            self._registrations.clear()

    @staticmethod
    def _import_factory(path: str) -> ProviderFactory:
        module_name, _, attribute = path.partition(":")
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise UnsupportedProviderError(f"Cannot import provider module '{module_name}': {e}") from e
        factory = getattr(module, attribute, None)
        if not callable(factory):
            raise UnsupportedProviderError(f"Provider factory '{path}' is not callable")
        return factory


def get_provider_registry() -> ProviderRegistry:
    """Get the global provider registry instance."""
    return ProviderRegistry.get_instance()
