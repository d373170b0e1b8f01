"""Tests for the provider registry."""
from unittest.mock import Mock

import pytest

from topoplan.domain.base.exceptions import ConfigurationError
from topoplan.domain.base.ports import ProviderPort
from topoplan.infrastructure.registry import ProviderRegistry, UnsupportedProviderError, get_provider_registry
from topoplan.providers.simulated import SimulatedProvider


class TestProviderRegistry:
    """Test provider registration and creation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = ProviderRegistry()
        self.provider = Mock(spec=ProviderPort)
        self.factory = Mock(return_value=self.provider)

    def test_register_and_create(self, catalog):
        self.registry.register_provider("mock", self.factory)

        provider = self.registry.create_provider("mock", {"region": "eu-west-1"}, catalog)

        assert provider is self.provider
        self.factory.assert_called_once_with({"region": "eu-west-1"}, catalog)

    def test_duplicate_registration(self):
        self.registry.register_provider("mock", self.factory)

        with pytest.raises(ValueError):
            self.registry.register_provider("mock", self.factory)

    def test_unregister(self):
        self.registry.register_provider("mock", self.factory)

        assert self.registry.unregister_provider("mock") is True
        assert self.registry.unregister_provider("mock") is False
        assert not self.registry.is_provider_registered("mock")

    def test_clear_registrations(self):
        self.registry.register_provider("mock", self.factory)

        self.registry.clear_registrations()

        assert self.registry.get_registered_providers() == []

    def test_unknown_type(self):
        with pytest.raises(UnsupportedProviderError):
            self.registry.create_provider("cloud")

    def test_factory_failure_is_configuration_error(self):
        self.registry.register_provider("broken", Mock(side_effect=RuntimeError("boom")))

        with pytest.raises(ConfigurationError):
            self.registry.create_provider("broken")

    def test_factory_must_return_provider(self):
        self.registry.register_provider("wrong", Mock(return_value=object()))

        with pytest.raises(ConfigurationError):
            self.registry.create_provider("wrong")

    def test_import_path(self, catalog):
        provider = self.registry.create_provider(
            "topoplan.providers.simulated:create_simulated_provider", {"id_prefix": "x"}, catalog
        )

        assert isinstance(provider, SimulatedProvider)
        assert provider.config.id_prefix == "x"

    def test_bad_import_path(self):
        with pytest.raises(UnsupportedProviderError):
            self.registry.create_provider("topoplan.nowhere:factory")

    def test_global_registry_has_simulated(self):
        registry = get_provider_registry()

        assert registry is ProviderRegistry.get_instance()
        assert "simulated" in registry.get_registered_providers()
