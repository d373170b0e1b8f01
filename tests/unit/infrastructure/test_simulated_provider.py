"""Tests for the simulated provider."""
import pytest

from topoplan.providers.simulated import SimulatedProvider, SimulatedProviderConfig, SimulatedProviderError


class TestSimulatedProvider:
    """Test the simulated resource lifecycle."""

    def test_create_assigns_outputs(self, simulated_provider):
        outputs = simulated_provider.apply("create", "storage.bucket", "Backups", {}, {})

        assert outputs["id"].startswith("sim-storage-bucket-")
        assert outputs["arn"] == f"arn:sim:storage.bucket:{outputs['id']}"
        assert simulated_provider.resolve("storage.bucket", "Backups") == outputs

    def test_scalar_property_echoed_as_output(self, simulated_provider):
        outputs = simulated_provider.apply("create", "network.vpc", "VPC", {"cidr": "10.0.0.0/16"}, {})

        assert outputs["cidr"] == "10.0.0.0/16"

    def test_physical_ids_are_deterministic(self, catalog):
        first = SimulatedProvider(catalog=catalog).apply("create", "network.vpc", "VPC", {"cidr": "x"}, {})
        second = SimulatedProvider(catalog=catalog).apply("create", "network.vpc", "VPC", {"cidr": "x"}, {})

        assert first == second

    def test_recreate_gets_new_id(self, simulated_provider):
        first = simulated_provider.apply("create", "test.node", "A", {}, {})
        simulated_provider.apply("delete", "test.node", "A", {}, {}, first)
        second = simulated_provider.apply("create", "test.node", "A", {}, {})

        assert first["id"] != second["id"]

    def test_update_keeps_id(self, simulated_provider):
        created = simulated_provider.apply("create", "test.node", "A", {"value": 1}, {})

        updated = simulated_provider.apply("update", "test.node", "A", {"value": 2}, {}, created)

        assert updated["id"] == created["id"]
        assert simulated_provider.inventory()["A"]["properties"] == {"value": 2}

    def test_update_of_unknown_resource(self, simulated_provider):
        with pytest.raises(SimulatedProviderError):
            simulated_provider.apply("update", "test.node", "A", {}, {})

    def test_delete_unknown_is_idempotent(self, simulated_provider):
        assert simulated_provider.apply("delete", "test.node", "Ghost", {}, {}) == {}

    def test_resolve_checks_kind(self, simulated_provider):
        simulated_provider.apply("create", "test.node", "A", {}, {})

        assert simulated_provider.resolve("network.vpc", "A") is None
        assert simulated_provider.resolve("test.node", "Missing") is None

    def test_injected_failure(self, catalog):
        provider = SimulatedProvider(SimulatedProviderConfig(fail_on=["A", "B:delete"]), catalog)

        with pytest.raises(SimulatedProviderError):
            provider.apply("create", "test.node", "A", {}, {})
        provider.apply("create", "test.node", "B", {}, {})
        with pytest.raises(SimulatedProviderError):
            provider.apply("delete", "test.node", "B", {}, {})

        assert provider.calls == [("create", "A"), ("create", "B"), ("delete", "B")]

    def test_inventory_persists(self, tmp_path, catalog):
        config = SimulatedProviderConfig(persist_path=str(tmp_path / "inventory.json"))
        outputs = SimulatedProvider(config, catalog).apply("create", "test.node", "A", {}, {})

        reloaded = SimulatedProvider(config, catalog)

        assert reloaded.resolve("test.node", "A") == outputs

    def test_invalid_id_prefix(self):
        with pytest.raises(ValueError):
            SimulatedProviderConfig(id_prefix="no spaces")
