"""Shared fixtures for topoplan tests."""
import logging
from typing import Any, Dict, Iterable, Optional

import pytest

from topoplan.domain.graph import build
from topoplan.domain.resource import KindCatalog, Reference, Resource, ResourceKind
from topoplan.infrastructure.persistence.memory import InMemoryStateStore
from topoplan.providers.simulated import SimulatedProvider, SimulatedProviderConfig


@pytest.fixture
def catalog() -> KindCatalog:
    """Kinds modelled on a small web application stack."""
    return KindCatalog([
        ResourceKind(
            name="network.vpc",
            outputs=frozenset({"id", "cidr"}),
            mutable_properties=frozenset({"tags"}),
            required_properties=frozenset({"cidr"}),
        ),
        ResourceKind(
            name="network.security_group",
            outputs=frozenset({"id"}),
            mutable_properties=frozenset({"tags", "ingress"}),
            required_properties=frozenset({"vpc_id"}),
        ),
        ResourceKind(
            name="compute.instance",
            outputs=frozenset({"id", "public_ip"}),
            mutable_properties=frozenset({"tags"}),
        ),
        ResourceKind(
            name="storage.bucket",
            outputs=frozenset({"id", "arn"}),
            retain_on_delete=True,
        ),
        ResourceKind(name="test.node", outputs=frozenset({"id"}), mutable_properties=frozenset({"value"})),
        ResourceKind(
            name="test.source",
            outputs=frozenset({"id", "name", "arn"}),
            mutable_properties=frozenset({"name"}),
            stable_outputs=frozenset({"arn"}),
        ),
    ])


@pytest.fixture
def make_vpc():
    def _make(cidr: str = "10.0.0.0/16", **extra: Any) -> Resource:
        return Resource(kind="network.vpc", logical_id="VPC", properties={"cidr": cidr, **extra})
    return _make


@pytest.fixture
def make_sg():
    def _make(vpc_ref: str = "VPC.id", **extra: Any) -> Resource:
        return Resource(
            kind="network.security_group",
            logical_id="SecurityGroup",
            properties={"vpc_id": Reference.parse(vpc_ref), **extra},
        )
    return _make


@pytest.fixture
def make_node():
    """Generic ``test.node`` resources with explicit dependencies."""
    def _make(logical_id: str, depends_on: Iterable[str] = (), value: Any = None,
              properties: Optional[Dict[str, Any]] = None) -> Resource:
        props = dict(properties or {})
        if value is not None:
            props["value"] = value
        return Resource(kind="test.node", logical_id=logical_id, properties=props,
                        depends_on=frozenset(depends_on))
    return _make


@pytest.fixture
def build_graph(catalog):
    def _build(*resources: Resource):
        return build(list(resources), catalog)
    return _build


@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def simulated_provider(catalog) -> SimulatedProvider:
    return SimulatedProvider(SimulatedProviderConfig(), catalog)


@pytest.fixture(autouse=True)
def reset_root_logging():
    """CLI runs install root handlers bound to captured streams; drop them after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
