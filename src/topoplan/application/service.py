"""
Topology service - single entry point for validating, planning and applying topologies.

The CLI (and any other caller) goes through this service; it wires the
configured state store and provider to the domain planner and the executor.
"""
import threading
from typing import Dict, Optional

from topoplan.config.schemas import AppConfig
from topoplan.domain.base.ports.provider_port import ProviderPort
from topoplan.domain.base.ports.state_repository_port import StateRepositoryPort
from topoplan.domain.graph.graph import ResourceGraph
from topoplan.domain.plan.plan import Plan
from topoplan.domain.plan.planner import Planner
from topoplan.domain.state.applied_state import AppliedState
from topoplan.infrastructure.logging.logger import get_logger
from topoplan.infrastructure.persistence.registration import create_state_store
from topoplan.infrastructure.registry.provider_registry import ProviderRegistry, get_provider_registry
from topoplan.infrastructure.topology import TopologyDocument, load_topology

from .dto import ApplyResult
from .executor import Executor


class TopologyService:
    """Coordinates topology documents, applied state and the provider."""

    def __init__(self, config: Optional[AppConfig] = None,
                 state_store: Optional[StateRepositoryPort] = None,
                 provider: Optional[ProviderPort] = None,
                 registry: Optional[ProviderRegistry] = None,
                 state_path: Optional[str] = None):
        """
        Initialize the service.

        Args:
            config: Application configuration (defaults when None)
            state_store: State store; built from ``config.state`` when None
            provider: Provider; built from ``config.provider`` per topology when None
            registry: Provider registry used to build providers
            state_path: Overrides ``config.state.path``
        """
        self.config = config or AppConfig()
        self.logger = get_logger(__name__)
        self.state_store = state_store or create_state_store(self.config.state, state_path)
        self._provider = provider
        self._registry = registry

    def load(self, path: str) -> TopologyDocument:
        return load_topology(path)

    def validate(self, document: TopologyDocument) -> ResourceGraph:
        """Build the dependency graph, raising on any structural error."""
        graph = document.build_graph()
        self.logger.info(f"Topology '{document.name}' is valid: {len(graph)} resources")
        return graph

    def state(self) -> AppliedState:
        return self.state_store.load()

    def plan(self, document: TopologyDocument, destroy: bool = False) -> Plan:
        """Diff the topology against applied state."""
        graph = self.validate(document)
        return Planner(document.catalog).plan(graph, self.state_store.load(), destroy=destroy)

    def apply(self, document: TopologyDocument, cancel_event: Optional[threading.Event] = None,
              plan: Optional[Plan] = None, destroy: bool = False) -> ApplyResult:
        """
        Plan (unless ``plan`` is given) and execute.

        Returns:
            ApplyResult; provider failures are reported there, not raised
        """
        plan = plan or self.plan(document, destroy=destroy)
        if not plan.has_changes():
            self.logger.info("No changes. Applied state matches the topology")

        executor = Executor(
            self.provider_for(document),
            self.state_store,
            max_workers=self.config.executor.max_workers,
            continue_on_error=self.config.executor.continue_on_error,
        )
        return executor.apply(plan, cancel_event)

    def destroy(self, document: TopologyDocument,
                cancel_event: Optional[threading.Event] = None) -> ApplyResult:
        """Delete every applied resource in reverse dependency order."""
        return self.apply(document, cancel_event, destroy=True)

    def outputs(self, document: TopologyDocument) -> Dict[str, Optional[str]]:
        return document.resolve_outputs(self.state_store.load())

    def provider_for(self, document: TopologyDocument) -> ProviderPort:
        """The injected provider, or one created from configuration for this topology."""
        if self._provider is None:
            registry = self._registry or get_provider_registry()
            self._provider = registry.create_provider(
                self.config.provider.type,
                self.config.provider.options,
                document.catalog,
            )
            self.logger.debug(f"Using provider {self._provider.get_provider_info()}")
        return self._provider
