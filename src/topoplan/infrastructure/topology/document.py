"""Parsed topology document."""
from typing import Any, Dict, List, Optional

from topoplan.domain.graph import DanglingReferenceError, ResourceGraph, build
from topoplan.domain.resource.kind import KindCatalog
from topoplan.domain.resource.resource import Resource
from topoplan.domain.resource.value_objects import Reference
from topoplan.domain.state.applied_state import AppliedState


class TopologyDocument:
    """
    A named set of resources together with the kinds they use and the
    outputs the topology publishes once applied.
    """

    def __init__(self, name: str, catalog: KindCatalog, resources: List[Resource],
                 outputs: Optional[Dict[str, Reference]] = None, source: Optional[str] = None):
        self.name = name
        self.catalog = catalog
        self.resources = list(resources)
        self.outputs = dict(outputs or {})
        self.source = source

    def build_graph(self) -> ResourceGraph:
        """Validate the resources and published outputs, then build the dependency graph."""
        graph = build(self.resources, self.catalog)
        for name, ref in sorted(self.outputs.items()):
            target = graph.get(ref.logical_id)
            if target is None:
                raise DanglingReferenceError(name, ref.logical_id, ref.output_name, owner="Output")
            if not self.catalog.get(target.kind).declares_output(ref.output_name):
                raise DanglingReferenceError(
                    name,
                    ref.logical_id,
                    ref.output_name,
                    reason=f"kind '{target.kind}' does not declare output '{ref.output_name}'",
                    owner="Output",
                )
        return graph

    def resolve_outputs(self, state: AppliedState) -> Dict[str, Optional[str]]:
        """Values of the published outputs; None where the resource is not applied yet."""
        return {
            name: state.outputs_of(ref.logical_id).get(ref.output_name)
            for name, ref in sorted(self.outputs.items())
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "kinds": self.catalog.names(),
            "resources": [r.logical_id for r in self.resources],
            "outputs": {name: ref.address for name, ref in sorted(self.outputs.items())},
        }

    def __repr__(self) -> str:
        return f"TopologyDocument(name={self.name!r}, resources={len(self.resources)})"
