"""Graph builder: validates resources and orders them by dependency."""
import logging
from typing import Dict, FrozenSet, Iterable, List

from topoplan.domain.resource.exceptions import MissingPropertyError, UnknownKindError
from topoplan.domain.resource.kind import KindCatalog
from topoplan.domain.resource.resource import Resource

from .exceptions import CycleError, DanglingReferenceError, DuplicateIdError
from .graph import ResourceGraph

logger = logging.getLogger(__name__)

_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def build(resources: Iterable[Resource], catalog: KindCatalog) -> ResourceGraph:
    """
    Assemble resources into an immutable, acyclic dependency graph.

    Edges are the explicit ``depends_on`` entries plus one edge per resource
    referenced by a property value.

    Raises:
        DuplicateIdError: Two resources share a logical id
        UnknownKindError: A resource kind is not in the catalog
        MissingPropertyError: A required property is absent
        DanglingReferenceError: A dependency or reference target does not exist,
            or a reference names an output the target kind does not declare
        CycleError: The edges form a cycle
    """
    by_id: Dict[str, Resource] = {}
    for resource in resources:
        existing = by_id.get(resource.logical_id)
        if existing is not None:
            raise DuplicateIdError(resource.logical_id, [existing.kind, resource.kind])
        by_id[resource.logical_id] = resource

    for logical_id in sorted(by_id):
        _validate_kind(by_id[logical_id], catalog)

    edges = {logical_id: _collect_edges(by_id[logical_id], by_id, catalog) for logical_id in by_id}
    order = _topological_order(edges)

    logger.debug(f"Built resource graph with {len(order)} resources")
    return ResourceGraph(by_id, edges, order)


def _validate_kind(resource: Resource, catalog: KindCatalog) -> None:
    kind = catalog.find(resource.kind)
    if kind is None:
        raise UnknownKindError(resource.kind, catalog.names(), resource.logical_id)

    missing = sorted(kind.required_properties - set(resource.properties))
    if missing:
        raise MissingPropertyError(resource.logical_id, resource.kind, missing)


def _collect_edges(resource: Resource, by_id: Dict[str, Resource],
                   catalog: KindCatalog) -> FrozenSet[str]:
    for target in sorted(resource.depends_on):
        if target not in by_id:
            raise DanglingReferenceError(resource.logical_id, target, reason="depends_on names an unknown logical id")

    for ref in resource.references():
        target = by_id.get(ref.logical_id)
        if target is None:
            raise DanglingReferenceError(resource.logical_id, ref.logical_id, ref.output_name)
        if not catalog.get(target.kind).declares_output(ref.output_name):
            raise DanglingReferenceError(
                resource.logical_id,
                ref.logical_id,
                ref.output_name,
                reason=f"kind '{target.kind}' does not declare output '{ref.output_name}'",
            )

    return resource.dependency_ids()


def _topological_order(edges: Dict[str, FrozenSet[str]]) -> List[str]:
    """Depth-first post-order with three-colour marking; dependencies come first."""
    state = {node: _UNVISITED for node in edges}
    order: List[str] = []

    for root in sorted(edges):
        if state[root] != _UNVISITED:
            continue
        # Explicit stack of (node, sorted neighbours, next index) keeps deep graphs off the call stack.
        path: List[str] = [root]
        stack = [(root, sorted(edges[root]), 0)]
        state[root] = _IN_PROGRESS
        while stack:
            node, neighbours, index = stack[-1]
            if index == len(neighbours):
                stack.pop()
                path.pop()
                state[node] = _DONE
                order.append(node)
                continue
            stack[-1] = (node, neighbours, index + 1)
            nxt = neighbours[index]
            if state[nxt] == _IN_PROGRESS:
                cycle = path[path.index(nxt):] + [nxt]
                raise CycleError(cycle)
            if state[nxt] == _UNVISITED:
                state[nxt] = _IN_PROGRESS
                path.append(nxt)
                stack.append((nxt, sorted(edges[nxt]), 0))

    return order
