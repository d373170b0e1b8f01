"""Immutable resource graph."""
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple

from topoplan.domain.resource.resource import Resource


class ResourceGraph:
    """
    Resources keyed by logical id plus their dependency edges.

    Built once per planning pass by ``build``; nothing mutates it afterwards.
    Iteration follows the topological order (dependencies first).
    """

    def __init__(self, resources: Mapping[str, Resource],
                 edges: Mapping[str, FrozenSet[str]], order: Sequence[str]):
        self._resources = MappingProxyType(dict(resources))
        self._edges = MappingProxyType({k: frozenset(v) for k, v in edges.items()})
        self._order: Tuple[str, ...] = tuple(order)
        dependents: Dict[str, set] = {logical_id: set() for logical_id in self._resources}
        for logical_id, deps in self._edges.items():
            for dep in deps:
                dependents[dep].add(logical_id)
        self._dependents = MappingProxyType({k: frozenset(v) for k, v in dependents.items()})
        self._closure_cache: Dict[str, FrozenSet[str]] = {}

    @classmethod
    def empty(cls) -> "ResourceGraph":
        return cls({}, {}, [])

    @property
    def resources(self) -> Mapping[str, Resource]:
        return self._resources

    @property
    def topological_order(self) -> Tuple[str, ...]:
        return self._order

    def get(self, logical_id: str) -> Optional[Resource]:
        return self._resources.get(logical_id)

    def dependencies(self, logical_id: str) -> FrozenSet[str]:
        """Direct dependencies (explicit and reference-derived)."""
        return self._edges.get(logical_id, frozenset())

    def dependents(self, logical_id: str) -> FrozenSet[str]:
        """Resources that directly depend on ``logical_id``."""
        return self._dependents.get(logical_id, frozenset())

    def transitive_dependencies(self, logical_id: str) -> FrozenSet[str]:
        """Every resource ``logical_id`` depends on, directly or indirectly."""
        cached = self._closure_cache.get(logical_id)
        if cached is not None:
            return cached
        seen: set = set()
        pending: List[str] = list(self.dependencies(logical_id))
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self.dependencies(current))
        closure = frozenset(seen)
        self._closure_cache[logical_id] = closure
        return closure

    def edges(self) -> List[Tuple[str, str]]:
        """All ``(dependent, dependency)`` pairs, sorted."""
        return sorted((src, dst) for src, deps in self._edges.items() for dst in deps)

    def __contains__(self, logical_id: object) -> bool:
        return logical_id in self._resources

    def __iter__(self) -> Iterator[Resource]:
        return (self._resources[logical_id] for logical_id in self._order)

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"ResourceGraph(resources={len(self)}, edges={len(self.edges())})"
