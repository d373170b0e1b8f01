"""Plan: ordered operations annotated with parallel execution groups."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .operation import Action, Operation, Step


class Plan:
    """
    Dependency-ordered sequence of operations.

    ``groups`` lists executable operation keys; every operation in a group only
    depends on operations of earlier groups, so a group may run concurrently.
    ``dependencies`` maps each executable key to the executable keys that must
    succeed before it starts.
    """

    def __init__(self, operations: Sequence[Operation], groups: Sequence[Sequence[str]],
                 dependencies: Mapping[str, Sequence[str]], destroy: bool = False):
        self._operations = tuple(operations)
        self._by_key = {op.key: op for op in self._operations}
        self._groups = tuple(tuple(group) for group in groups)
        self._dependencies = {key: tuple(deps) for key, deps in dependencies.items()}
        self.destroy = destroy

    @property
    def operations(self) -> List[Operation]:
        return list(self._operations)

    @property
    def groups(self) -> List[List[Operation]]:
        return [[self._by_key[key] for key in group] for group in self._groups]

    @property
    def executable_operations(self) -> List[Operation]:
        return [op for group in self.groups for op in group]

    def get(self, key: str) -> Optional[Operation]:
        return self._by_key.get(key)

    def dependencies_of(self, key: str) -> List[str]:
        return list(self._dependencies.get(key, ()))

    def dependents_of(self, key: str) -> List[str]:
        """Executable keys that transitively depend on ``key``."""
        result = []
        frontier = {key}
        for group in self._groups:
            for candidate in group:
                if any(dep in frontier for dep in self._dependencies.get(candidate, ())):
                    frontier.add(candidate)
                    result.append(candidate)
        return result

    def has_changes(self) -> bool:
        return any(op.action != Action.NOOP for op in self._operations)

    def summary(self) -> Dict[str, int]:
        """Count of logical ids per action; a replace counts once."""
        counts = {action.value: 0 for action in Action}
        for op in self._operations:
            if op.action == Action.REPLACE and op.step == Step.DESTROY:
                continue
            counts[op.action.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destroy": self.destroy,
            "summary": self.summary(),
            "operations": [op.to_dict() for op in self._operations],
            "groups": [list(group) for group in self._groups],
        }

    def __iter__(self):
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"Plan(operations={len(self)}, groups={len(self._groups)}, summary={self.summary()})"
