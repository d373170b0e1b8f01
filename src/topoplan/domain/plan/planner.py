"""Planner: diffs the desired graph against applied state."""
import logging
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from topoplan.domain.graph.graph import ResourceGraph
from topoplan.domain.resource.kind import KindCatalog
from topoplan.domain.resource.resource import Resource
from topoplan.domain.resource.value_objects import iter_references
from topoplan.domain.state.applied_state import AppliedState, StateEntry

from .exceptions import PlanningError
from .operation import Action, Operation, Step
from .plan import Plan

logger = logging.getLogger(__name__)

# Position of each step kind inside one level of the sequence.
_STEP_RANK = {Step.DESTROY: 0, Step.APPLY: 1, Step.NONE: 2}

_Node = Tuple[str, Step]


class Planner:
    """
    Computes the operations that move applied state to the desired graph.

    Per logical id: desired only -> create, state only -> delete, unchanged
    hashes -> noop, only mutable properties changed -> update, otherwise
    replace. Ordering and grouping come from a DAG of steps, levelled by
    longest path; ties break on step kind then ascending logical id so
    identical inputs always give an identical plan.
    """

    def __init__(self, catalog: KindCatalog):
        self.catalog = catalog

    def plan(self, desired: ResourceGraph, state: AppliedState, destroy: bool = False) -> Plan:
        if destroy:
            desired = ResourceGraph.empty()

        actions, changed = self._decide_actions(desired, state)
        operations = self._emit_operations(desired, state, actions, changed)
        preds = self._step_dependencies(desired, state, actions, operations)
        levels = self._levels(operations, preds)

        ordered = sorted(
            operations.values(),
            key=lambda op: (levels[(op.logical_id, op.step)], _STEP_RANK[op.step], op.logical_id),
        )

        by_level: Dict[int, List[str]] = {}
        for op in ordered:
            if op.is_executable:
                by_level.setdefault(levels[(op.logical_id, op.step)], []).append(op.key)
        groups = [by_level[level] for level in sorted(by_level)]

        dependencies = self._executable_dependencies(operations, preds)
        result = Plan(ordered, groups, dependencies, destroy=destroy)
        logger.info(f"Planned {len(result)} operations in {len(groups)} groups: {result.summary()}")
        return result

    def _decide_actions(self, desired: ResourceGraph,
                        state: AppliedState) -> Tuple[Dict[str, Action], Dict[str, Tuple[str, ...]]]:
        actions: Dict[str, Action] = {}
        changed: Dict[str, Tuple[str, ...]] = {}

        # Topological order: a dependency's action is known before its dependents.
        for logical_id in desired.topological_order:
            resource = desired.get(logical_id)
            entry = state.get(logical_id)
            if entry is None:
                actions[logical_id] = Action.CREATE
                continue

            if entry.kind != resource.kind:
                actions[logical_id] = Action.REPLACE
                changed[logical_id] = tuple(sorted(set(resource.properties) | set(entry.property_hashes)))
                continue

            renewed = frozenset(
                dep for dep in desired.dependencies(logical_id)
                if actions.get(dep) in (Action.CREATE, Action.REPLACE)
            )
            names = self._changed_properties(resource, entry)
            names |= set(resource.properties_referencing(renewed))
            names |= self._stale_references(resource, entry, desired, state, actions, changed)
            changed[logical_id] = tuple(sorted(names))

            if not names:
                # A retention change alone only rewrites the state entry.
                retain_changed = entry.retain_on_delete != self._retain(resource)
                actions[logical_id] = Action.UPDATE if retain_changed else Action.NOOP
            elif all(self.catalog.get(resource.kind).is_mutable(name) for name in names):
                actions[logical_id] = Action.UPDATE
            else:
                actions[logical_id] = Action.REPLACE

        for logical_id in state.logical_ids():
            if logical_id not in desired:
                actions[logical_id] = Action.DELETE

        return actions, changed

    @staticmethod
    def _changed_properties(resource: Resource, entry: StateEntry) -> Set[str]:
        current = resource.property_hashes()
        if not entry.property_hashes:
            # Entries without per-property hashes can only be compared as a whole.
            if entry.properties_hash == resource.properties_hash():
                return set()
            return set(current)
        names = set(current) | set(entry.property_hashes)
        return {name for name in names if current.get(name) != entry.property_hashes.get(name)}

    def _stale_references(self, resource: Resource, entry: StateEntry, desired: ResourceGraph,
                          state: AppliedState, actions: Dict[str, Action],
                          changed: Dict[str, Tuple[str, ...]]) -> Set[str]:
        """
        Properties whose references may resolve to a different value than
        the one last applied. Either the target's properties are updated in
        this plan and the output is not stable, or state already holds a
        value other than the one recorded on ``entry``.
        """
        stale = set()
        for name, value in resource.properties.items():
            for ref in iter_references(value):
                target = desired.get(ref.logical_id)
                if actions.get(ref.logical_id) == Action.UPDATE and changed.get(ref.logical_id) and \
                        not self.catalog.get(target.kind).is_stable_output(ref.output_name):
                    stale.add(name)
                    break
                recorded = entry.resolved_references.get(ref.address)
                current = state.outputs_of(ref.logical_id).get(ref.output_name)
                if recorded is not None and current is not None and recorded != current:
                    stale.add(name)
                    break
        return stale

    def _emit_operations(self, desired: ResourceGraph, state: AppliedState,
                         actions: Dict[str, Action],
                         changed: Dict[str, Tuple[str, ...]]) -> Dict[_Node, Operation]:
        operations: Dict[_Node, Operation] = {}
        for logical_id in sorted(actions):
            action = actions[logical_id]
            resource = desired.get(logical_id)
            entry = state.get(logical_id)
            names = changed.get(logical_id, ())

            if action in (Action.DELETE, Action.REPLACE):
                operations[(logical_id, Step.DESTROY)] = Operation(
                    action=action,
                    logical_id=logical_id,
                    kind=entry.kind,
                    step=Step.DESTROY,
                    before=entry,
                    after=resource,
                    changed_properties=names,
                    # A replace follows the desired retention, a delete the recorded one.
                    retain=self._retain(resource) if action == Action.REPLACE else entry.retain_on_delete,
                )
            if action in (Action.CREATE, Action.UPDATE, Action.REPLACE, Action.NOOP):
                step = Step.NONE if action == Action.NOOP else Step.APPLY
                operations[(logical_id, step)] = Operation(
                    action=action,
                    logical_id=logical_id,
                    kind=resource.kind,
                    step=step,
                    before=entry,
                    after=resource,
                    changed_properties=names,
                    retain=self._retain(resource),
                )
        return operations

    def _retain(self, resource: Resource) -> bool:
        if resource.retain_on_delete is not None:
            return resource.retain_on_delete
        return self.catalog.get(resource.kind).retain_on_delete

    @staticmethod
    def _step_dependencies(desired: ResourceGraph, state: AppliedState,
                           actions: Dict[str, Action],
                           operations: Dict[_Node, Operation]) -> Dict[_Node, Set[_Node]]:
        preds: Dict[_Node, Set[_Node]] = {node: set() for node in operations}

        def forward_node(logical_id: str) -> Optional[_Node]:
            for step in (Step.APPLY, Step.NONE):
                if (logical_id, step) in operations:
                    return (logical_id, step)
            return None

        # Desired edges: dependencies are applied before their dependents.
        for logical_id in desired.topological_order:
            node = forward_node(logical_id)
            for dep in desired.dependencies(logical_id):
                dep_node = forward_node(dep)
                if dep_node is not None:
                    preds[node].add(dep_node)

        # Recorded edges: dependents are destroyed before their dependencies.
        detach: List[Tuple[_Node, _Node]] = []
        for dependent in state.logical_ids():
            entry = state.get(dependent)
            for dependency in entry.dependencies:
                target = (dependency, Step.DESTROY)
                if target not in operations:
                    continue
                if (dependent, Step.DESTROY) in operations:
                    preds[target].add((dependent, Step.DESTROY))
                elif (dependent, Step.APPLY) in operations and \
                        dependency not in desired.transitive_dependencies(dependent):
                    detach.append((target, (dependent, Step.APPLY)))

        for logical_id, action in actions.items():
            if action == Action.REPLACE:
                preds[(logical_id, Step.APPLY)].add((logical_id, Step.DESTROY))

        # A surviving dependent that dropped the edge is updated before the old
        # dependency goes away, unless that update itself waits on the destroy.
        for target, updater in sorted(detach):
            if not _reaches(preds, updater, target):
                preds[target].add(updater)

        return preds

    @staticmethod
    def _levels(operations: Dict[_Node, Operation], preds: Dict[_Node, Set[_Node]]) -> Dict[_Node, int]:
        """Longest-path level per node; noop nodes pass readiness through without a level of their own."""
        levels: Dict[_Node, int] = {}
        settled: Dict[_Node, int] = {}
        remaining = {node: len(p) for node, p in preds.items()}
        successors: Dict[_Node, List[_Node]] = {node: [] for node in preds}
        for node, p in preds.items():
            for pred in p:
                successors[pred].append(node)

        ready = sorted(node for node, count in remaining.items() if count == 0)
        while ready:
            node = ready.pop(0)
            level = max((settled[p] for p in preds[node]), default=0)
            levels[node] = level
            settled[node] = level if node[1] == Step.NONE else level + 1
            for succ in successors[node]:
                remaining[succ] -= 1
                if remaining[succ] == 0:
                    ready.append(succ)
            ready.sort()

        if len(levels) != len(operations):
            stuck = sorted(f"{lid}:{step.value}" for (lid, step) in operations if (lid, step) not in levels)
            raise PlanningError(f"Operations could not be ordered: {', '.join(stuck)}", stuck)
        return levels

    @staticmethod
    def _executable_dependencies(operations: Dict[_Node, Operation],
                                 preds: Dict[_Node, Set[_Node]]) -> Dict[str, List[str]]:
        """Collapse noop nodes so each executable key lists its executable predecessors."""
        cache: Dict[_Node, FrozenSet[_Node]] = {}

        def effective(node: _Node) -> FrozenSet[_Node]:
            if node in cache:
                return cache[node]
            result: Set[_Node] = set()
            for pred in preds[node]:
                if pred[1] == Step.NONE:
                    result |= effective(pred)
                else:
                    result.add(pred)
            cache[node] = frozenset(result)
            return cache[node]

        return {
            op.key: sorted(operations[p].key for p in effective(node))
            for node, op in operations.items()
            if op.is_executable
        }


def _reaches(preds: Dict[_Node, Set[_Node]], start: _Node, goal: _Node) -> bool:
    """True if ``goal`` is a transitive predecessor of ``start``."""
    seen: Set[_Node] = set()
    pending = [start]
    while pending:
        node = pending.pop()
        for pred in preds[node]:
            if pred == goal:
                return True
            if pred not in seen:
                seen.add(pred)
                pending.append(pred)
    return False


def plan(desired: ResourceGraph, state: AppliedState, catalog: KindCatalog,
         destroy: bool = False) -> Plan:
    """Convenience wrapper around ``Planner(catalog).plan``."""
    return Planner(catalog).plan(desired, state, destroy=destroy)
