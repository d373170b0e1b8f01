"""Plan executor: runs plan groups against a provider and records applied state."""
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from topoplan.domain.base.ports.provider_port import ProviderPort
from topoplan.domain.base.ports.state_repository_port import StateRepositoryPort
from topoplan.domain.plan.operation import Action, Operation, Step
from topoplan.domain.plan.plan import Plan
from topoplan.domain.resource.value_objects import Reference, substitute_references
from topoplan.domain.state.applied_state import AppliedState, StateEntry
from topoplan.infrastructure.logging.logger import get_logger

from .dto import ApplyResult, OperationOutcome, OperationStatus
from .exceptions import ProviderError, UnresolvedReferenceError

_BLOCKING = (OperationStatus.FAILED, OperationStatus.SKIPPED)


class Executor:
    """
    Executes a plan group by group.

    Groups are barriers: a group starts only after every operation of the
    previous group finished. Inside a group up to ``max_workers`` operations
    run concurrently. Each finished operation is persisted to the state store
    before any operation that depends on it is dispatched.

    A failed operation never raises out of ``apply``. Its transitive
    dependents are skipped without a provider call. Unless
    ``continue_on_error`` is set, no group after a failing one is launched.
    """

    def __init__(self, provider: ProviderPort, state_store: StateRepositoryPort,
                 max_workers: int = 4, continue_on_error: bool = False):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.provider = provider
        self.state_store = state_store
        self.max_workers = max_workers
        self.continue_on_error = continue_on_error
        self.logger = get_logger(__name__)
        self._state_lock = threading.Lock()
        self._result_lock = threading.Lock()
        self._state: AppliedState = AppliedState.empty()

    def apply(self, plan: Plan, cancel_event: Optional[threading.Event] = None) -> ApplyResult:
        """
        Execute ``plan``.

        Args:
            plan: Plan produced against the state currently in the store
            cancel_event: When set, no further operation is started

        Returns:
            ApplyResult with one outcome per executable operation
        """
        cancel_event = cancel_event or threading.Event()
        self._state = self.state_store.load()
        outcomes: Dict[str, OperationOutcome] = {}
        halted = False

        self.logger.info(
            f"Applying plan with {len(plan.executable_operations)} operations "
            f"in {len(plan.groups)} groups"
        )

        for index, group in enumerate(plan.groups):
            if halted or cancel_event.is_set():
                break

            runnable: List[Operation] = []
            for op in group:
                if self._blocked(plan, op, outcomes):
                    self._record(outcomes, self._outcome(op, OperationStatus.SKIPPED))
                else:
                    runnable.append(op)

            self._run_group(index, runnable, outcomes, cancel_event)

            if not self.continue_on_error and any(
                outcomes[op.key].status == OperationStatus.FAILED for op in runnable
            ):
                halted = True
                self.logger.warning(f"Group {index} had failures; halting before the next group")

        # Whatever was never dispatched: dependents of failures are skipped, the rest not attempted.
        for op in plan.executable_operations:
            if op.key in outcomes:
                continue
            status = OperationStatus.SKIPPED if self._blocked(plan, op, outcomes) else OperationStatus.NOT_ATTEMPTED
            self._record(outcomes, self._outcome(op, status))

        result = ApplyResult(
            [outcomes[op.key] for op in plan.executable_operations],
            self._state.copy_state(),
            cancelled=cancel_event.is_set(),
            halted=halted,
        )
        self.logger.info(
            f"Apply finished: {len(result.succeeded)} succeeded, {len(result.failed)} failed, "
            f"{len(result.skipped)} skipped, {len(result.not_attempted)} not attempted"
        )
        return result

    def _run_group(self, index: int, runnable: List[Operation],
                   outcomes: Dict[str, OperationOutcome], cancel_event: threading.Event) -> None:
        if not runnable:
            return
        self.logger.debug(f"Starting group {index}: {', '.join(op.key for op in runnable)}")
        workers = min(self.max_workers, len(runnable))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="topoplan") as pool:
            futures = {}
            for op in runnable:
                if cancel_event.is_set():
                    self._record(outcomes, self._outcome(op, OperationStatus.NOT_ATTEMPTED))
                    continue
                futures[pool.submit(self._run_operation, op, cancel_event)] = op
            for future in as_completed(futures):
                self._record(outcomes, future.result())

    def _run_operation(self, op: Operation, cancel_event: threading.Event) -> OperationOutcome:
        # Queued work re-checks cancellation once a worker picks it up.
        if cancel_event.is_set():
            return self._outcome(op, OperationStatus.NOT_ATTEMPTED)

        self.logger.info(f"Starting {op.describe()}")
        try:
            if op.step == Step.DESTROY:
                return self._destroy(op)
            return self._apply(op)
        except Exception as e:
            error = ProviderError(op.provider_action, op.logical_id, e)
            self.logger.error(f"{op.describe()} failed: {e}")
            return self._outcome(op, OperationStatus.FAILED, error=error)

    def _apply(self, op: Operation) -> OperationOutcome:
        resource = op.after
        if op.state_only:
            return self._refresh(op)

        with self._state_lock:
            state = self._state
        resolved: Dict[str, Any] = {}

        def resolve(ref: Reference) -> Any:
            value = state.outputs_of(ref.logical_id).get(ref.output_name)
            if value is None:
                raise UnresolvedReferenceError(op.logical_id, ref.address)
            resolved[ref.address] = value
            return value

        properties = substitute_references(resource.properties, resolve)
        adopted = False

        if op.provider_action == Action.UPDATE.value:
            prior = op.before.outputs if op.before is not None else None
            outputs = self.provider.apply("update", resource.kind, op.logical_id,
                                          properties, resolved, prior)
        else:
            existing = self.provider.resolve(resource.kind, op.logical_id) if op.action == Action.CREATE else None
            if existing is not None:
                # The adopted resource still carries its old configuration.
                self.logger.info(f"Adopting existing {resource.kind} {op.logical_id}")
                outputs = self.provider.apply("update", resource.kind, op.logical_id,
                                              properties, resolved, existing)
                adopted = True
            else:
                outputs = self.provider.apply("create", resource.kind, op.logical_id,
                                              properties, resolved, None)

        entry = StateEntry.from_resource(resource, outputs or {}, retain_on_delete=op.retain,
                                         resolved_references=resolved)
        with self._state_lock:
            self._state = self.state_store.save_entry(op.logical_id, entry)
        self.logger.info(f"Finished {op.describe()}")
        return self._outcome(op, OperationStatus.SUCCEEDED, outputs=entry.outputs, adopted=adopted)

    def _refresh(self, op: Operation) -> OperationOutcome:
        previous = op.before
        entry = StateEntry.from_resource(op.after, previous.outputs, retain_on_delete=op.retain,
                                         resolved_references=previous.resolved_references)
        with self._state_lock:
            self._state = self.state_store.save_entry(op.logical_id, entry)
        self.logger.info(f"Recorded retain_on_delete={op.retain} for {op.logical_id}")
        return self._outcome(op, OperationStatus.SUCCEEDED, outputs=entry.outputs)

    def _destroy(self, op: Operation) -> OperationOutcome:
        entry = op.before
        if op.retain:
            self.logger.info(f"Retaining {entry.kind} {op.logical_id}; removing it from state only")
        else:
            self.provider.apply("delete", entry.kind, op.logical_id, {}, {}, dict(entry.outputs))

        with self._state_lock:
            self._state = self.state_store.remove_entry(op.logical_id)
        self.logger.info(f"Finished {op.describe()}")
        return self._outcome(op, OperationStatus.SUCCEEDED)

    @staticmethod
    def _blocked(plan: Plan, op: Operation, outcomes: Dict[str, OperationOutcome]) -> bool:
        return any(
            dep in outcomes and outcomes[dep].status in _BLOCKING
            for dep in plan.dependencies_of(op.key)
        )

    def _record(self, outcomes: Dict[str, OperationOutcome], outcome: OperationOutcome) -> None:
        with self._result_lock:
            outcomes[outcome.key] = outcome

    @staticmethod
    def _outcome(op: Operation, status: OperationStatus, outputs: Optional[Dict[str, str]] = None,
                 error: Optional[ProviderError] = None, adopted: bool = False) -> OperationOutcome:
        return OperationOutcome(
            logical_id=op.logical_id,
            action=op.action,
            step=op.step,
            status=status,
            outputs=dict(outputs or {}),
            error=error,
            adopted=adopted,
        )


def apply(plan: Plan, provider: ProviderPort, state_store: StateRepositoryPort,
          cancel_event: Optional[threading.Event] = None, max_workers: int = 4,
          continue_on_error: bool = False) -> ApplyResult:
    """Convenience wrapper around ``Executor(...).apply``."""
    executor = Executor(provider, state_store, max_workers=max_workers, continue_on_error=continue_on_error)
    return executor.apply(plan, cancel_event)

