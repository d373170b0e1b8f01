"""Application layer: plan execution and the topology service."""

from .dto import ApplyResult, OperationOutcome, OperationStatus
from .exceptions import ProviderError, UnresolvedReferenceError
from .executor import Executor, apply
from .service import TopologyService

__all__ = [
    "ApplyResult",
    "Executor",
    "OperationOutcome",
    "OperationStatus",
    "ProviderError",
    "TopologyService",
    "UnresolvedReferenceError",
    "apply",
]
