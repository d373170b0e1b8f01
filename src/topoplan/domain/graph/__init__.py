"""Graph bounded context: dependency graph construction."""

from .builder import build
from .exceptions import CycleError, DanglingReferenceError, DuplicateIdError, GraphError
from .graph import ResourceGraph

__all__ = [
    "build",
    "ResourceGraph",
    "GraphError",
    "CycleError",
    "DuplicateIdError",
    "DanglingReferenceError",
]
