"""Resource bounded context: resources, kinds and references."""

from .exceptions import MissingPropertyError, ResourceValidationError, UnknownKindError
from .kind import KindCatalog, ResourceKind
from .resource import Resource
from .value_objects import Reference, hash_value, iter_references, substitute_references

__all__ = [
    "Resource",
    "ResourceKind",
    "KindCatalog",
    "Reference",
    "hash_value",
    "iter_references",
    "substitute_references",
    "ResourceValidationError",
    "UnknownKindError",
    "MissingPropertyError",
]
