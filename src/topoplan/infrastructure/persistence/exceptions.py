"""Persistence exceptions."""
from topoplan.domain.base.exceptions import DomainException


class PersistenceError(DomainException):
    """Base exception for persistence-related errors."""


class StateCorruptionError(PersistenceError):
    """Raised when a state file cannot be parsed and no backup could be recovered."""


class StateVersionError(PersistenceError):
    """Raised when a state file was written by an unsupported format version."""
