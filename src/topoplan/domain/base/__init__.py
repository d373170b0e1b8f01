"""Shared kernel: base exceptions and ports."""

from .exceptions import (
    ConfigurationError,
    DomainException,
    EntityNotFoundError,
    ValidationError,
)

__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "EntityNotFoundError",
]
