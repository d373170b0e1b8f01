"""Topology document exceptions."""
from typing import Optional

from topoplan.domain.base.exceptions import DomainException


class TopologyLoadError(DomainException):
    """Raised when a topology document cannot be read or is malformed."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, "TOPOLOGY_LOAD_ERROR", {"source": source})
        self.source = source
