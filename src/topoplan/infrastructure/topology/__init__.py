"""Topology document loading."""

from .document import TopologyDocument
from .exceptions import TopologyLoadError
from .loader import load_topology, loads_topology, parse_topology

__all__ = [
    "TopologyDocument",
    "TopologyLoadError",
    "load_topology",
    "loads_topology",
    "parse_topology",
]
