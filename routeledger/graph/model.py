"""
Graph node and edge records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class GraphNode:
    """
    A protocol or venue.

    Fields:
        node_id: Unique node identifier
        protocol: Protocol classification tag
    """
    node_id: str
    protocol: str

    def to_dict(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "protocol": self.protocol}


@dataclass(frozen=True)
class GraphEdge:
    """
    An allowed transition between two nodes.

    Fields:
        source: Source node id
        destination: Destination node id
        protocol: Allowed-protocol tag (None = destination node's protocol,
            resolved when the graph version is built)
        capacity: Maximum volume the edge accepts (None = unbounded)
        attributes: Extra static attributes for named constraints
    """
    source: str
    destination: str
    protocol: Optional[str] = None
    capacity: Optional[int] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple:
        return (self.source, self.destination)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "destination": self.destination,
            "protocol": self.protocol,
            "capacity": self.capacity,
            "attributes": dict(self.attributes),
        }
