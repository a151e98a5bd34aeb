"""
Routing graph: nodes are protocols/venues, edges are allowed transitions.
"""

from .model import GraphNode, GraphEdge
from .store import RoutingGraph, GraphStore

__all__ = [
    "GraphNode",
    "GraphEdge",
    "RoutingGraph",
    "GraphStore",
]
