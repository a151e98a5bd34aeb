"""
Graph Store: immutable, versioned routing graphs.

A RoutingGraph is validated once at construction and never mutated.
Updates produce a new version. The version id is the SHA-256 of the
canonical graph encoding, so the same definition always loads as the same
version and routing stays reproducible across restarts.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.canonical import canonical_hash
from ..core.errors import GraphIntegrityError
from .model import GraphEdge, GraphNode

logger = logging.getLogger(__name__)

GRAPH_HASH_VERSION = 1


class RoutingGraph:
    """
    One immutable graph version.

    Usage:
        graph = RoutingGraph(nodes, edges)
        graph.outgoing_edges("A")  # ordered by destination id
        graph.version               # content hash
    """

    def __init__(
        self,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        parent_version: Optional[str] = None,
    ) -> None:
        node_map: Dict[str, GraphNode] = {}
        for node in nodes:
            if not node.node_id:
                raise GraphIntegrityError("node id must be non-empty")
            if node.node_id in node_map:
                raise GraphIntegrityError(f"duplicate node: {node.node_id}")
            node_map[node.node_id] = node

        declared: Dict[Tuple[str, str], GraphEdge] = {}
        edge_map: Dict[Tuple[str, str], GraphEdge] = {}
        for edge in edges:
            if edge.source not in node_map:
                raise GraphIntegrityError(f"edge {edge.source}->{edge.destination} references unknown node {edge.source}")
            if edge.destination not in node_map:
                raise GraphIntegrityError(
                    f"edge {edge.source}->{edge.destination} references unknown node {edge.destination}"
                )
            if edge.source == edge.destination:
                raise GraphIntegrityError(f"self-loop edge on node {edge.source}")
            if edge.key in edge_map:
                raise GraphIntegrityError(f"duplicate edge: {edge.source}->{edge.destination}")
            if edge.capacity is not None and (
                isinstance(edge.capacity, bool) or not isinstance(edge.capacity, int) or edge.capacity < 0
            ):
                raise GraphIntegrityError(f"edge {edge.source}->{edge.destination} has invalid capacity {edge.capacity!r}")
            declared[edge.key] = edge
            if edge.protocol is None:
                edge = replace(edge, protocol=node_map[edge.destination].protocol)
            edge_map[edge.key] = edge

        adjacency: Dict[str, List[GraphEdge]] = {node_id: [] for node_id in node_map}
        for key in sorted(edge_map):
            adjacency[key[0]].append(edge_map[key])

        self._nodes = node_map
        self._declared = declared
        self._edges = edge_map
        self._outgoing = {node_id: tuple(out) for node_id, out in adjacency.items()}
        self._parent_version = parent_version
        try:
            self._version = canonical_hash(self.to_dict())
        except (TypeError, ValueError) as ex:
            raise GraphIntegrityError(f"graph is not canonically encodable: {ex}") from ex

    @property
    def version(self) -> str:
        return self._version

    def get_version(self) -> str:
        return self._version

    @property
    def parent_version(self) -> Optional[str]:
        return self._parent_version

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> GraphNode:
        return self._nodes[node_id]

    def get_edge(self, source: str, destination: str) -> Optional[GraphEdge]:
        return self._edges.get((source, destination))

    @property
    def nodes(self) -> Tuple[GraphNode, ...]:
        return tuple(self._nodes[k] for k in sorted(self._nodes))

    @property
    def edges(self) -> Tuple[GraphEdge, ...]:
        return tuple(self._edges[k] for k in sorted(self._edges))

    def outgoing_edges(self, node_id: str) -> Tuple[GraphEdge, ...]:
        """
        Outgoing edges of node_id ordered by destination id ascending.

        This order seeds tie-break determinism downstream. Unknown nodes
        have no outgoing edges.
        """
        return self._outgoing.get(node_id, ())

    def with_updates(
        self,
        nodes: Iterable[GraphNode] = (),
        edges: Iterable[GraphEdge] = (),
        remove_edges: Iterable[Tuple[str, str]] = (),
    ) -> "RoutingGraph":
        """
        Build a new version with nodes/edges added or replaced.

        Starts from the edges as declared, so an edge without an explicit
        protocol follows its destination node's current protocol. The
        result equals a fresh build of the same definition. The current
        version is left untouched.
        """
        node_map = dict(self._nodes)
        for node in nodes:
            node_map[node.node_id] = node
        edge_map = dict(self._declared)
        for key in remove_edges:
            edge_map.pop(tuple(key), None)
        for edge in edges:
            edge_map[edge.key] = edge
        return RoutingGraph(node_map.values(), edge_map.values(), parent_version=self._version)

    def to_dict(self) -> Dict[str, object]:
        return {
            "v": GRAPH_HASH_VERSION,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def __repr__(self) -> str:
        return f"RoutingGraph(version={self._version[:12]}, nodes={len(self._nodes)}, edges={len(self._edges)})"


class GraphStore:
    """
    Registry of published graph versions with a current pointer.

    Readers take a RoutingGraph reference and keep using it; publishing a
    new version only swaps the pointer.
    """

    def __init__(self, initial: Optional[RoutingGraph] = None) -> None:
        self._versions: Dict[str, RoutingGraph] = {}
        self._current: Optional[RoutingGraph] = None
        self._lock = threading.Lock()
        if initial is not None:
            self.publish(initial)

    def publish(self, graph: RoutingGraph) -> str:
        with self._lock:
            self._versions[graph.version] = graph
            self._current = graph
        logger.info("published graph version %s", graph.version[:12])
        return graph.version

    def current(self) -> RoutingGraph:
        graph = self._current
        if graph is None:
            raise GraphIntegrityError("no graph version published")
        return graph

    def get(self, version: str) -> RoutingGraph:
        try:
            return self._versions[version]
        except KeyError:
            raise GraphIntegrityError(f"unknown graph version: {version}") from None

    def versions(self) -> List[str]:
        return sorted(self._versions)
