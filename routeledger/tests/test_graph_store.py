"""
Tests for the versioned routing graph.
"""

import pytest

from routeledger.core.errors import GraphIntegrityError
from routeledger.graph import GraphEdge, GraphNode, GraphStore, RoutingGraph


def _nodes(*ids):
    return [GraphNode(node_id=i, protocol=i) for i in ids]


def test_outgoing_edges_ordered_by_destination():
    """Insertion order must not leak into candidate order."""
    graph = RoutingGraph(
        _nodes("A", "B", "C", "D"),
        [GraphEdge("A", "D"), GraphEdge("A", "B"), GraphEdge("A", "C")],
    )
    assert [e.destination for e in graph.outgoing_edges("A")] == ["B", "C", "D"]
    assert graph.outgoing_edges("D") == ()
    assert graph.outgoing_edges("missing") == ()


def test_edge_protocol_defaults_to_destination_protocol():
    graph = RoutingGraph(
        [GraphNode("A", "uniswap"), GraphNode("B", "curve")],
        [GraphEdge("A", "B"), GraphEdge("B", "A", protocol="bridge")],
    )
    assert graph.get_edge("A", "B").protocol == "curve"
    assert graph.get_edge("B", "A").protocol == "bridge"


def test_version_is_content_hash():
    """Same definition in any order loads as the same version."""
    g1 = RoutingGraph(_nodes("A", "B", "C"), [GraphEdge("A", "B"), GraphEdge("B", "C")])
    g2 = RoutingGraph(list(reversed(_nodes("A", "B", "C"))), [GraphEdge("B", "C"), GraphEdge("A", "B")])
    assert g1.version == g2.version
    assert g1.get_version() == g1.version
    assert len(g1.version) == 64


def test_with_updates_creates_new_version():
    g1 = RoutingGraph(_nodes("A", "B"), [GraphEdge("A", "B")])
    g2 = g1.with_updates(nodes=_nodes("C"), edges=[GraphEdge("B", "C")], remove_edges=[("A", "B")])

    assert g2.version != g1.version
    assert g2.parent_version == g1.version
    # Original version untouched
    assert g1.get_edge("A", "B") is not None
    assert not g1.has_node("C")
    assert g2.get_edge("A", "B") is None
    assert g2.get_edge("B", "C") is not None


@pytest.mark.parametrize(
    "nodes,edges",
    [
        (_nodes("A", "A"), []),
        ([GraphNode("", "x")], []),
        (_nodes("A"), [GraphEdge("A", "B")]),
        (_nodes("A", "B"), [GraphEdge("A", "B"), GraphEdge("A", "B", protocol="other")]),
        (_nodes("A"), [GraphEdge("A", "A")]),
        (_nodes("A", "B"), [GraphEdge("A", "B", capacity=-5)]),
        (_nodes("A", "B"), [GraphEdge("A", "B", attributes={"fee": float("nan")})]),
    ],
)
def test_construction_rejects_invalid_graphs(nodes, edges):
    with pytest.raises(GraphIntegrityError):
        RoutingGraph(nodes, edges)


def test_graph_store_publish_and_lookup():
    g1 = RoutingGraph(_nodes("A", "B"), [GraphEdge("A", "B")])
    g2 = g1.with_updates(nodes=_nodes("C"))
    store = GraphStore(g1)

    assert store.current() is g1
    store.publish(g2)
    assert store.current() is g2
    assert store.get(g1.version) is g1
    assert store.versions() == sorted([g1.version, g2.version])

    with pytest.raises(GraphIntegrityError):
        store.get("unknown")


def test_graph_store_empty_has_no_current():
    with pytest.raises(GraphIntegrityError):
        GraphStore().current()


def test_with_updates_matches_fresh_build_after_protocol_change():
    """An edge without an explicit protocol follows its destination's new protocol."""
    g1 = RoutingGraph(_nodes("A", "B"), [GraphEdge("A", "B")])
    g2 = g1.with_updates(nodes=[GraphNode("B", "X")])
    fresh = RoutingGraph([GraphNode("A", "A"), GraphNode("B", "X")], [GraphEdge("A", "B")])

    assert g2.get_edge("A", "B").protocol == "X"
    assert g2.version == fresh.version
    assert g2.to_dict() == fresh.to_dict()
