"""
Tests for file-based configuration parsing.
"""

import json
import os
import tempfile

import pytest

from routeledger.config import (
    default_context_capacity,
    default_ledger_path,
    load_graph,
    parse_event,
    parse_graph,
    parse_policy,
)
from routeledger.core import DEFAULT_CONTEXT_CAPACITY, GraphIntegrityError, InvalidEvent, PolicyError

GRAPH = {
    "nodes": [{"id": "A", "protocol": "A"}, {"id": "B", "protocol": "B"}],
    "edges": [{"source": "A", "destination": "B", "capacity": 10, "attributes": {"fee_bps": 5}}],
}


def test_parse_graph():
    graph = parse_graph(GRAPH)
    edge = graph.get_edge("A", "B")
    assert edge.protocol == "B"
    assert edge.capacity == 10
    assert edge.attributes == {"fee_bps": 5}


@pytest.mark.parametrize(
    "data",
    [
        {"nodes": [{"id": "A", "protocol": "A"}], "edges": [{"source": "A", "destination": "B"}]},
        {"nodes": [{"id": "", "protocol": "A"}]},
        {"nodes": [{"id": "A", "protocol": "A", "color": "red"}]},
        {"edges": []},
    ],
)
def test_parse_graph_rejects_invalid(data):
    with pytest.raises(GraphIntegrityError):
        parse_graph(data)


def test_parse_policy_accepts_camel_and_snake_case():
    camel = parse_policy({"maxPathLength": 5, "allowedProtocols": ["A", "B"], "minVolumeThreshold": 1000000})
    snake = parse_policy({"max_path_length": 5, "allowed_protocols": ["B", "A"], "min_volume_threshold": 1000000})
    assert camel == snake
    assert camel.min_volume_threshold == 1000000


@pytest.mark.parametrize(
    "data",
    [
        {"maxPathLength": 0, "allowedProtocols": ["A"]},
        {"maxPathLength": 2.5, "allowedProtocols": ["A"]},
        {"maxPathLength": 2, "allowedProtocols": ["A"], "unknown": 1},
        {"allowedProtocols": ["A"]},
    ],
)
def test_parse_policy_rejects_invalid(data):
    with pytest.raises(PolicyError):
        parse_policy(data)


def test_parse_event():
    event = parse_event({"id": "evt-1", "timestamp": 5, "source": "A", "destination": "B", "volume": 5000000})
    assert event.event_id == "evt-1"
    assert event.metadata == {}


@pytest.mark.parametrize(
    "data",
    [
        {"id": "e", "timestamp": 5, "source": "A", "destination": "B", "volume": 1.5},
        {"id": "e", "timestamp": -1, "source": "A", "destination": "B", "volume": 1},
        {"id": "e", "timestamp": 5, "source": "A", "destination": "A", "volume": 1},
        {"timestamp": 5, "source": "A", "destination": "B", "volume": 1},
    ],
)
def test_parse_event_rejects_invalid(data):
    with pytest.raises(InvalidEvent):
        parse_event(data)


def test_load_graph_from_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "graph.json")
        with open(path, "w") as f:
            json.dump(GRAPH, f)
        assert load_graph(path).version == parse_graph(GRAPH).version


def test_environment_defaults(monkeypatch):
    monkeypatch.delenv("ROUTELEDGER_LEDGER_PATH", raising=False)
    monkeypatch.delenv("ROUTELEDGER_CONTEXT_CAPACITY", raising=False)
    assert default_ledger_path().endswith("routeledger-ledger.jsonl")
    assert default_context_capacity() == DEFAULT_CONTEXT_CAPACITY

    monkeypatch.setenv("ROUTELEDGER_LEDGER_PATH", "/tmp/x.jsonl")
    monkeypatch.setenv("ROUTELEDGER_CONTEXT_CAPACITY", "16")
    assert default_ledger_path() == "/tmp/x.jsonl"
    assert default_context_capacity() == 16

    monkeypatch.setenv("ROUTELEDGER_CONTEXT_CAPACITY", "lots")
    assert default_context_capacity() == DEFAULT_CONTEXT_CAPACITY
