"""
File-based configuration: graph definitions, policies and events.

Files are JSON documents validated with pydantic before they are turned
into the immutable core values.

Environment Variables:
    ROUTELEDGER_LEDGER_PATH: Default ledger file - default: ./routeledger-ledger.jsonl
    ROUTELEDGER_CONTEXT_CAPACITY: Context window capacity - default: 64
"""

import json
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core.context import DEFAULT_CONTEXT_CAPACITY
from .core.errors import GraphIntegrityError, InvalidEvent, PolicyError
from .core.events import ActivityEvent
from .core.policy import PolicyConfig
from .graph.model import GraphEdge, GraphNode
from .graph.store import RoutingGraph

DEFAULT_LEDGER_PATH = "./routeledger-ledger.jsonl"


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    protocol: str = Field(min_length=1)


class EdgeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    protocol: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0, strict=True)
    attributes: Dict[str, Any] = Field(default_factory=dict)


class GraphSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nodes: List[NodeSpec]
    edges: List[EdgeSpec] = Field(default_factory=list)

    def build(self) -> RoutingGraph:
        return RoutingGraph(
            [GraphNode(node_id=n.id, protocol=n.protocol) for n in self.nodes],
            [
                GraphEdge(
                    source=e.source,
                    destination=e.destination,
                    protocol=e.protocol,
                    capacity=e.capacity,
                    attributes=dict(e.attributes),
                )
                for e in self.edges
            ],
        )


class PolicySpec(BaseModel):
    """Recognized policy options (camelCase keys are accepted as aliases)."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    max_path_length: int = Field(alias="maxPathLength", gt=0, strict=True)
    allowed_protocols: List[str] = Field(alias="allowedProtocols")
    min_volume_threshold: int = Field(default=0, alias="minVolumeThreshold", ge=0, strict=True)
    constraints: Dict[str, Any] = Field(default_factory=dict)

    def build(self) -> PolicyConfig:
        return PolicyConfig.create(
            max_path_length=self.max_path_length,
            allowed_protocols=self.allowed_protocols,
            min_volume_threshold=self.min_volume_threshold,
            constraints=self.constraints,
        )


class EventSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    event_id: str = Field(alias="id", min_length=1)
    timestamp: int = Field(ge=0, strict=True)
    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    volume: int = Field(ge=0, strict=True)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def build(self) -> ActivityEvent:
        return ActivityEvent(
            event_id=self.event_id,
            timestamp=self.timestamp,
            source=self.source,
            destination=self.destination,
            volume=self.volume,
            metadata=dict(self.metadata),
        ).validate()


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_graph(data: Any) -> RoutingGraph:
    """
    Raises:
        GraphIntegrityError: If the definition is malformed or inconsistent
    """
    try:
        return GraphSpec.model_validate(data).build()
    except ValidationError as ex:
        raise GraphIntegrityError(f"invalid graph definition: {ex}") from ex


def parse_policy(data: Any) -> PolicyConfig:
    """
    Raises:
        PolicyError: If the policy is malformed
    """
    try:
        return PolicySpec.model_validate(data).build()
    except ValidationError as ex:
        raise PolicyError(f"invalid policy: {ex}") from ex


def parse_event(data: Any) -> ActivityEvent:
    """
    Raises:
        InvalidEvent: If the event is malformed
    """
    try:
        return EventSpec.model_validate(data).build()
    except ValidationError as ex:
        raise InvalidEvent(f"invalid event: {ex}", stage="received") from ex


def load_graph(path: str) -> RoutingGraph:
    return parse_graph(_read_json(path))


def load_policy(path: str) -> PolicyConfig:
    return parse_policy(_read_json(path))


def load_event(path: str) -> ActivityEvent:
    return parse_event(_read_json(path))


def default_ledger_path() -> str:
    return os.getenv("ROUTELEDGER_LEDGER_PATH", DEFAULT_LEDGER_PATH)


def default_context_capacity() -> int:
    raw = os.getenv("ROUTELEDGER_CONTEXT_CAPACITY")
    if not raw:
        return DEFAULT_CONTEXT_CAPACITY
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_CONTEXT_CAPACITY
    return value if value > 0 else DEFAULT_CONTEXT_CAPACITY
