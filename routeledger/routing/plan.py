"""
Plan Builder: expand a selected path into primitive operations.

Operations keep path order exactly. No reordering or merging is done;
the plan hash must be reproducible.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from ..core.canonical import canonical_hash
from ..core.events import ActivityEvent
from ..core.ids import stable_id
from ..graph.model import GraphEdge


@dataclass(frozen=True)
class PlanOperation:
    """One node transition."""
    index: int
    source: str
    destination: str
    protocol: str
    volume: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "source": self.source,
            "destination": self.destination,
            "protocol": self.protocol,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class ExecutionPlan:
    """
    Immutable ordered execution plan for one event.

    Fields:
        plan_id: Stable id derived from event id and path
        event_id: Originating event
        graph_version: Graph version the path was selected on
        path: Node ids, source first
        operations: One operation per hop, in path order
    """
    plan_id: str
    event_id: str
    graph_version: str
    path: Tuple[str, ...]
    operations: Tuple[PlanOperation, ...]

    def __len__(self) -> int:
        return len(self.operations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "event_id": self.event_id,
            "graph_version": self.graph_version,
            "path": list(self.path),
            "operations": [op.to_dict() for op in self.operations],
        }

    def plan_hash(self) -> str:
        return canonical_hash(self.to_dict())

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExecutionPlan":
        return ExecutionPlan(
            plan_id=data["plan_id"],
            event_id=data["event_id"],
            graph_version=data.get("graph_version", ""),
            path=tuple(data["path"]),
            operations=tuple(PlanOperation(**op) for op in data["operations"]),
        )


def build_plan(event: ActivityEvent, edges: Sequence[GraphEdge], graph_version: str = "") -> ExecutionPlan:
    """
    Build the execution plan for event over a selected edge sequence.

    The full event volume moves through every hop.

    Raises:
        ValueError: If edges is empty or not contiguous
    """
    if not edges:
        raise ValueError("cannot build a plan from an empty path")

    operations = []
    path = [edges[0].source]
    for index, edge in enumerate(edges):
        if edge.source != path[-1]:
            raise ValueError(f"edge {edge.source}->{edge.destination} does not continue path at {path[-1]}")
        operations.append(
            PlanOperation(
                index=index,
                source=edge.source,
                destination=edge.destination,
                protocol=edge.protocol or "",
                volume=event.volume,
            )
        )
        path.append(edge.destination)

    return ExecutionPlan(
        plan_id=stable_id("plan", event.event_id, graph_version, *path),
        event_id=event.event_id,
        graph_version=graph_version,
        path=tuple(path),
        operations=tuple(operations),
    )
