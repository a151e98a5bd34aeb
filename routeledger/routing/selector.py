"""
Path Selector: deterministic hash-seeded path selection.

At every hop the admissible candidates keep the graph's fixed edge order
and one is picked by

    seed  = SHA-256(tag || event bytes || context bytes || path bytes)
    index = seed mod len(candidates)

so each choice is a pure function of (event, context, path so far). No
randomness source is used anywhere.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.canonical import canonical_json_bytes
from ..core.context import HistoricalContext
from ..core.errors import CycleDetected, InvalidEvent, NoAdmissiblePath, PathExhausted
from ..core.events import ActivityEvent
from ..core.policy import PolicyConfig
from ..graph.model import GraphEdge
from ..graph.store import RoutingGraph
from . import stages
from .constraints import ConstraintEvaluator

logger = logging.getLogger(__name__)

SELECTION_HASH_VERSION = 1
SELECTION_TAG = f"routeledger/select/v{SELECTION_HASH_VERSION}\n".encode("utf-8")

NO_OUTGOING_EDGES = "noOutgoingEdges"
CYCLE = "cycle"

_DEFAULT_EVALUATOR = ConstraintEvaluator()


@dataclass(frozen=True)
class Candidate:
    """An admissible edge and its position in the filtered candidate list."""
    edge: GraphEdge
    index: int


@dataclass(frozen=True)
class SelectedPath:
    """
    Result of a successful selection.

    Fields:
        edges: Selected edges in path order
        nodes: Visited node ids, source first
        seeds: Hex selection seed used at each hop
    """
    edges: Tuple[GraphEdge, ...]
    nodes: Tuple[str, ...]
    seeds: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "seeds": list(self.seeds),
        }


def selection_seed(event: ActivityEvent, context: HistoricalContext, path: Sequence[str]) -> bytes:
    """
    Selection seed for one hop.

    Canonical JSON values are self-delimiting, so plain concatenation is
    unambiguous.
    """
    h = hashlib.sha256()
    h.update(SELECTION_TAG)
    h.update(event.canonical_bytes())
    h.update(context.canonical_bytes())
    h.update(canonical_json_bytes(list(path)))
    return h.digest()


def pick_index(seed: bytes, count: int) -> int:
    if count <= 0:
        raise ValueError("cannot pick from an empty candidate set")
    return int.from_bytes(seed, "big") % count


def admissible_candidates(
    graph: RoutingGraph,
    node_id: str,
    event: ActivityEvent,
    policy: PolicyConfig,
    context: HistoricalContext,
    path_length: int,
    evaluator: ConstraintEvaluator,
) -> Tuple[List[Candidate], Optional[str]]:
    """
    Filter outgoing edges of node_id, keeping graph order.

    Returns:
        (candidates, first_rejection_reason); the reason belongs to the
        first rejected edge in fixed order, or is None when none was rejected
    """
    candidates: List[Candidate] = []
    first_reason: Optional[str] = None
    for edge in graph.outgoing_edges(node_id):
        verdict = evaluator.evaluate(edge, event, policy, context, path_length)
        if verdict.admissible:
            candidates.append(Candidate(edge=edge, index=len(candidates)))
        elif first_reason is None:
            first_reason = verdict.reason
    return candidates, first_reason


def select_path(
    graph: RoutingGraph,
    event: ActivityEvent,
    policy: PolicyConfig,
    context: HistoricalContext,
    evaluator: Optional[ConstraintEvaluator] = None,
) -> SelectedPath:
    """
    Select a full path from event.source to event.destination.

    Args:
        graph: Graph version to route over
        event: Normalized event
        policy: Active policy
        context: Historical context window
        evaluator: Constraint evaluator (built-in registry if None)

    Returns:
        SelectedPath

    Raises:
        InvalidEvent: Event malformed or references nodes not in the graph
        NoAdmissiblePath: No admissible edge leaves the source node
        PathExhausted: Partial path cannot be extended to the destination
        CycleDetected: Selected hop revisits a node already in the path
    """
    evaluator = evaluator if evaluator is not None else _DEFAULT_EVALUATOR
    event.validate()
    if not graph.has_node(event.source):
        raise InvalidEvent(f"unknown source node: {event.source}", reason="source", stage=stages.RECEIVED)
    if not graph.has_node(event.destination):
        raise InvalidEvent(
            f"unknown destination node: {event.destination}", reason="destination", stage=stages.RECEIVED
        )

    nodes: List[str] = [event.source]
    edges: List[GraphEdge] = []
    seeds: List[str] = []
    current = event.source

    while current != event.destination:
        hop = len(edges)
        candidates, first_reason = admissible_candidates(graph, current, event, policy, context, hop, evaluator)

        if not candidates:
            if first_reason is None:
                reason, stage = NO_OUTGOING_EDGES, stages.CANDIDATES_COMPUTED
            else:
                reason, stage = first_reason, stages.CONSTRAINTS_EVALUATED
            if hop == 0:
                raise NoAdmissiblePath(
                    f"no admissible edge from {current} (reason: {reason})",
                    reason=reason,
                    stage=stage,
                    node=current,
                )
            raise PathExhausted(
                f"path {'->'.join(nodes)} cannot reach {event.destination} (reason: {reason})",
                reason=reason,
                stage=stage,
                node=current,
            )

        seed = selection_seed(event, context, nodes)
        chosen = candidates[pick_index(seed, len(candidates))].edge
        logger.debug(
            "hop %d at %s: %d candidates, picked %s", hop, current, len(candidates), chosen.destination
        )

        if chosen.destination in nodes:
            raise CycleDetected(
                f"path {'->'.join(nodes)} revisits {chosen.destination}",
                reason=CYCLE,
                stage=stages.PATH_SELECTED,
                node=chosen.destination,
            )

        edges.append(chosen)
        nodes.append(chosen.destination)
        seeds.append(seed.hex())
        current = chosen.destination

    return SelectedPath(edges=tuple(edges), nodes=tuple(nodes), seeds=tuple(seeds))
