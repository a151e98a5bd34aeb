"""
Constraint Evaluator: pure admissibility predicates.

Evaluation order is part of the observable contract. The first failing
constraint is the reason reported upstream:

1. protocolAllowList - edge protocol tag is in policy.allowed_protocols
2. volumeThreshold   - event volume >= policy.min_volume_threshold
3. pathLengthBudget  - path_length + 1 <= policy.max_path_length
                       (path_length is supplied by the Path Selector)
4. named constraints - policy.constraints, in sorted name order; unknown
                       names fail closed
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from ..core.context import HistoricalContext
from ..core.events import ActivityEvent
from ..core.policy import PolicyConfig
from ..graph.model import GraphEdge

logger = logging.getLogger(__name__)

PROTOCOL_ALLOW_LIST = "protocolAllowList"
VOLUME_THRESHOLD = "volumeThreshold"
PATH_LENGTH_BUDGET = "pathLengthBudget"

# Predicate signature: (edge, event, params, context) -> admissible
ConstraintFn = Callable[[GraphEdge, ActivityEvent, Any, HistoricalContext], bool]


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of evaluating one edge.

    Fields:
        admissible: All constraints satisfied
        reason: First failing constraint name (None when admissible)
    """
    admissible: bool
    reason: Optional[str] = None


ADMISSIBLE = Verdict(admissible=True)


def edge_capacity(edge: GraphEdge, event: ActivityEvent, params: Any, context: HistoricalContext) -> bool:
    return edge.capacity is None or event.volume <= edge.capacity


def max_volume(edge: GraphEdge, event: ActivityEvent, params: Any, context: HistoricalContext) -> bool:
    return event.volume <= _as_int(params, "limit")


def rate_limit(edge: GraphEdge, event: ActivityEvent, params: Any, context: HistoricalContext) -> bool:
    """At most max_events accepted decisions from the same source in the window."""
    return context.count_from_source(event.source) < _as_int(params, "max_events")


def deny_nodes(edge: GraphEdge, event: ActivityEvent, params: Any, context: HistoricalContext) -> bool:
    return edge.destination not in set(_as_list(params, "nodes"))


def require_metadata(edge: GraphEdge, event: ActivityEvent, params: Any, context: HistoricalContext) -> bool:
    return all(key in event.metadata for key in _as_list(params, "keys"))


def _as_int(params: Any, key: str) -> int:
    value = params.get(key) if isinstance(params, Mapping) else params
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer parameter {key!r}, got {value!r}")
    return value


def _as_list(params: Any, key: str) -> list:
    value = params.get(key) if isinstance(params, Mapping) else params
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise TypeError(f"expected list parameter {key!r}, got {value!r}")
    return list(value)


class ConstraintRegistry:
    """
    Registry of named constraint predicates.

    Usage:
        registry = ConstraintRegistry.default()
        registry.register("businessHours", handle_business_hours)
        evaluator = ConstraintEvaluator(registry)
    """

    def __init__(self, predicates: Optional[Mapping[str, ConstraintFn]] = None) -> None:
        self._predicates: Dict[str, ConstraintFn] = dict(predicates or {})

    @classmethod
    def default(cls) -> "ConstraintRegistry":
        return cls(
            {
                "edgeCapacity": edge_capacity,
                "maxVolume": max_volume,
                "rateLimit": rate_limit,
                "denyNodes": deny_nodes,
                "requireMetadata": require_metadata,
            }
        )

    def register(self, name: str, predicate: ConstraintFn) -> None:
        """
        Register a named predicate.

        Args:
            name: Constraint name as used in policy.constraints
            predicate: Pure function (edge, event, params, context) -> bool
        """
        if name in (PROTOCOL_ALLOW_LIST, VOLUME_THRESHOLD, PATH_LENGTH_BUDGET):
            raise ValueError(f"constraint name is reserved: {name}")
        self._predicates[name] = predicate

    def get(self, name: str) -> Optional[ConstraintFn]:
        return self._predicates.get(name)

    def names(self) -> Iterable[str]:
        return sorted(self._predicates)

    def __contains__(self, name: str) -> bool:
        return name in self._predicates


class ConstraintEvaluator:
    """
    Stateless admissibility check for a single edge.

    Holds only the predicate registry; evaluation has no side effects.
    """

    def __init__(self, registry: Optional[ConstraintRegistry] = None) -> None:
        self.registry = registry if registry is not None else ConstraintRegistry.default()

    def evaluate(
        self,
        edge: GraphEdge,
        event: ActivityEvent,
        policy: PolicyConfig,
        context: HistoricalContext,
        path_length: int = 0,
    ) -> Verdict:
        """
        Evaluate all constraints for edge in the fixed order.

        Args:
            edge: Candidate edge
            event: Event being routed
            policy: Active policy
            context: Historical context window
            path_length: Hops already in the partial path

        Returns:
            Verdict carrying the first failing constraint name
        """
        if edge.protocol not in policy.allowed_protocols:
            return Verdict(False, PROTOCOL_ALLOW_LIST)
        if event.volume < policy.min_volume_threshold:
            return Verdict(False, VOLUME_THRESHOLD)
        if path_length + 1 > policy.max_path_length:
            return Verdict(False, PATH_LENGTH_BUDGET)

        for name in sorted(policy.constraints):
            predicate = self.registry.get(name)
            if predicate is None:
                return Verdict(False, name)
            try:
                ok = bool(predicate(edge, event, policy.constraints[name], context))
            except (TypeError, ValueError, KeyError) as ex:
                logger.warning("constraint %s rejected edge %s->%s: %s", name, edge.source, edge.destination, ex)
                ok = False
            if not ok:
                return Verdict(False, name)

        return ADMISSIBLE

    def is_admissible(
        self,
        edge: GraphEdge,
        event: ActivityEvent,
        policy: PolicyConfig,
        context: HistoricalContext,
        path_length: int = 0,
    ) -> bool:
        return self.evaluate(edge, event, policy, context, path_length).admissible


_DEFAULT_EVALUATOR = ConstraintEvaluator()


def is_admissible(
    edge: GraphEdge,
    event: ActivityEvent,
    policy: PolicyConfig,
    context: HistoricalContext,
    path_length: int = 0,
) -> bool:
    """Module-level check using the built-in constraint registry."""
    return _DEFAULT_EVALUATOR.is_admissible(edge, event, policy, context, path_length)
