"""
Router: the public routing API.

A Router holds explicit handles: one immutable graph version, one ledger
store (the single writer) and the historical context window it owns.
Routing itself is pure; only the ledger append and the context update are
serialized, together, under one commit lock so the context always mirrors
ledger order.
"""

import copy
import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..core.canonical import sha256_hex
from ..core.context import DEFAULT_CONTEXT_CAPACITY, ContextRecord, HistoricalContext
from ..core.errors import IntegrityViolation, RoutingError
from ..core.events import ActivityEvent
from ..core.policy import PolicyConfig
from ..graph.store import RoutingGraph
from ..ledger.entry import ROUTING_DECISION, SETTLEMENT, IntegrityProof, LedgerEntry
from ..ledger.integrity import GENESIS_SEQ, verify_chain
from ..ledger.memory_store import MemoryLedgerStore
from ..ledger.store import LedgerStore
from ..logging_config import get_logger
from .. import metrics
from . import stages
from .constraints import ConstraintEvaluator
from .plan import ExecutionPlan, build_plan
from .selector import SelectedPath, select_path


@dataclass(frozen=True)
class RouteOutcome:
    """
    Result of route(): either plan + proof, or a typed error.

    Fields:
        plan: Execution plan (success only)
        proof: Ledger proof (success only)
        error: Routing error code, e.g. "NoAdmissiblePath" (failure only)
        reason: First failing constraint name or failure cause
        stage: completed on success, otherwise the stage the failure was
            detected in (received, candidates_computed, ...)
        message: Human readable detail
    """
    plan: Optional[ExecutionPlan] = None
    proof: Optional[IntegrityProof] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    stage: str = stages.COMPLETED
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def terminal(self) -> str:
        """Terminal state: completed or rejected."""
        return stages.COMPLETED if self.ok else stages.REJECTED

    @staticmethod
    def success(plan: ExecutionPlan, proof: IntegrityProof) -> "RouteOutcome":
        return RouteOutcome(plan=plan, proof=proof)

    @staticmethod
    def failure(ex: RoutingError) -> "RouteOutcome":
        return RouteOutcome(
            error=ex.code,
            reason=ex.reason,
            stage=ex.stage or stages.RECEIVED,
            message=str(ex),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {
                "ok": True,
                "terminal": self.terminal,
                "stage": self.stage,
                "plan": self.plan.to_dict() if self.plan else None,
                "proof": self.proof.to_dict() if self.proof else None,
            }
        return {
            "ok": False,
            "terminal": self.terminal,
            "stage": self.stage,
            "error": self.error,
            "reason": self.reason,
            "message": self.message,
        }


def decision_payload(
    event: ActivityEvent,
    plan: ExecutionPlan,
    policy: PolicyConfig,
    context: HistoricalContext,
    selected: SelectedPath,
) -> Dict[str, Any]:
    """
    Ledger payload for a routing decision.

    Everything here is a function of (event, policy, context, graph
    version), so identical inputs give an identical payload hash.
    """
    return {
        "event": event.to_dict(),
        "plan": plan.to_dict(),
        "plan_hash": plan.plan_hash(),
        "policy": policy.to_dict(),
        "graph_version": plan.graph_version,
        "context_hash": sha256_hex(context.canonical_bytes()),
        "seeds": list(selected.seeds),
    }


def context_record_from_entry(entry: LedgerEntry) -> ContextRecord:
    """Rebuild the context record a routing_decision entry contributed."""
    event = entry.payload["event"]
    return ContextRecord(
        event_id=event["event_id"],
        source=event["source"],
        destination=event["destination"],
        volume=event["volume"],
        timestamp=event["timestamp"],
        path=tuple(entry.payload["plan"]["path"]),
        payload_hash=entry.payload_hash,
    )


class _CommitState:
    """Commit lock and context window shared by routers over one ledger."""

    def __init__(self, context: HistoricalContext) -> None:
        self.lock = threading.Lock()
        self.context = context


class Router:
    """
    Deterministic router bound to one graph version and one ledger.

    Usage:
        router = Router(graph, MemoryLedgerStore())
        outcome = router.route(event, policy)
        if outcome.ok:
            router.verify_integrity()
    """

    def __init__(
        self,
        graph: RoutingGraph,
        store: Optional[LedgerStore] = None,
        context: Optional[HistoricalContext] = None,
        evaluator: Optional[ConstraintEvaluator] = None,
        context_capacity: int = DEFAULT_CONTEXT_CAPACITY,
    ) -> None:
        self.graph = graph
        self.store = store if store is not None else MemoryLedgerStore()
        self.evaluator = evaluator if evaluator is not None else ConstraintEvaluator()
        self._state = _CommitState(context if context is not None else HistoricalContext(capacity=context_capacity))

    @property
    def context(self) -> HistoricalContext:
        return self._state.context

    def with_graph(self, graph: RoutingGraph) -> "Router":
        """
        Router over a new graph version sharing this ledger and context.

        Both routers commit under the same lock and advance the same
        context window, so the window keeps following ledger order.
        """
        other = copy.copy(self)
        other.graph = graph
        return other

    def route(self, event: ActivityEvent, policy: PolicyConfig) -> RouteOutcome:
        """
        Route one event and record the decision.

        Failures are returned as typed outcomes and write nothing to the
        ledger. Success appends exactly one routing_decision entry.
        """
        log = get_logger(__name__, trace_id=getattr(event, "event_id", None))
        context = self._state.context

        with metrics.track_route_duration():
            try:
                selected = select_path(self.graph, event, policy, context, self.evaluator)
            except RoutingError as ex:
                log.info("routing rejected: %s (reason=%s, stage=%s)", ex.code, ex.reason, ex.stage)
                metrics.track_route(ex.code, ex.reason)
                return RouteOutcome.failure(ex)

            plan = build_plan(event, selected.edges, self.graph.version)
            payload = decision_payload(event, plan, policy, context, selected)

            with self._state.lock:
                result = self.store.append(ROUTING_DECISION, payload, event.timestamp)
                entry = result.entry
                self._state.context = self._state.context.append(context_record_from_entry(entry))

        metrics.track_append(ROUTING_DECISION)
        metrics.track_route(stages.COMPLETED)
        log.info("routed %s over %s at seq %d", event.event_id, "->".join(plan.path), entry.seq)
        return RouteOutcome.success(plan, entry.proof())

    def record_settlement(
        self,
        event_id: str,
        status: str,
        ts: int,
        details: Optional[Mapping[str, Any]] = None,
    ) -> IntegrityProof:
        """
        Append a settlement record for a previously routed event.

        The record is evidence only; no settlement finality is implied.
        """
        if not event_id or not status:
            raise ValueError("settlement requires event_id and status")
        payload = {"event_id": event_id, "status": status, "details": dict(details or {})}
        with self._state.lock:
            entry = self.store.append(SETTLEMENT, payload, ts).entry
        metrics.track_append(SETTLEMENT)
        get_logger(__name__, trace_id=event_id).info("settlement %s recorded at seq %d", status, entry.seq)
        return entry.proof()

    def verify_integrity(self, from_seq: int = GENESIS_SEQ, to_seq: Optional[int] = None) -> bool:
        """
        Verify the ledger hash chain over [from_seq, to_seq].

        Raises:
            IntegrityViolation: At the first mismatched sequence number
        """
        try:
            return verify_chain(self.store, from_seq, to_seq)
        except IntegrityViolation as ex:
            metrics.track_integrity_violation()
            get_logger(__name__).error("ledger integrity violation at seq %d: %s", ex.seq, ex.reason)
            raise

    def get_ledger_entry(self, seq: int) -> LedgerEntry:
        """
        Raises:
            EntryNotFound: If seq is not in the ledger
        """
        return self.store.get_entry(seq)
