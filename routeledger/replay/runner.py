"""
Replay runner: reconstruct the historical context window from the ledger.

Routing decisions are applied in sequence order, exactly as the router
applied them when it committed each entry, so routing after a restart is
unchanged.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.context import DEFAULT_CONTEXT_CAPACITY, HistoricalContext
from ..graph.store import RoutingGraph
from ..ledger.entry import ROUTING_DECISION
from ..ledger.integrity import GENESIS_SEQ, verify_chain
from ..ledger.store import LedgerStore
from ..routing.constraints import ConstraintEvaluator
from ..routing.router import Router, context_record_from_entry


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Fields:
        context: Context window after applying decisions
        applied: Number of routing decisions applied
        last_seq: Last ledger sequence read
    """
    context: HistoricalContext
    applied: int
    last_seq: int


def restore_context(
    store: LedgerStore,
    capacity: int = DEFAULT_CONTEXT_CAPACITY,
    to_seq: Optional[int] = None,
    verify: bool = True,
) -> ReplayResult:
    """
    Replay routing decisions to rebuild the context window.

    Args:
        store: Ledger store to read from
        capacity: Context window capacity
        to_seq: Stop at this sequence (inclusive, None = head)
        verify: Verify the hash chain before trusting it

    Raises:
        IntegrityViolation: If verify is set and the chain is broken
    """
    if verify:
        verify_chain(store, GENESIS_SEQ, to_seq)

    ctx = HistoricalContext(capacity=capacity)
    applied = 0
    last_seq = 0
    for entry in store.read(from_seq=GENESIS_SEQ, to_seq=to_seq):
        last_seq = entry.seq
        if entry.kind != ROUTING_DECISION:
            continue
        ctx = ctx.append(context_record_from_entry(entry))
        applied += 1

    return ReplayResult(context=ctx, applied=applied, last_seq=last_seq)


def restore_router(
    graph: RoutingGraph,
    store: LedgerStore,
    capacity: int = DEFAULT_CONTEXT_CAPACITY,
    evaluator: Optional[ConstraintEvaluator] = None,
) -> Router:
    """Router resuming on an existing ledger with its context rebuilt."""
    result = restore_context(store, capacity)
    return Router(graph, store, context=result.context, evaluator=evaluator)
