"""
Decision proof builder.

Collects the routing decision and settlement records for one event and
verifies the hash chain up to the last of them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.errors import IntegrityViolation
from ..ledger.entry import ROUTING_DECISION, SETTLEMENT, LedgerEntry
from ..ledger.integrity import GENESIS_SEQ, verify_chain
from ..ledger.store import LedgerStore


@dataclass
class ProofVerificationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    mismatch_seq: Optional[int] = None


def find_decision(store: LedgerStore, event_id: str) -> Optional[LedgerEntry]:
    for entry in store.read():
        if entry.kind == ROUTING_DECISION and entry.payload.get("event", {}).get("event_id") == event_id:
            return entry
    return None


def find_settlements(store: LedgerStore, event_id: str) -> List[LedgerEntry]:
    return [e for e in store.read() if e.kind == SETTLEMENT and e.payload.get("event_id") == event_id]


def _verify_proof(store: LedgerStore, decision: LedgerEntry, settlements: List[LedgerEntry]) -> ProofVerificationResult:
    errors = []
    mismatch_seq = None
    last_seq = max([decision.seq] + [s.seq for s in settlements])

    try:
        verify_chain(store, GENESIS_SEQ, last_seq)
    except IntegrityViolation as ex:
        errors.append(str(ex))
        mismatch_seq = ex.seq

    plan = decision.payload.get("plan", {})
    if plan.get("event_id") != decision.payload.get("event", {}).get("event_id"):
        errors.append("plan event_id does not match event")

    for s in settlements:
        if s.seq < decision.seq:
            errors.append(f"settlement at seq {s.seq} precedes its routing decision")

    return ProofVerificationResult(valid=not errors, errors=errors, mismatch_seq=mismatch_seq)


def build_decision_proof(store: LedgerStore, event_id: str) -> Dict[str, Any]:
    """
    Build a verifiable proof bundle for event_id.

    Returns:
        Dict with the decision entry, settlements, and verification result
    """
    decision = find_decision(store, event_id)
    if decision is None:
        return {
            "valid": False,
            "event_id": event_id,
            "error": "routing decision not found for event",
        }

    settlements = find_settlements(store, event_id)
    verification = _verify_proof(store, decision, settlements)

    return {
        "valid": verification.valid,
        "event_id": event_id,
        "verification": {
            "valid": verification.valid,
            "errors": verification.errors,
            "mismatch_seq": verification.mismatch_seq,
        },
        "proof": decision.proof().to_dict(),
        "decision": {
            "seq": decision.seq,
            "ts": decision.ts,
            "prev_hash": decision.prev_hash,
            "graph_version": decision.payload.get("graph_version"),
            "plan_hash": decision.payload.get("plan_hash"),
            "path": decision.payload.get("plan", {}).get("path", []),
            "context_hash": decision.payload.get("context_hash"),
        },
        "settlements": [
            {
                "seq": s.seq,
                "status": s.payload.get("status"),
                "entry_hash": s.entry_hash,
            }
            for s in settlements
        ],
    }
