"""
Ledger entry and proof records.
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

ROUTING_DECISION = "routing_decision"
SETTLEMENT = "settlement"


@dataclass(frozen=True)
class IntegrityProof:
    """
    Evidence that a decision was recorded: entry hash plus chain position.
    """
    seq: int
    entry_hash: str
    payload_hash: str

    @property
    def hash(self) -> str:
        return self.entry_hash

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "entry_hash": self.entry_hash, "payload_hash": self.payload_hash}


@dataclass(frozen=True)
class LedgerEntry:
    """
    Immutable hash-chained ledger record.

    Fields:
        seq: Sequence number (1-based, gapless)
        kind: Record kind (routing_decision, settlement)
        ts: Timestamp (caller supplied, deterministic)
        payload: Record content
        payload_hash: Hash over kind and payload
        prev_hash: Hash of the previous entry
        entry_hash: Hash over seq, prev_hash, payload_hash, ts
    """
    seq: int
    kind: str
    ts: int
    payload: Mapping[str, Any] = field(default_factory=dict)
    payload_hash: str = ""
    prev_hash: str = ""
    entry_hash: str = ""

    def detached(self) -> "LedgerEntry":
        """Copy whose payload shares no mutable state with this entry."""
        return replace(self, payload=copy.deepcopy(dict(self.payload)))

    def proof(self) -> IntegrityProof:
        return IntegrityProof(seq=self.seq, entry_hash=self.entry_hash, payload_hash=self.payload_hash)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "kind": self.kind,
            "ts": self.ts,
            "payload": dict(self.payload),
            "payload_hash": self.payload_hash,
            "prev_hash": self.prev_hash,
            "entry_hash": self.entry_hash,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "LedgerEntry":
        return LedgerEntry(
            seq=data["seq"],
            kind=data["kind"],
            ts=data["ts"],
            payload=dict(data.get("payload") or {}),
            payload_hash=data["payload_hash"],
            prev_hash=data["prev_hash"],
            entry_hash=data["entry_hash"],
        )
