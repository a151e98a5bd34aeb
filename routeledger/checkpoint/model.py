"""
Checkpoint model for signed ledger heads.

A checkpoint captures:
- Ledger position (seq) and the entry hash at that position
- Hash of the context window replayed up to that position
- The graph version routing was bound to
- Ed25519 signature over all of the above
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict

CHECKPOINT_VERSION = 1


@dataclass(frozen=True)
class LedgerCheckpoint:
    """
    Immutable checkpoint record.

    Fields:
        version: Format version
        seq: Last ledger sequence number covered
        entry_hash: Entry hash at seq (from the hash chain)
        context_hash: SHA-256 of the canonical context window at seq
        graph_version: Graph version in use when the checkpoint was taken
        created_at_logical: Logical timestamp (ts of the entry at seq)
        pubkey_id: SHA-256 of the public key (first 16 chars)
        signature: Ed25519 signature (base64)
        meta: Optional metadata (not signed)
    """
    version: int
    seq: int
    entry_hash: str
    context_hash: str
    graph_version: str
    created_at_logical: int
    pubkey_id: str
    signature: str
    meta: Dict[str, Any] = field(default_factory=dict)

    def signing_payload(self) -> Dict[str, Any]:
        """
        Get payload for signing (excludes signature and meta).

        This is the canonical representation that gets signed.
        """
        return {
            "version": self.version,
            "seq": self.seq,
            "entry_hash": self.entry_hash,
            "context_hash": self.context_hash,
            "graph_version": self.graph_version,
            "created_at_logical": self.created_at_logical,
            "pubkey_id": self.pubkey_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.signing_payload()
        data["signature"] = self.signature
        data["meta"] = dict(self.meta)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerCheckpoint":
        return cls(
            version=data["version"],
            seq=data["seq"],
            entry_hash=data["entry_hash"],
            context_hash=data["context_hash"],
            graph_version=data.get("graph_version", ""),
            created_at_logical=data["created_at_logical"],
            pubkey_id=data["pubkey_id"],
            signature=data["signature"],
            meta=data.get("meta", {}),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, json_str: str) -> "LedgerCheckpoint":
        return cls.from_dict(json.loads(json_str))
