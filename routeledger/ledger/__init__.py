"""
Integrity ledger: append-only, hash-chained record of routing decisions.

This module provides:
- LedgerStore: Abstract interface for ledger persistence
- MemoryLedgerStore: In-process storage
- FileLedgerStore: File-based append-only storage (JSONL)
- Integrity: Hash chain construction and verification
"""

from .entry import LedgerEntry, IntegrityProof, ROUTING_DECISION, SETTLEMENT
from .store import LedgerStore, AppendResult
from .memory_store import MemoryLedgerStore
from .file_store import FileLedgerStore
from .integrity import (
    ZERO_HASH,
    GENESIS_SEQ,
    hash_payload,
    hash_entry,
    chain_entry,
    verify_entries,
    verify_chain,
)

__all__ = [
    "LedgerEntry",
    "IntegrityProof",
    "ROUTING_DECISION",
    "SETTLEMENT",
    "LedgerStore",
    "AppendResult",
    "MemoryLedgerStore",
    "FileLedgerStore",
    "ZERO_HASH",
    "GENESIS_SEQ",
    "hash_payload",
    "hash_entry",
    "chain_entry",
    "verify_entries",
    "verify_chain",
]
