"""
Core deterministic primitives.

This module provides the foundational values the router works over:
- ActivityEvent: Immutable normalized activity record
- PolicyConfig: Routing constraint parameters
- HistoricalContext: Bounded window of recent decisions
- Canonical: Deterministic serialization for hashing
- IDs: Stable identifier generation
"""

from .events import ActivityEvent
from .policy import PolicyConfig
from .context import ContextRecord, HistoricalContext, DEFAULT_CONTEXT_CAPACITY
from .canonical import canonicalize, canonical_copy, canonical_json_bytes, canonical_json_str, canonical_hash, sha256_hex
from .ids import stable_id
from .errors import (
    RoutingError,
    InvalidEvent,
    NoAdmissiblePath,
    PathExhausted,
    CycleDetected,
    GraphIntegrityError,
    PolicyError,
    LedgerError,
    IntegrityViolation,
    EntryNotFound,
    LedgerStoreError,
)

__all__ = [
    "ActivityEvent",
    "PolicyConfig",
    "ContextRecord",
    "HistoricalContext",
    "DEFAULT_CONTEXT_CAPACITY",
    "canonicalize",
    "canonical_copy",
    "canonical_json_bytes",
    "canonical_json_str",
    "canonical_hash",
    "sha256_hex",
    "stable_id",
    "RoutingError",
    "InvalidEvent",
    "NoAdmissiblePath",
    "PathExhausted",
    "CycleDetected",
    "GraphIntegrityError",
    "PolicyError",
    "LedgerError",
    "IntegrityViolation",
    "EntryNotFound",
    "LedgerStoreError",
]
