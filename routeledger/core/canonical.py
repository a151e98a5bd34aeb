"""
Canonical serialization for deterministic hashing.

Every hash in the router (selection seeds, plan hashes, ledger payload and
entry hashes) is computed over bytes produced here, never over Python's
object hashing. Identical inputs give identical bytes across runs,
platforms and implementations.
"""

import hashlib
import json
from typing import Any, Mapping


def canonicalize(obj: Any) -> Any:
    """
    Convert arbitrary nested mappings/sequences to canonical form.

    Rules:
    - mapping keys sorted alphabetically
    - tuples converted to lists
    - sets and frozensets converted to sorted lists
    - recursive normalization
    """
    if isinstance(obj, Mapping):
        return {k: canonicalize(obj[k]) for k in sorted(obj.keys())}
    if isinstance(obj, (list, tuple)):
        return [canonicalize(x) for x in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(canonicalize(x) for x in obj)
    return obj


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Deterministic JSON bytes for hashing.

    Guarantees:
    - sort_keys=True (secondary safety)
    - separators remove whitespace
    - ensure_ascii=False keeps UTF-8 stable
    - allow_nan=False rejects values with no portable encoding

    Returns:
        UTF-8 encoded JSON bytes
    """
    canon = canonicalize(obj)
    s = json.dumps(
        canon,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return s.encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    """Deterministic JSON string (for display or storage)."""
    return canonical_json_bytes(obj).decode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_hash(obj: Any) -> str:
    """SHA-256 hex digest of the canonical encoding of obj."""
    return sha256_hex(canonical_json_bytes(obj))


def canonical_copy(obj: Any) -> Any:
    """
    Detached plain-JSON copy of obj, decoded from its canonical bytes.

    Shares no mutable state with obj and equals exactly what gets hashed.
    """
    return json.loads(canonical_json_bytes(obj))
