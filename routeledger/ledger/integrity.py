"""
Hash chain integrity.

Every entry hashes its payload, then chains:

    payload_hash = SHA-256(canonical{kind, payload})
    entry_hash   = SHA-256(canonical{v, seq, prev_hash, payload_hash, ts})

The first entry chains to ZERO_HASH. Verification recomputes both hashes
and every link, and stops at the first mismatch. It never repairs.
"""

from typing import Any, Iterable, Mapping, Optional

from ..core.canonical import canonical_copy, canonical_hash
from ..core.errors import EntryNotFound, IntegrityViolation
from .entry import LedgerEntry

ZERO_HASH = "0" * 64
ENTRY_HASH_VERSION = 1
GENESIS_SEQ = 1


def hash_payload(kind: str, payload: Mapping[str, Any]) -> str:
    return canonical_hash({"kind": kind, "payload": payload})


def hash_entry(seq: int, prev_hash: str, payload_hash: str, ts: int) -> str:
    """
    Compute the chained hash of an entry.

    Args:
        seq: Sequence number
        prev_hash: Hash of previous entry (or ZERO_HASH for genesis)
        payload_hash: Hash of the entry payload
        ts: Entry timestamp

    Returns:
        SHA-256 hash as hex string
    """
    return canonical_hash(
        {
            "v": ENTRY_HASH_VERSION,
            "seq": seq,
            "prev_hash": prev_hash,
            "payload_hash": payload_hash,
            "ts": ts,
        }
    )


def chain_entry(seq: int, prev_hash: str, kind: str, payload: Mapping[str, Any], ts: int) -> LedgerEntry:
    """
    Create the next chained entry.

    The entry holds a canonical copy of payload; later changes to the
    caller's objects never reach the ledger.
    """
    payload = canonical_copy(payload)
    payload_hash = hash_payload(kind, payload)
    return LedgerEntry(
        seq=seq,
        kind=kind,
        ts=ts,
        payload=payload,
        payload_hash=payload_hash,
        prev_hash=prev_hash,
        entry_hash=hash_entry(seq, prev_hash, payload_hash, ts),
    )


def verify_entries(entries: Iterable[LedgerEntry], first_seq: int, prev_hash: str) -> int:
    """
    Verify a contiguous run of entries.

    Args:
        entries: Entries in sequence order
        first_seq: Sequence number the run must start at
        prev_hash: Hash the first entry must link to

    Returns:
        Number of entries verified

    Raises:
        IntegrityViolation: At the first mismatched sequence number
    """
    expected_seq = first_seq
    checked = 0
    for entry in entries:
        if entry.seq != expected_seq:
            raise IntegrityViolation(expected_seq, "sequence gap", expected=str(expected_seq), actual=str(entry.seq))
        if entry.prev_hash != prev_hash:
            raise IntegrityViolation(entry.seq, "prev_hash mismatch", expected=prev_hash, actual=entry.prev_hash)
        payload_hash = hash_payload(entry.kind, entry.payload)
        if payload_hash != entry.payload_hash:
            raise IntegrityViolation(entry.seq, "payload_hash mismatch", expected=payload_hash, actual=entry.payload_hash)
        entry_hash = hash_entry(entry.seq, entry.prev_hash, entry.payload_hash, entry.ts)
        if entry_hash != entry.entry_hash:
            raise IntegrityViolation(entry.seq, "entry_hash mismatch", expected=entry_hash, actual=entry.entry_hash)
        prev_hash = entry.entry_hash
        expected_seq += 1
        checked += 1
    return checked


def verify_chain(store, from_seq: int = GENESIS_SEQ, to_seq: Optional[int] = None, anchor_hash: Optional[str] = None) -> bool:
    """
    Verify the stored chain over [from_seq, to_seq].

    The link into from_seq is checked against anchor_hash when given,
    otherwise against the stored hash of entry from_seq - 1 (or ZERO_HASH).

    Returns:
        True when every entry in the range verifies

    Raises:
        ValueError: If the range is malformed
        EntryNotFound: If to_seq is beyond the ledger head
        IntegrityViolation: At the first mismatched sequence number
    """
    last_seq, _ = store.head()
    if to_seq is None:
        to_seq = last_seq
    if from_seq < GENESIS_SEQ:
        raise ValueError(f"from_seq must be >= {GENESIS_SEQ}, got {from_seq}")
    if to_seq < from_seq:
        if to_seq == last_seq == from_seq - 1:
            return True
        raise ValueError(f"empty range: from_seq={from_seq} to_seq={to_seq}")
    if to_seq > last_seq:
        raise EntryNotFound(to_seq)

    if anchor_hash is not None:
        prev_hash = anchor_hash
    elif from_seq == GENESIS_SEQ:
        prev_hash = ZERO_HASH
    else:
        prev_hash = store.get_entry(from_seq - 1).entry_hash

    checked = verify_entries(store.read(from_seq=from_seq, to_seq=to_seq), from_seq, prev_hash)
    expected = to_seq - from_seq + 1
    if checked != expected:
        raise IntegrityViolation(from_seq + checked, "sequence gap", expected=str(from_seq + checked))
    return True
