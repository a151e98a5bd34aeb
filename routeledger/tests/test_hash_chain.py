"""
Tests for ledger hash chain integrity.

Critical: Hash chain must detect any tampering, at the exact sequence
number where it happened.
"""

import json
import os
import tempfile
from dataclasses import replace

import pytest

from routeledger.core.errors import EntryNotFound, IntegrityViolation, LedgerStoreError
from routeledger.ledger import (
    ZERO_HASH,
    FileLedgerStore,
    MemoryLedgerStore,
    hash_entry,
    hash_payload,
    verify_chain,
)


def _fill(store, n: int) -> None:
    for i in range(n):
        store.append("routing_decision", {"event_id": f"e{i}", "n": i}, ts=i)


def test_genesis_entry_chains_to_zero_hash():
    store = MemoryLedgerStore()
    result = store.append("routing_decision", {"n": 1}, ts=1)
    assert result.committed
    assert result.seq == 1
    assert result.entry.prev_hash == ZERO_HASH


def test_hash_chain_links():
    """Each entry must chain to the previous entry hash."""
    store = MemoryLedgerStore()
    _fill(store, 5)
    entries = list(store.read())
    assert [e.seq for e in entries] == [1, 2, 3, 4, 5]
    for prev, curr in zip(entries, entries[1:]):
        assert curr.prev_hash == prev.entry_hash
    assert store.head() == (5, entries[-1].entry_hash)
    assert len(store) == 5


def test_entry_hash_determinism():
    """Same payload at same position must hash identically across stores."""
    a, b = MemoryLedgerStore(), MemoryLedgerStore()
    _fill(a, 3)
    _fill(b, 3)
    assert [e.entry_hash for e in a.read()] == [e.entry_hash for e in b.read()]
    assert hash_entry(1, ZERO_HASH, hash_payload("k", {"x": 1}), 5) == hash_entry(
        1, ZERO_HASH, hash_payload("k", {"x": 1}), 5
    )


def test_payload_key_order_does_not_affect_hash():
    assert hash_payload("k", {"a": 1, "b": 2}) == hash_payload("k", {"b": 2, "a": 1})
    assert hash_payload("k", {"a": 1}) != hash_payload("other", {"a": 1})


def test_verify_chain_ranges():
    store = MemoryLedgerStore()
    assert verify_chain(store)
    _fill(store, 6)
    assert verify_chain(store)
    assert verify_chain(store, 3, 5)
    assert verify_chain(store, 6, 6)
    with pytest.raises(ValueError):
        verify_chain(store, 0, 3)
    with pytest.raises(ValueError):
        verify_chain(store, 5, 3)
    with pytest.raises(EntryNotFound):
        verify_chain(store, 1, 7)


def test_get_entry():
    store = MemoryLedgerStore()
    _fill(store, 3)
    assert store.get_entry(2).payload["n"] == 1
    with pytest.raises(EntryNotFound):
        store.get_entry(4)
    with pytest.raises(KeyError):
        store.get_entry(0)


def test_tamper_detection_memory_payload():
    """Modified payload is reported at its own sequence number."""
    store = MemoryLedgerStore()
    _fill(store, 5)
    store._entries[2] = replace(store._entries[2], payload={"event_id": "e2", "n": 999})

    with pytest.raises(IntegrityViolation) as exc:
        verify_chain(store)
    assert exc.value.seq == 3
    assert exc.value.reason == "payload_hash mismatch"
    # Earlier range is still intact
    assert verify_chain(store, 1, 2)


def test_tamper_detection_memory_timestamp():
    store = MemoryLedgerStore()
    _fill(store, 4)
    store._entries[1] = replace(store._entries[1], ts=12345)

    with pytest.raises(IntegrityViolation) as exc:
        verify_chain(store)
    assert exc.value.seq == 2
    assert exc.value.reason == "entry_hash mismatch"


def test_tamper_detection_file_rewritten_line():
    """Rewriting a stored line (even with a recomputed payload hash) breaks the chain."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "ledger.jsonl")
        store = FileLedgerStore(path)
        _fill(store, 5)

        with open(path, "r") as f:
            lines = f.readlines()
        rec = json.loads(lines[3])
        rec["payload"]["n"] = 42
        rec["payload_hash"] = hash_payload(rec["kind"], rec["payload"])
        lines[3] = json.dumps(rec) + "\n"
        with open(path, "w") as f:
            f.writelines(lines)

        with pytest.raises(IntegrityViolation) as exc:
            verify_chain(FileLedgerStore(path))
        assert exc.value.seq == 4


def test_tamper_detection_deleted_line():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "ledger.jsonl")
        store = FileLedgerStore(path)
        _fill(store, 4)

        with open(path, "r") as f:
            lines = f.readlines()
        del lines[1]
        with open(path, "w") as f:
            f.writelines(lines)

        with pytest.raises(IntegrityViolation) as exc:
            verify_chain(store, 1, 3)
        assert exc.value.seq == 2


def test_file_store_resumes_chain():
    """Reopening the file continues the sequence and chain."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "nested", "ledger.jsonl")
        _fill(FileLedgerStore(path), 3)

        reopened = FileLedgerStore(path)
        result = reopened.append("settlement", {"event_id": "e0", "status": "settled"}, ts=10)
        assert result.seq == 4
        assert verify_chain(reopened)
        assert [e.kind for e in reopened.read(from_seq=3)] == ["routing_decision", "settlement"]


def test_file_store_unreadable_line():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "ledger.jsonl")
        with open(path, "w") as f:
            f.write("not json\n")
        with pytest.raises(LedgerStoreError):
            FileLedgerStore(path).head()


def test_append_rejects_malformed_records():
    store = MemoryLedgerStore()
    with pytest.raises(ValueError):
        store.append("", {}, ts=1)
    with pytest.raises(ValueError):
        store.append("k", {}, ts=-1)
    with pytest.raises(ValueError):
        store.append("k", {"x": float("nan")}, ts=1)
    assert len(store) == 0


def test_memory_store_returns_detached_entries():
    """Changing a returned entry must not change what is stored."""
    store = MemoryLedgerStore()
    payload = {"event_id": "e1", "plan": {"path": ["A", "B"]}}
    result = store.append("routing_decision", payload, ts=1)

    payload["plan"]["path"].append("C")
    result.entry.payload["event_id"] = "changed"
    next(store.read()).payload["plan"]["path"].append("D")
    store.get_entry(1).payload["event_id"] = "other"

    assert store.get_entry(1).payload == {"event_id": "e1", "plan": {"path": ["A", "B"]}}
    assert verify_chain(store)


def test_file_store_without_create_requires_existing_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "missing", "ledger.jsonl")
        with pytest.raises(LedgerStoreError):
            FileLedgerStore(path, create=False)
        assert not os.path.exists(path)

        FileLedgerStore(path).append("routing_decision", {"n": 1}, ts=1)
        assert len(FileLedgerStore(path, create=False)) == 1
