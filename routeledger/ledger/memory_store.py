"""
In-process ledger store.

Entries live in a list guarded by a lock; the lock is the single writer.
"""

import threading
from dataclasses import replace
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from .entry import LedgerEntry
from .integrity import GENESIS_SEQ, ZERO_HASH
from .store import AppendResult, LedgerStore, check_record


class MemoryLedgerStore(LedgerStore):
    """
    Append-only in-memory ledger.

    Entry i is stored at index i - 1. Readers get detached copies, so
    append stays the only way to change what is stored.
    """

    def __init__(self) -> None:
        self._entries: List[LedgerEntry] = []
        self._lock = threading.Lock()

    def append(
        self,
        kind: str,
        payload: Mapping[str, Any],
        ts: int,
        expected_seq: Optional[int] = None,
        expected_prev_hash: Optional[str] = None,
    ) -> AppendResult:
        check_record(kind, payload, ts)
        with self._lock:
            last_seq, last_hash = self._head_locked()
            result = self._next_entry(kind, payload, ts, last_seq, last_hash, expected_seq, expected_prev_hash)
            if result.committed:
                self._entries.append(result.entry)
                result = replace(result, entry=result.entry.detached())
            return result

    def _head_locked(self) -> Tuple[int, str]:
        if not self._entries:
            return 0, ZERO_HASH
        last = self._entries[-1]
        return last.seq, last.entry_hash

    def head(self) -> Tuple[int, str]:
        with self._lock:
            return self._head_locked()

    def read(self, from_seq: int = GENESIS_SEQ, to_seq: Optional[int] = None) -> Iterator[LedgerEntry]:
        with self._lock:
            snapshot = list(self._entries)
        start = max(from_seq, GENESIS_SEQ) - 1
        stop = len(snapshot) if to_seq is None else min(to_seq, len(snapshot))
        for i in range(start, stop):
            yield snapshot[i].detached()
