"""
File-based ledger store using append-only JSONL format.

Each line is one canonical LedgerEntry record. Reopening the file resumes
the chain from the last stored entry.
"""

import json
import logging
import os
import threading
from typing import Any, Iterator, Mapping, Optional, Tuple

from ..core.canonical import canonical_json_str
from ..core.errors import LedgerStoreError
from .entry import LedgerEntry
from .integrity import GENESIS_SEQ, ZERO_HASH
from .store import AppendResult, LedgerStore, check_record

try:
    import fcntl
except ImportError:  # Windows or unsupported platform
    fcntl = None

logger = logging.getLogger(__name__)


class FileLedgerStore(LedgerStore):
    """
    File-based append-only ledger.

    Storage format: JSONL (newline-delimited JSON)
    Each line: {"seq": 1, "kind": "...", "ts": 0, "payload": {...},
                "payload_hash": "...", "prev_hash": "...", "entry_hash": "..."}

    Guarantees:
    - Append-only (no mutations)
    - Exclusive file lock around read-head-then-write (multi-process safe)
    - Fsync after each append (durability)
    """

    def __init__(self, path: str, create: bool = True) -> None:
        """
        Initialize file ledger store.

        Args:
            path: Path to JSONL file
            create: Create the file if missing; otherwise a missing file
                raises LedgerStoreError
        """
        self.path = path
        self._lock = threading.Lock()

        if not create and not os.path.exists(path):
            raise LedgerStoreError(f"ledger file not found: {path}")

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        if not os.path.exists(path):
            with open(path, "wb") as f:
                f.write(b"")

    def _parse(self, line: bytes, lineno: int) -> LedgerEntry:
        try:
            return LedgerEntry.from_dict(json.loads(line))
        except (ValueError, KeyError, TypeError) as ex:
            raise LedgerStoreError(f"{self.path}:{lineno}: unreadable ledger record: {ex}") from ex

    def _last_seq_and_hash(self, f) -> Tuple[int, str]:
        """
        Read last sequence number and hash from the open file.

        Returns:
            (last_seq, last_hash), (0, ZERO_HASH) if the ledger is empty
        """
        last_seq = 0
        last_hash = ZERO_HASH
        f.seek(0)
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            entry = self._parse(line, lineno)
            last_seq = entry.seq
            last_hash = entry.entry_hash
        return last_seq, last_hash

    def append(
        self,
        kind: str,
        payload: Mapping[str, Any],
        ts: int,
        expected_seq: Optional[int] = None,
        expected_prev_hash: Optional[str] = None,
    ) -> AppendResult:
        """
        Append a record to the ledger file with hash chain.

        Raises:
            LedgerStoreError: If the write fails
        """
        check_record(kind, payload, ts)
        with self._lock:
            try:
                with open(self.path, "a+b") as f:
                    if fcntl:
                        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                    try:
                        last_seq, last_hash = self._last_seq_and_hash(f)
                        result = self._next_entry(
                            kind, payload, ts, last_seq, last_hash, expected_seq, expected_prev_hash
                        )
                        if result.committed:
                            line = canonical_json_str(result.entry.to_dict()) + "\n"
                            f.seek(0, os.SEEK_END)
                            f.write(line.encode("utf-8"))
                            f.flush()
                            os.fsync(f.fileno())
                        return result
                    finally:
                        if fcntl:
                            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            except OSError as ex:
                logger.error("ledger append to %s failed: %s", self.path, ex)
                raise LedgerStoreError(str(ex)) from ex

    def read(self, from_seq: int = GENESIS_SEQ, to_seq: Optional[int] = None) -> Iterator[LedgerEntry]:
        """
        Read entries from the ledger file.

        Yields:
            Entries in file order within [from_seq, to_seq]
        """
        with open(self.path, "rb") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                entry = self._parse(line, lineno)
                if entry.seq < from_seq:
                    continue
                if to_seq is not None and entry.seq > to_seq:
                    break
                yield entry

    def head(self) -> Tuple[int, str]:
        with open(self.path, "rb") as f:
            return self._last_seq_and_hash(f)
