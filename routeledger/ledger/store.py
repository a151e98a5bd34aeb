"""
LedgerStore abstract interface.

Defines the contract for append-only ledger storage implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Tuple

from ..core.canonical import canonical_json_bytes
from ..core.errors import EntryNotFound, LedgerStoreError
from .entry import LedgerEntry
from .integrity import GENESIS_SEQ, chain_entry


@dataclass(frozen=True)
class AppendResult:
    """
    Result of an append attempt.

    When committed is False and conflict is True, nothing was written and
    observed_seq/observed_prev_hash describe the head the store saw.
    """

    entry: Optional[LedgerEntry]
    committed: bool
    conflict: bool
    observed_seq: int = 0
    observed_prev_hash: Optional[str] = None

    @property
    def seq(self) -> Optional[int]:
        return self.entry.seq if self.entry is not None else None

    @property
    def entry_hash(self) -> Optional[str]:
        return self.entry.entry_hash if self.entry is not None else None


class LedgerStore(ABC):
    """
    Abstract ledger storage interface.

    All implementations must guarantee:
    - Append-only (no updates, no deletes)
    - Gapless sequence numbers starting at 1
    - Serialized appends (single logical writer)
    """

    @abstractmethod
    def append(
        self,
        kind: str,
        payload: Mapping[str, Any],
        ts: int,
        expected_seq: Optional[int] = None,
        expected_prev_hash: Optional[str] = None,
    ) -> AppendResult:
        """
        Append a record, assigning the next sequence number.

        Args:
            kind: Record kind
            payload: Record content (canonically encodable)
            ts: Deterministic timestamp
            expected_seq: Sequence number the caller expects to be assigned
            expected_prev_hash: Head hash the caller expects to chain to

        Returns:
            AppendResult with commit / conflict info

        Raises:
            LedgerStoreError: If the write fails
        """
        ...

    def append_with_retry(
        self, kind: str, payload: Mapping[str, Any], ts: int, max_retries: int = 3
    ) -> AppendResult:
        """
        Append with simple conflict retry.

        Uses head() as the expected position. On conflict, refreshes the
        head and retries up to max_retries.
        """
        last_seq, last_hash = self.head()
        for _ in range(max_retries):
            result = self.append(kind, payload, ts, expected_seq=last_seq + 1, expected_prev_hash=last_hash)
            if result.committed:
                return result
            if not result.conflict:
                raise LedgerStoreError("append failed without conflict")
            last_seq, last_hash = self.head()
        raise LedgerStoreError("append failed after conflicts")

    @abstractmethod
    def read(self, from_seq: int = GENESIS_SEQ, to_seq: Optional[int] = None) -> Iterator[LedgerEntry]:
        """
        Read entries in sequence order.

        Args:
            from_seq: First sequence number (inclusive)
            to_seq: Last sequence number (inclusive, None = head)
        """
        ...

    @abstractmethod
    def head(self) -> Tuple[int, str]:
        """
        Return (last_seq, last_entry_hash).

        (0, ZERO_HASH) for an empty ledger.
        """
        ...

    def get_entry(self, seq: int) -> LedgerEntry:
        """
        Return the entry at seq.

        Raises:
            EntryNotFound: If no entry has that sequence number
        """
        for entry in self.read(from_seq=seq, to_seq=seq):
            if entry.seq == seq:
                return entry
        raise EntryNotFound(seq)

    def __len__(self) -> int:
        return self.head()[0]

    def _next_entry(
        self,
        kind: str,
        payload: Mapping[str, Any],
        ts: int,
        last_seq: int,
        last_hash: str,
        expected_seq: Optional[int],
        expected_prev_hash: Optional[str],
    ) -> AppendResult:
        """Build the next entry, or a conflict result if the head moved."""
        if (expected_seq is not None and expected_seq != last_seq + 1) or (
            expected_prev_hash is not None and expected_prev_hash != last_hash
        ):
            return AppendResult(
                entry=None,
                committed=False,
                conflict=True,
                observed_seq=last_seq,
                observed_prev_hash=last_hash,
            )
        return AppendResult(
            entry=chain_entry(last_seq + 1, last_hash, kind, payload, ts),
            committed=True,
            conflict=False,
            observed_seq=last_seq,
            observed_prev_hash=last_hash,
        )


def check_record(kind: str, payload: Mapping[str, Any], ts: int) -> None:
    """
    Validate an append request before taking the write lock.

    Raises:
        ValueError: If kind, payload or ts is malformed
    """
    if not isinstance(kind, str) or not kind:
        raise ValueError("ledger record kind must be a non-empty string")
    if isinstance(ts, bool) or not isinstance(ts, int) or ts < 0:
        raise ValueError(f"ledger timestamp must be a non-negative integer, got {ts!r}")
    if not isinstance(payload, Mapping):
        raise ValueError("ledger payload must be a mapping")
    try:
        canonical_json_bytes(payload)
    except (TypeError, ValueError) as ex:
        raise ValueError(f"ledger payload is not canonically encodable: {ex}") from ex
