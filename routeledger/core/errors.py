"""
Exception types for the deterministic router and integrity ledger.
"""

from typing import Optional


class RoutingError(Exception):
    """
    Base class for failures of a single routing attempt.

    Fields:
        reason: Name of the first failing constraint (or failure cause)
        stage: Routing stage the failure was detected in
        node: Node the path was at when routing failed
    """

    code = "RoutingError"

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        stage: Optional[str] = None,
        node: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.stage = stage
        self.node = node


class InvalidEvent(RoutingError):
    """Raised when an event is malformed or references unknown nodes."""

    code = "InvalidEvent"


class NoAdmissiblePath(RoutingError):
    """Raised when no outgoing edge of the source node is admissible."""

    code = "NoAdmissiblePath"


class PathExhausted(RoutingError):
    """Raised when a partial path cannot be extended to the destination."""

    code = "PathExhausted"


class CycleDetected(RoutingError):
    """Raised when the selected hop revisits a node already in the path."""

    code = "CycleDetected"


class GraphIntegrityError(Exception):
    """Raised when a graph version violates a construction invariant."""
    pass


class PolicyError(ValueError):
    """Raised when a policy carries out-of-range values."""
    pass


class LedgerError(Exception):
    """Base class for ledger failures."""
    pass


class IntegrityViolation(LedgerError):
    """
    Raised when hash chain verification fails.

    seq is the first mismatched sequence number. The ledger is never
    patched; the violation must be surfaced for review.
    """

    def __init__(self, seq: int, reason: str, expected: Optional[str] = None, actual: Optional[str] = None) -> None:
        super().__init__(f"integrity violation at seq {seq}: {reason}")
        self.seq = seq
        self.reason = reason
        self.expected = expected
        self.actual = actual


class EntryNotFound(LedgerError, KeyError):
    """Raised when a ledger sequence number has no entry."""

    def __init__(self, seq: int) -> None:
        super().__init__(f"ledger entry not found: {seq}")
        self.seq = seq

    def __str__(self) -> str:
        return f"ledger entry not found: {self.seq}"


class LedgerStoreError(LedgerError):
    """Raised when ledger persistence operations fail."""
    pass
