"""
Checkpoint creation and verification.

Verification levels:
- signature: Signature only
- resume: Signature + anchor entry hash + chain forward from the checkpoint
- full: resume + chain up to the checkpoint + replayed context hash
"""

from dataclasses import dataclass, replace
from typing import Optional

from ..core.canonical import sha256_hex
from ..core.context import DEFAULT_CONTEXT_CAPACITY
from ..core.errors import EntryNotFound, IntegrityViolation
from ..ledger.integrity import GENESIS_SEQ, verify_chain
from ..ledger.store import LedgerStore
from ..replay.runner import restore_context
from .model import CHECKPOINT_VERSION, LedgerCheckpoint
from .signer import SigningKey, VerifyingKey


@dataclass
class VerificationResult:
    """
    Result of checkpoint verification.

    Fields:
        valid: Overall validity (all requested checks passed)
        signature_valid: Signature verification passed
        anchor_valid: Ledger entry at checkpoint seq has the signed hash
        chain_valid: Hash chain verified over the requested range
        context_valid: Replayed context matches the signed context hash
        verified_to_seq: Last sequence number covered by chain verification
        mismatch_seq: First mismatched sequence number, if any
        error: Error message if verification failed
    """
    valid: bool
    signature_valid: bool = False
    anchor_valid: bool = False
    chain_valid: bool = False
    context_valid: bool = False
    verified_to_seq: Optional[int] = None
    mismatch_seq: Optional[int] = None
    error: Optional[str] = None


def create_checkpoint(
    store: LedgerStore,
    signing_key: SigningKey,
    graph_version: str = "",
    seq: Optional[int] = None,
    capacity: int = DEFAULT_CONTEXT_CAPACITY,
) -> LedgerCheckpoint:
    """
    Sign the ledger head (or seq) after verifying the chain up to it.

    Raises:
        ValueError: If the ledger is empty
        IntegrityViolation: If the chain up to seq is broken
    """
    last_seq, _ = store.head()
    if seq is None:
        seq = last_seq
    if seq < GENESIS_SEQ:
        raise ValueError("cannot checkpoint an empty ledger")

    replayed = restore_context(store, capacity=capacity, to_seq=seq, verify=True)
    entry = store.get_entry(seq)

    unsigned = LedgerCheckpoint(
        version=CHECKPOINT_VERSION,
        seq=seq,
        entry_hash=entry.entry_hash,
        context_hash=sha256_hex(replayed.context.canonical_bytes()),
        graph_version=graph_version,
        created_at_logical=entry.ts,
        pubkey_id=signing_key.get_pubkey_id(),
        signature="",
        meta={"context_capacity": capacity},
    )
    return replace(unsigned, signature=signing_key.sign_base64(unsigned.signing_payload()))


def verify_signature(checkpoint: LedgerCheckpoint, verifying_key: VerifyingKey) -> VerificationResult:
    """Verify checkpoint signature only."""
    expected_pubkey_id = verifying_key.get_pubkey_id()
    if checkpoint.pubkey_id != expected_pubkey_id:
        return VerificationResult(
            valid=False,
            error=f"Public key ID mismatch: expected {expected_pubkey_id}, got {checkpoint.pubkey_id}",
        )

    if not verifying_key.verify_base64(checkpoint.signing_payload(), checkpoint.signature):
        return VerificationResult(valid=False, error="Invalid signature")

    return VerificationResult(valid=True, signature_valid=True)


def verify_from_checkpoint(
    checkpoint: LedgerCheckpoint,
    verifying_key: VerifyingKey,
    store: LedgerStore,
    to_seq: Optional[int] = None,
) -> VerificationResult:
    """
    Resume verification after a restart.

    Trusts the signed prefix, checks the stored entry at checkpoint.seq
    still carries the signed hash, then verifies the chain forward.
    """
    result = verify_signature(checkpoint, verifying_key)
    if not result.signature_valid:
        return result

    try:
        anchor = store.get_entry(checkpoint.seq)
    except EntryNotFound:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            mismatch_seq=checkpoint.seq,
            error=f"Entry {checkpoint.seq} not found in ledger",
        )
    if anchor.entry_hash != checkpoint.entry_hash:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            mismatch_seq=checkpoint.seq,
            error=f"Entry hash mismatch at seq {checkpoint.seq}",
        )

    last_seq, _ = store.head()
    end = last_seq if to_seq is None else to_seq
    try:
        if end > checkpoint.seq:
            verify_chain(store, checkpoint.seq + 1, end, anchor_hash=checkpoint.entry_hash)
    except IntegrityViolation as ex:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            anchor_valid=True,
            mismatch_seq=ex.seq,
            error=str(ex),
        )
    except EntryNotFound as ex:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            anchor_valid=True,
            error=str(ex),
        )

    return VerificationResult(
        valid=True,
        signature_valid=True,
        anchor_valid=True,
        chain_valid=True,
        verified_to_seq=max(end, checkpoint.seq),
    )


def verify_full(
    checkpoint: LedgerCheckpoint,
    verifying_key: VerifyingKey,
    store: LedgerStore,
) -> VerificationResult:
    """
    Full verification: the whole chain plus the replayed context hash.
    """
    result = verify_from_checkpoint(checkpoint, verifying_key, store)
    if not result.valid:
        return result

    capacity = int(checkpoint.meta.get("context_capacity", DEFAULT_CONTEXT_CAPACITY))
    try:
        replayed = restore_context(store, capacity=capacity, to_seq=checkpoint.seq, verify=True)
    except IntegrityViolation as ex:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            anchor_valid=True,
            mismatch_seq=ex.seq,
            error=str(ex),
        )

    context_hash = sha256_hex(replayed.context.canonical_bytes())
    if context_hash != checkpoint.context_hash:
        return VerificationResult(
            valid=False,
            signature_valid=True,
            anchor_valid=True,
            chain_valid=True,
            error=f"Context hash mismatch: computed {context_hash}, expected {checkpoint.context_hash}",
        )

    return VerificationResult(
        valid=True,
        signature_valid=True,
        anchor_valid=True,
        chain_valid=True,
        context_valid=True,
        verified_to_seq=result.verified_to_seq,
    )


def verify_checkpoint(
    checkpoint: LedgerCheckpoint,
    verifying_key: VerifyingKey,
    store: Optional[LedgerStore] = None,
    mode: str = "signature",
) -> VerificationResult:
    """
    Verify checkpoint with configurable verification level.

    Raises:
        ValueError: If mode needs a store and none was given, or mode is unknown
    """
    if mode == "signature":
        return verify_signature(checkpoint, verifying_key)
    if mode not in ("resume", "full"):
        raise ValueError(f"Unknown verification mode: {mode}")
    if store is None:
        raise ValueError(f"{mode} verification requires a ledger store")
    if mode == "resume":
        return verify_from_checkpoint(checkpoint, verifying_key, store)
    return verify_full(checkpoint, verifying_key, store)
