"""
Checkpoint system for signed ledger heads.

Provides:
- LedgerCheckpoint model with canonical signing payload
- Ed25519 signing and verification
- Checkpoint storage management
- Resume verification from a trusted checkpoint after restart
"""

from .model import LedgerCheckpoint, CHECKPOINT_VERSION
from .signer import SigningKey, VerifyingKey, ensure_keypair, get_default_key_path
from .verify import (
    VerificationResult,
    create_checkpoint,
    verify_checkpoint,
    verify_signature,
    verify_from_checkpoint,
    verify_full,
)
from .store import CheckpointStore

__all__ = [
    "LedgerCheckpoint",
    "CHECKPOINT_VERSION",
    "SigningKey",
    "VerifyingKey",
    "ensure_keypair",
    "get_default_key_path",
    "VerificationResult",
    "create_checkpoint",
    "verify_checkpoint",
    "verify_signature",
    "verify_from_checkpoint",
    "verify_full",
    "CheckpointStore",
]
