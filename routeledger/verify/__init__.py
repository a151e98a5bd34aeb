"""
Verification helpers for decision proofs.
"""

from .proof import build_decision_proof, find_decision, find_settlements, ProofVerificationResult

__all__ = [
    "build_decision_proof",
    "find_decision",
    "find_settlements",
    "ProofVerificationResult",
]
