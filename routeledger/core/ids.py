"""
Stable identifier generation.

Provides deterministic ID generation without randomness.
"""

import hashlib


def stable_id(*parts: str) -> str:
    """
    Generate a stable ID derived from inputs (no randomness).

    Parts are length-prefixed so ("ab", "c") and ("a", "bc") differ.

    Example:
        stable_id("plan", "evt-1", "A", "B") -> "5c1e..."
    """
    h = hashlib.sha256()
    for part in parts:
        raw = part.encode("utf-8")
        h.update(len(raw).to_bytes(8, "big"))
        h.update(raw)
    return h.hexdigest()
