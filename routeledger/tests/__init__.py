"""
Test suite for the deterministic router and integrity ledger.

Focus areas:
- Canonical serialization determinism
- Constraint order and path selection determinism
- Hash chain integrity and tamper detection
- Replay and checkpoint verification
"""
