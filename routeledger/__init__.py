"""
Deterministic Routing Ledger

Derives deterministic execution paths for activity events over a
policy-constrained graph and records every decision in a hash-chained,
append-only ledger.
"""

__version__ = "0.1.0"
