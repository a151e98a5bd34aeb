"""
Deterministic routing: constraint evaluation, path selection, plan building.
"""

from .constraints import (
    ConstraintEvaluator,
    ConstraintRegistry,
    Verdict,
    is_admissible,
    PROTOCOL_ALLOW_LIST,
    VOLUME_THRESHOLD,
    PATH_LENGTH_BUDGET,
)
from .selector import Candidate, SelectedPath, select_path, selection_seed, NO_OUTGOING_EDGES, CYCLE
from .plan import ExecutionPlan, PlanOperation, build_plan
from .router import Router, RouteOutcome, decision_payload, context_record_from_entry

__all__ = [
    "ConstraintEvaluator",
    "ConstraintRegistry",
    "Verdict",
    "is_admissible",
    "PROTOCOL_ALLOW_LIST",
    "VOLUME_THRESHOLD",
    "PATH_LENGTH_BUDGET",
    "Candidate",
    "SelectedPath",
    "select_path",
    "selection_seed",
    "NO_OUTGOING_EDGES",
    "CYCLE",
    "ExecutionPlan",
    "PlanOperation",
    "build_plan",
    "Router",
    "RouteOutcome",
    "decision_payload",
    "context_record_from_entry",
]
