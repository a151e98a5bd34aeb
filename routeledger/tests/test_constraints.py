"""
Tests for constraint evaluation order and fail-closed behaviour.
"""

import pytest

from routeledger.core import ActivityEvent, ContextRecord, HistoricalContext, PolicyConfig
from routeledger.graph import GraphEdge
from routeledger.routing import (
    PATH_LENGTH_BUDGET,
    PROTOCOL_ALLOW_LIST,
    VOLUME_THRESHOLD,
    ConstraintEvaluator,
    ConstraintRegistry,
    is_admissible,
)

EDGE = GraphEdge("A", "B", protocol="B", capacity=100)
EMPTY = HistoricalContext(capacity=8)


def _event(volume=50, **metadata):
    return ActivityEvent("e1", 1, "A", "B", volume, metadata)


def _policy(**kwargs):
    params = {"max_path_length": 3, "allowed_protocols": ["A", "B"], "min_volume_threshold": 10}
    params.update(kwargs)
    return PolicyConfig.create(**params)


def test_admissible_edge():
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(), _policy(), EMPTY)
    assert verdict.admissible
    assert verdict.reason is None
    assert is_admissible(EDGE, _event(), _policy(), EMPTY)


def test_protocol_checked_before_volume():
    """First failing constraint in fixed order is reported."""
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(volume=1), _policy(allowed_protocols=["X"]), EMPTY)
    assert verdict.reason == PROTOCOL_ALLOW_LIST


def test_volume_checked_before_path_budget():
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(volume=1), _policy(max_path_length=1), EMPTY, path_length=1)
    assert verdict.reason == VOLUME_THRESHOLD


def test_path_budget():
    evaluator = ConstraintEvaluator()
    policy = _policy(max_path_length=2)
    assert evaluator.evaluate(EDGE, _event(), policy, EMPTY, path_length=1).admissible
    assert evaluator.evaluate(EDGE, _event(), policy, EMPTY, path_length=2).reason == PATH_LENGTH_BUDGET


def test_named_constraints_in_sorted_order():
    policy = _policy(constraints={"maxVolume": {"limit": 10}, "denyNodes": {"nodes": ["B"]}})
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(), policy, EMPTY)
    assert verdict.reason == "denyNodes"


def test_edge_capacity_constraint():
    policy = _policy(constraints={"edgeCapacity": True})
    evaluator = ConstraintEvaluator()
    assert evaluator.evaluate(EDGE, _event(volume=100), policy, EMPTY).admissible
    assert evaluator.evaluate(EDGE, _event(volume=101), policy, EMPTY).reason == "edgeCapacity"


def test_require_metadata_constraint():
    policy = _policy(constraints={"requireMetadata": {"keys": ["desk"]}})
    evaluator = ConstraintEvaluator()
    assert not evaluator.is_admissible(EDGE, _event(), policy, EMPTY)
    assert evaluator.is_admissible(EDGE, _event(desk="fx"), policy, EMPTY)


def test_rate_limit_reads_context():
    policy = _policy(constraints={"rateLimit": {"max_events": 2}})
    ctx = EMPTY
    evaluator = ConstraintEvaluator()
    for i in range(2):
        assert evaluator.is_admissible(EDGE, _event(), policy, ctx)
        ctx = ctx.append(ContextRecord(f"p{i}", "A", "B", 50, i, ("A", "B")))
    assert evaluator.evaluate(EDGE, _event(), policy, ctx).reason == "rateLimit"


def test_unknown_constraint_fails_closed():
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(), _policy(constraints={"noSuchRule": 1}), EMPTY)
    assert not verdict.admissible
    assert verdict.reason == "noSuchRule"


def test_malformed_parameters_fail_closed():
    verdict = ConstraintEvaluator().evaluate(EDGE, _event(), _policy(constraints={"maxVolume": "lots"}), EMPTY)
    assert verdict.reason == "maxVolume"


def test_registered_predicate():
    registry = ConstraintRegistry.default()
    registry.register("evenVolume", lambda edge, event, params, context: event.volume % 2 == 0)
    evaluator = ConstraintEvaluator(registry)
    policy = _policy(constraints={"evenVolume": True})

    assert "evenVolume" in registry
    assert evaluator.is_admissible(EDGE, _event(volume=50), policy, EMPTY)
    assert evaluator.evaluate(EDGE, _event(volume=51), policy, EMPTY).reason == "evenVolume"


def test_reserved_names_cannot_be_registered():
    with pytest.raises(ValueError):
        ConstraintRegistry().register(VOLUME_THRESHOLD, lambda *args: True)


def test_evaluation_is_pure():
    """Repeated evaluation gives the same verdict and leaves inputs untouched."""
    evaluator = ConstraintEvaluator()
    policy = _policy(constraints={"maxVolume": {"limit": 60}})
    event = _event()
    verdicts = {evaluator.evaluate(EDGE, event, policy, EMPTY) for _ in range(50)}
    assert len(verdicts) == 1
    assert len(EMPTY) == 0
