"""
Tests for the routeledger command-line interface.
"""

import json
import logging
import os
import tempfile

import pytest
from typer.testing import CliRunner

from routeledger.cli.main import app

runner = CliRunner()

GRAPH = {
    "nodes": [{"id": "A", "protocol": "A"}, {"id": "B", "protocol": "B"}],
    "edges": [{"source": "A", "destination": "B"}],
}
POLICY = {"maxPathLength": 5, "allowedProtocols": ["A", "B"], "minVolumeThreshold": 1000000}
EVENTS = [
    {"id": "evt-1", "timestamp": 1700000000, "source": "A", "destination": "B", "volume": 5000000},
    {"id": "evt-2", "timestamp": 1700000001, "source": "A", "destination": "B", "volume": 500000},
]


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI callback reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _write(tmpdir: str, name: str, data) -> str:
    path = os.path.join(tmpdir, name)
    with open(path, "w") as f:
        json.dump(data, f)
    return path


def _route(tmpdir: str, events=EVENTS):
    ledger = os.path.join(tmpdir, "ledger.jsonl")
    result = runner.invoke(
        app,
        [
            "route",
            "--graph", _write(tmpdir, "graph.json", GRAPH),
            "--policy", _write(tmpdir, "policy.json", POLICY),
            "--events", _write(tmpdir, "events.json", events),
            "--ledger", ledger,
            "--json",
        ],
    )
    return result, ledger


def test_route_command_reports_each_event():
    with tempfile.TemporaryDirectory() as tmpdir:
        result, _ = _route(tmpdir)
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        ok, rejected = data["outcomes"]
        assert ok["ok"] and ok["plan"]["path"] == ["A", "B"]
        assert ok["proof"]["seq"] == 1
        assert rejected["error"] == "NoAdmissiblePath"
        assert rejected["reason"] == "volumeThreshold"


def test_route_command_all_succeed():
    with tempfile.TemporaryDirectory() as tmpdir:
        result, _ = _route(tmpdir, events=EVENTS[:1])
        assert result.exit_code == 0


def test_route_command_bad_graph():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app,
            [
                "route",
                "--graph", _write(tmpdir, "graph.json", {"nodes": [], "edges": [{"source": "A", "destination": "B"}]}),
                "--policy", _write(tmpdir, "policy.json", POLICY),
                "--events", _write(tmpdir, "events.json", EVENTS),
                "--ledger", os.path.join(tmpdir, "ledger.jsonl"),
                "--json",
            ],
        )
        assert result.exit_code == 2
        assert "error" in json.loads(result.stdout)


def test_ledger_verify_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, ledger = _route(tmpdir, events=EVENTS[:1])

        result = runner.invoke(app, ["ledger", "verify", "--ledger", ledger, "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"valid": True, "from_seq": 1, "to_seq": 1}

        result = runner.invoke(app, ["ledger", "show", "1", "--ledger", ledger, "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["kind"] == "routing_decision"

        result = runner.invoke(app, ["ledger", "show", "9", "--ledger", ledger, "--json"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["ledger", "tail", "--ledger", ledger, "--json"])
        assert json.loads(result.stdout)["count"] == 1


def test_ledger_verify_detects_tamper():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, ledger = _route(tmpdir, events=EVENTS[:1])
        with open(ledger, "r") as f:
            rec = json.loads(f.readline())
        rec["ts"] = 0
        with open(ledger, "w") as f:
            f.write(json.dumps(rec) + "\n")

        result = runner.invoke(app, ["ledger", "verify", "--ledger", ledger, "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["seq"] == 1


def test_proof_command():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, ledger = _route(tmpdir)
        result = runner.invoke(app, ["proof", "evt-1", "--ledger", ledger])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["decision"]["path"] == ["A", "B"]

        result = runner.invoke(app, ["proof", "evt-2", "--ledger", ledger])
        assert result.exit_code == 1


def test_checkpoint_create_and_verify():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, ledger = _route(tmpdir)
        key = os.path.join(tmpdir, "keys", "cp_key")
        cp_dir = os.path.join(tmpdir, "checkpoints")

        result = runner.invoke(app, ["checkpoint", "keygen", "--key", key, "--json"])
        assert result.exit_code == 0

        result = runner.invoke(
            app, ["checkpoint", "create", "--ledger", ledger, "--key", key, "--dir", cp_dir, "--json"]
        )
        assert result.exit_code == 0
        created = json.loads(result.stdout)
        assert created["seq"] == 1

        for mode in ("signature", "resume", "full"):
            result = runner.invoke(
                app,
                [
                    "checkpoint", "verify", created["checkpoint_path"],
                    "--pubkey", key + ".pub",
                    "--ledger", ledger,
                    "--mode", mode,
                    "--json",
                ],
            )
            assert result.exit_code == 0, result.stdout
            assert json.loads(result.stdout)["valid"] is True


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "routeledger" in result.stdout


def test_read_commands_reject_missing_ledger():
    """A mistyped ledger path is an error, never an empty valid chain."""
    with tempfile.TemporaryDirectory() as tmpdir:
        ledger = os.path.join(tmpdir, "no-such-ledger.jsonl")

        for args in (
            ["ledger", "verify", "--ledger", ledger, "--json"],
            ["ledger", "tail", "--ledger", ledger, "--json"],
            ["ledger", "show", "1", "--ledger", ledger, "--json"],
            ["proof", "evt-1", "--ledger", ledger],
        ):
            result = runner.invoke(app, args)
            assert result.exit_code == 2, args
            assert "not found" in json.loads(result.stdout)["error"]

        assert not os.path.exists(ledger)
