"""
Route command: route events from a file and append decisions to the ledger.
"""

import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ...config import default_context_capacity, default_ledger_path, load_graph, load_policy, parse_event
from ...core.errors import GraphIntegrityError, InvalidEvent, LedgerError, PolicyError
from ...ledger import FileLedgerStore
from ...replay import restore_router

console = Console()


def _load_events(path: str) -> List[dict]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def route_command(
    graph_path: str = typer.Option(..., "--graph", "-g", help="Graph definition (JSON)"),
    policy_path: str = typer.Option(..., "--policy", "-p", help="Policy (JSON)"),
    events_path: str = typer.Option(..., "--events", "-e", help="Event or list of events (JSON)"),
    ledger_path: Optional[str] = typer.Option(None, "--ledger", "-l", help="Ledger file (JSONL)"),
    capacity: Optional[int] = typer.Option(None, "--context-capacity", help="Context window capacity"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Route events and record each decision in the ledger.

    Examples:
        routeledger route -g graph.json -p policy.json -e events.json
        routeledger route -g graph.json -p policy.json -e event.json --json
    """
    ledger_path = ledger_path or default_ledger_path()
    try:
        graph = load_graph(graph_path)
        policy = load_policy(policy_path)
        raw_events = _load_events(events_path)
        store = FileLedgerStore(ledger_path)
        router = restore_router(graph, store, capacity=capacity or default_context_capacity())
    except FileNotFoundError as e:
        _fail(json_output, f"File not found: {e.filename}")
    except (json.JSONDecodeError, GraphIntegrityError, PolicyError, LedgerError, ValueError) as e:
        _fail(json_output, str(e))

    outcomes = []
    for raw in raw_events:
        try:
            event = parse_event(raw)
        except InvalidEvent as e:
            outcomes.append({"ok": False, "error": e.code, "reason": e.reason, "message": str(e)})
            continue
        outcome = router.route(event, policy)
        outcomes.append({"event_id": event.event_id, **outcome.to_dict()})

    if json_output:
        print(json.dumps({"graph_version": graph.version, "outcomes": outcomes}, indent=2))
    else:
        table = Table(title=f"Routing on graph {graph.version[:12]}")
        table.add_column("Event", style="cyan")
        table.add_column("Result")
        table.add_column("Path / Reason", style="yellow")
        table.add_column("Seq", justify="right")
        table.add_column("Entry hash (prefix)", style="dim")
        for out in outcomes:
            if out["ok"]:
                table.add_row(
                    out["event_id"],
                    "[green]completed[/green]",
                    " -> ".join(out["plan"]["path"]),
                    str(out["proof"]["seq"]),
                    out["proof"]["entry_hash"][:16],
                )
            else:
                table.add_row(
                    out.get("event_id", "?"),
                    f"[red]{out['error']}[/red]",
                    str(out.get("reason") or ""),
                    "-",
                    "-",
                )
        console.print(table)

    failed = sum(1 for out in outcomes if not out["ok"])
    raise typer.Exit(1 if failed else 0)


def _fail(json_output: bool, message: str) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(2)
