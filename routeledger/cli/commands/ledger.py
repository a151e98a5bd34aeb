"""
Ledger commands: tail, show, verify, proof
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ...config import default_ledger_path
from ...core.errors import EntryNotFound, IntegrityViolation, LedgerStoreError
from ...ledger import FileLedgerStore, verify_chain
from ...verify import build_decision_proof

app = typer.Typer()
console = Console()

LEDGER_OPTION = typer.Option(None, "--ledger", "-l", help="Path to ledger file (JSONL)")


def _open(ledger_path: Optional[str]) -> FileLedgerStore:
    return FileLedgerStore(ledger_path or default_ledger_path(), create=False)


@app.command()
def tail(
    ledger_path: Optional[str] = LEDGER_OPTION,
    lines: int = typer.Option(10, "--lines", "-n", help="Number of entries to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show the last entries of the ledger.

    Examples:
        routeledger ledger tail
        routeledger ledger tail --lines 50 --json
    """
    try:
        store = _open(ledger_path)
        entries = list(store.read())[-lines:] if lines > 0 else []
    except LedgerStoreError as e:
        _fail(json_output, str(e))

    if json_output:
        print(json.dumps({"entries": [e.to_dict() for e in entries], "count": len(entries)}, indent=2))
        raise typer.Exit(0)

    if not entries:
        console.print("[yellow]Ledger is empty[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Ledger: {store.path}")
    table.add_column("Seq", style="cyan", justify="right")
    table.add_column("Kind", style="green")
    table.add_column("Event", style="yellow")
    table.add_column("Ts", justify="right")
    table.add_column("Hash (prefix)", style="dim")
    for entry in entries:
        event_id = entry.payload.get("event", {}).get("event_id") or entry.payload.get("event_id", "")
        table.add_row(str(entry.seq), entry.kind, event_id, str(entry.ts), entry.entry_hash[:16])
    console.print(table)
    console.print(f"\n[bold]Head seq:[/bold] {store.head()[0]}")


@app.command()
def show(
    seq: int = typer.Argument(..., help="Sequence number"),
    ledger_path: Optional[str] = LEDGER_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show one ledger entry."""
    try:
        entry = _open(ledger_path).get_entry(seq)
    except EntryNotFound as e:
        _fail(json_output, str(e), code=1)
    except LedgerStoreError as e:
        _fail(json_output, str(e))

    if json_output:
        print(json.dumps(entry.to_dict(), indent=2))
        return

    console.print(f"[bold cyan]Entry {entry.seq}[/bold cyan] ({entry.kind})")
    console.print(f"  Ts: {entry.ts}")
    console.print(f"  Entry hash: {entry.entry_hash}")
    console.print(f"  Prev hash: {entry.prev_hash}")
    console.print(f"  Payload hash: {entry.payload_hash}")
    console.print(Syntax(json.dumps(entry.payload, indent=2, sort_keys=True), "json", theme="monokai"))


@app.command()
def verify(
    ledger_path: Optional[str] = LEDGER_OPTION,
    from_seq: int = typer.Option(1, "--from", help="First sequence number"),
    to_seq: Optional[int] = typer.Option(None, "--to", help="Last sequence number (default: head)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify the hash chain over a range.

    Exit codes: 0 valid, 1 integrity violation, 2 error.
    """
    try:
        store = _open(ledger_path)
        verify_chain(store, from_seq, to_seq)
    except IntegrityViolation as e:
        if json_output:
            print(json.dumps({"valid": False, "seq": e.seq, "reason": e.reason}))
        else:
            console.print(f"[red]✗ Integrity violation at seq {e.seq}:[/red] {e.reason}")
        raise typer.Exit(1)
    except (EntryNotFound, LedgerStoreError, ValueError) as e:
        _fail(json_output, str(e))

    last = to_seq if to_seq is not None else store.head()[0]
    if json_output:
        print(json.dumps({"valid": True, "from_seq": from_seq, "to_seq": last}))
    else:
        console.print(f"[green]✓ Chain valid[/green] from seq {from_seq} to {last}")


def proof_command(
    event_id: str = typer.Argument(..., help="Event identifier"),
    ledger_path: Optional[str] = LEDGER_OPTION,
):
    """
    Build a decision proof for an event (JSON).

    Exit codes: 0 valid, 1 invalid or not found, 2 error.
    """
    try:
        proof = build_decision_proof(_open(ledger_path), event_id)
    except LedgerStoreError as e:
        _fail(True, str(e))
    print(json.dumps(proof, indent=2, sort_keys=True))
    raise typer.Exit(0 if proof.get("valid") else 1)


def _fail(json_output: bool, message: str, code: int = 2) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)
