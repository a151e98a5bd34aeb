"""
Checkpoint commands: keygen, create, verify, list
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...checkpoint import (
    CheckpointStore,
    LedgerCheckpoint,
    SigningKey,
    VerifyingKey,
    create_checkpoint,
    ensure_keypair,
    verify_checkpoint,
)
from ...config import default_context_capacity, default_ledger_path
from ...core.errors import IntegrityViolation, LedgerError
from ...ledger import FileLedgerStore

app = typer.Typer()
console = Console()


@app.command()
def keygen(
    key_path: Optional[str] = typer.Option(None, "--key", "-k", help="Private key path (default: ~/.routeledger/keys)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Generate an Ed25519 signing keypair if it does not exist yet."""
    private_path, public_path = ensure_keypair(key_path)
    pubkey_id = SigningKey.load_from_file(private_path).get_pubkey_id()
    if json_output:
        print(json.dumps({"private_key": private_path, "public_key": public_path, "pubkey_id": pubkey_id}))
    else:
        console.print(f"[green]✓ Keypair ready[/green] ({pubkey_id})")
        console.print(f"  Private: [cyan]{private_path}[/cyan]")
        console.print(f"  Public: [cyan]{public_path}[/cyan]")


@app.command()
def create(
    ledger_path: Optional[str] = typer.Option(None, "--ledger", "-l", help="Path to ledger file (JSONL)"),
    key_path: Optional[str] = typer.Option(None, "--key", "-k", help="Signing key (Ed25519 private key PEM)"),
    directory: str = typer.Option("checkpoints", "--dir", "-d", help="Checkpoint directory"),
    graph_version: str = typer.Option("", "--graph-version", help="Graph version to record"),
    seq: Optional[int] = typer.Option(None, "--seq", help="Sequence number to sign (default: head)"),
    keep: Optional[int] = typer.Option(None, "--keep", help="Keep only the latest N checkpoints"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create a signed checkpoint of the ledger head.

    Examples:
        routeledger checkpoint create --key ~/.routeledger/keys/checkpoint_ed25519
        routeledger checkpoint create --seq 42 --dir ./checkpoints --json
    """
    try:
        private_path, _ = ensure_keypair(key_path)
        signing_key = SigningKey.load_from_file(private_path)
        store = FileLedgerStore(ledger_path or default_ledger_path(), create=False)
        checkpoint = create_checkpoint(
            store,
            signing_key,
            graph_version=graph_version,
            seq=seq,
            capacity=default_context_capacity(),
        )
        cp_store = CheckpointStore(directory)
        path = cp_store.save(checkpoint)
        if keep is not None:
            cp_store.rotate(keep)
    except IntegrityViolation as e:
        _fail(json_output, str(e), code=1)
    except (LedgerError, ValueError, OSError) as e:
        _fail(json_output, str(e))

    if json_output:
        print(json.dumps({"success": True, "checkpoint_path": path, **checkpoint.to_dict()}, indent=2))
    else:
        console.print("[green]✓ Checkpoint created[/green]")
        console.print(f"  File: [cyan]{path}[/cyan]")
        console.print(f"  Seq: {checkpoint.seq}")
        console.print(f"  Entry hash: {checkpoint.entry_hash[:16]}...")
        console.print(f"  Context hash: {checkpoint.context_hash[:16]}...")
        console.print(f"  Public key ID: {checkpoint.pubkey_id}")


@app.command()
def verify(
    checkpoint_path: str = typer.Argument(..., help="Path to checkpoint file"),
    pubkey_path: str = typer.Option(..., "--pubkey", "-p", help="Verifying key (Ed25519 public key PEM)"),
    ledger_path: Optional[str] = typer.Option(None, "--ledger", "-l", help="Path to ledger file (JSONL)"),
    mode: str = typer.Option("signature", "--mode", "-m", help="signature, resume or full"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify a checkpoint.

    Exit codes: 0 valid, 1 invalid, 2 error.
    """
    try:
        with open(checkpoint_path, "r") as f:
            checkpoint = LedgerCheckpoint.from_json(f.read())
        verifying_key = VerifyingKey.load_from_file(pubkey_path)
        store = None if mode == "signature" else FileLedgerStore(ledger_path or default_ledger_path(), create=False)
        result = verify_checkpoint(checkpoint, verifying_key, store, mode=mode)
    except (LedgerError, ValueError, OSError, KeyError) as e:
        _fail(json_output, str(e))

    if json_output:
        print(json.dumps({"mode": mode, **result.__dict__}))
    elif result.valid:
        console.print(f"[green]✓ Checkpoint valid[/green] ({mode})")
        if result.verified_to_seq is not None:
            console.print(f"  Verified to seq {result.verified_to_seq}")
    else:
        console.print(f"[red]✗ Checkpoint invalid:[/red] {result.error}")
        if result.mismatch_seq is not None:
            console.print(f"  Mismatch at seq {result.mismatch_seq}")
    raise typer.Exit(0 if result.valid else 1)


@app.command("list")
def list_command(
    directory: str = typer.Option("checkpoints", "--dir", "-d", help="Checkpoint directory"),
):
    """List checkpoints in a directory."""
    cp_store = CheckpointStore(directory)
    table = Table(title=f"Checkpoints: {directory}")
    table.add_column("Seq", style="cyan", justify="right")
    table.add_column("Entry hash (prefix)", style="dim")
    table.add_column("Graph version (prefix)")
    table.add_column("Key", style="yellow")
    for path in cp_store.list_checkpoints():
        cp = cp_store.load(path)
        table.add_row(str(cp.seq), cp.entry_hash[:16], cp.graph_version[:12], cp.pubkey_id)
    console.print(table)


def _fail(json_output: bool, message: str, code: int = 2) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)
