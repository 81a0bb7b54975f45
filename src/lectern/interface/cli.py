"""
Lectern CLI - Command-line interface for operating the library store.

Commands:
- lectern list [--type song] → List items
- lectern show <id> → Print an item's current snapshot
- lectern history <id> → Show an item's commits, newest first
- lectern create <payload.json> → Create an item from a JSON payload
- lectern update <id> <delta.json> → Apply a partial update
- lectern revert <id> <commit_id> → Restore an earlier version as a new one
- lectern verify <id> → Audit an item's history chain
"""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lectern.core.config import setup_logging
from lectern.core.errors import LibraryStoreError
from lectern.storage.library import LibraryStore

app = typer.Typer(
    name="lectern",
    help="Lectern - Versioned presentation library store",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(None, "--root", help="Library root directory"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    """Open the library store shared by every command."""
    setup_logging(log_level)
    ctx.obj = LibraryStore(root)


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON object from a file, exiting on bad input."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: {path} is not valid JSON ({escape(str(e))})[/red]")
        raise typer.Exit(code=1)

    if not isinstance(data, dict):
        console.print(f"[red]Error: {path} must contain a JSON object[/red]")
        raise typer.Exit(code=1)
    return data


@app.command("list")
def list_items(
    ctx: typer.Context,
    item_type: Optional[str] = typer.Option(None, "--type", help="Only show items of this type"),
):
    """List items in the library."""
    store: LibraryStore = ctx.obj
    items = store.list(item_type)

    if not items:
        console.print("[dim]No items found[/dim]")
        return

    table = Table(title="Library")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Type", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Version", style="green", justify="right")
    table.add_column("Updated", style="dim")

    for item in items:
        table.add_row(
            item.id,
            item.type or "-",
            item.payload.title or "-",
            str(item.version),
            item.updated_at.isoformat()[:19],
        )

    console.print(table)


@app.command()
def show(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID"),
):
    """Print an item's current snapshot."""
    store: LibraryStore = ctx.obj
    item = store.get(item_id)

    if item is None:
        console.print(f"[red]Item {item_id} not found[/red]")
        raise typer.Exit(code=1)

    console.print_json(json.dumps(item.to_record()))


@app.command()
def history(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID"),
):
    """Show an item's commits, newest first."""
    store: LibraryStore = ctx.obj
    commits = store.get_history(item_id)

    if not commits:
        console.print(f"[dim]No history for {item_id}[/dim]")
        return

    table = Table(title=f"History of {item_id}")
    table.add_column("Version", style="green", justify="right")
    table.add_column("Commit", style="dim", no_wrap=True)
    table.add_column("When", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Device", style="dim")
    table.add_column("Summary", style="white")

    for commit in commits:
        table.add_row(
            str(commit.version_number),
            commit.commit_id,
            commit.timestamp.isoformat()[:19],
            commit.author,
            commit.device_id,
            commit.change_summary,
        )

    console.print(table)


@app.command()
def create(
    ctx: typer.Context,
    payload_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON payload file"),
    author: Optional[str] = typer.Option(None, help="Author of the item"),
    device: Optional[str] = typer.Option(None, help="Originating device ID"),
):
    """Create an item from a JSON payload."""
    store: LibraryStore = ctx.obj
    payload = load_json(payload_file)

    try:
        item = store.create(payload, author=author, device_id=device)
    except LibraryStoreError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Created {item.type or 'item'} {item.id} (v{item.version})[/green]")


@app.command()
def update(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID"),
    delta_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON delta file"),
    author: Optional[str] = typer.Option(None, help="Author of the change"),
    device: Optional[str] = typer.Option(None, help="Device making the change"),
    summary: Optional[str] = typer.Option(None, help="Change summary"),
    expected_version: Optional[int] = typer.Option(None, help="Only apply on this version"),
):
    """Apply a partial update to an item."""
    store: LibraryStore = ctx.obj
    delta = load_json(delta_file)

    try:
        item = store.update(
            item_id,
            delta,
            author=author,
            device_id=device,
            change_summary=summary,
            expected_version=expected_version,
        )
    except LibraryStoreError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Updated {item.id} to v{item.version}[/green]")


@app.command()
def revert(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID"),
    commit_id: str = typer.Argument(..., help="Commit to restore"),
    author: Optional[str] = typer.Option(None, help="Author of the revert"),
    device: Optional[str] = typer.Option(None, help="Device making the revert"),
):
    """Restore an earlier version as a new version."""
    store: LibraryStore = ctx.obj

    try:
        item = store.revert(item_id, commit_id, author=author, device_id=device)
    except LibraryStoreError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Reverted {item.id}, now v{item.version}[/green]")


@app.command()
def verify(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Item ID"),
):
    """Audit an item's history chain."""
    store: LibraryStore = ctx.obj
    report = store.verify(item_id)

    console.print(f"[bold]{item_id}[/bold]")
    console.print(f"  Commits: {report.commits}")
    console.print(f"  Current version: {report.current_version or '-'}")

    if report.ok:
        console.print("[green]✓ History is consistent[/green]")
        return

    for found in report.issues:
        where = f"v{found.version_number}: " if found.version_number else ""
        console.print(f"  [red]✗ {where}{found.message}[/red]")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
