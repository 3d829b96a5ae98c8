"""``bookdrop deliveries`` — show the most recent delivery log rows."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from bookdrop.core.record_store import RecordStore

console = Console()


def deliveries_cmd(
    user_id: int = typer.Option(
        None,
        "--user",
        "-u",
        help="Only show deliveries for this user id.",
    ),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Maximum number of rows to show.",
    ),
    db: str = typer.Option(
        ".bookdrop/bookdrop.db",
        "--db",
        help="Path to the bookdrop SQLite database.",
    ),
) -> None:
    """List delivered books, newest first."""
    db_path = Path(db)
    if not db_path.exists():
        console.print(f"[bold red]Database not found:[/bold red] {db}")
        raise typer.Exit(code=1)

    store = RecordStore(db_path)
    records = store.list_delivery_records(user_id, limit=limit)
    if not records:
        console.print("[dim]No deliveries recorded.[/dim]")
        return

    table = Table(title="Recent Deliveries")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("User", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Delivered At (UTC)")

    for record in records:
        table.add_row(
            str(record.id),
            str(record.user_id),
            record.name,
            f"{record.size:,}",
            record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)
    total = store.count_delivery_records(user_id)
    console.print(f"[dim]{len(records)} of {total} deliveries shown.[/dim]")
