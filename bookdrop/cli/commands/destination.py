"""``bookdrop set-destination USER_ID ADDRESS`` — operator upsert of a destination."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from bookdrop.core.errors import InvalidDestinationError, StoreError
from bookdrop.core.record_store import RecordStore
from bookdrop.core.validation import validate_destination

console = Console()


def set_destination_cmd(
    user_id: int = typer.Argument(..., help="Telegram user id."),
    address: str = typer.Argument(..., help="Kindle e-mail address."),
    suffix: str = typer.Option(
        "@kindle.com",
        "--suffix",
        help="Required address suffix.",
    ),
    db: str = typer.Option(
        ".bookdrop/bookdrop.db",
        "--db",
        help="Path to the bookdrop SQLite database.",
    ),
) -> None:
    """Validate ADDRESS and store it as USER_ID's destination."""
    try:
        destination = validate_destination(address, suffix)
    except InvalidDestinationError as exc:
        console.print(f"[bold red]Rejected:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        RecordStore(Path(db)).set_destination(user_id, destination)
    except StoreError as exc:
        console.print(f"[bold red]Store error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"[green]User {user_id} will receive books at {destination}[/green]")
