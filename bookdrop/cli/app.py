"""Main Typer application — imports and registers all CLI commands.

Entry point: ``bookdrop`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from bookdrop.cli.commands.deliveries import deliveries_cmd
from bookdrop.cli.commands.destination import set_destination_cmd
from bookdrop.cli.commands.run import run_cmd

app = typer.Typer(
    name="bookdrop",
    help="Bookdrop: deliver e-books from Telegram to Kindle.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Run the bot until interrupted.")(run_cmd)
app.command(name="deliveries", help="Show recent deliveries.")(deliveries_cmd)
app.command(name="set-destination", help="Set a user's Kindle address.")(set_destination_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
