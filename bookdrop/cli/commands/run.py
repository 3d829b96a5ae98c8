"""``bookdrop run`` — run the bot until SIGINT/SIGTERM or token revocation.

On a stop signal the dispatcher stops pulling updates, then in-flight
deliveries are allowed to finish before the process exits.
"""

from __future__ import annotations

import logging
import signal
import threading

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from bookdrop.config import load_settings
from bookdrop.core.bot import Bot
from bookdrop.core.errors import ChannelError, ConfigurationError
from bookdrop.models.outcomes import StopReason

console = Console()
logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Route all logging through a Rich handler at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def run_cmd(
    drain_timeout: float = typer.Option(
        300.0,
        "--drain-timeout",
        "-d",
        help="Seconds to wait for in-flight deliveries after a stop signal.",
    ),
) -> None:
    """Run the bot.

    Settings come from ``BOOKDROP_*`` environment variables or ``.env``.
    """
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        bot = Bot.from_settings(settings)
    except (ConfigurationError, ValidationError) as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    stop = threading.Event()

    def _request_stop(signum: int, _frame: object) -> None:
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    try:
        me = bot.identity()
    except (ChannelError, httpx.HTTPError) as exc:
        logger.warning("Could not read bot identity: %s", exc)
        me = "unknown"
    logger.info("Starting bot %s (sender=%s)", me, settings.bot_email)

    reason = bot.run(stop)
    idle = bot.shutdown(timeout=drain_timeout)
    logger.info("Bot stopped: %s", reason.value)

    if reason is StopReason.SOURCE_CLOSED or not idle:
        raise typer.Exit(code=1)
