"""Bookdrop: deliver e-books sent to a Telegram bot to Kindle addresses.

  - Long-polled Telegram updates, dispatched with bounded concurrency
  - Per-event failure isolation at the worker boundary
  - Validate -> fetch -> transmit -> log delivery pipeline
  - Exponential-backoff retry for the fetch and transmit steps
  - SQLite record store for destinations and the delivery log
"""

__version__ = "0.1.0"
__description__ = "Telegram to Kindle delivery bot with bounded, retrying dispatch"

from bookdrop.core.bot import Bot
from bookdrop.cli.app import app as cli

__all__ = ["Bot", "cli", "__version__"]
