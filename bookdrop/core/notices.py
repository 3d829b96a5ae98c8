"""Fixed user-facing notice texts.

These are the only strings the bot sends back for failures.  Internal
error details are logged for operators and never echoed to the user.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookdrop.channels import Notifier

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Please set your Kindle email address first using /set_kindle_email"
UNSUPPORTED_TYPE = "Unsupported file type. Try sending a PDF, EPUB, or MOBI file"
TOO_LARGE = "File is too large. Maximum file size is {limit}"
SENDING = "Sending book to Kindle..."
FETCH_FAILED = "Error downloading file, please try again later"
TRANSMIT_FAILED = "Error sending email, please try again later"
DELIVERED = "Book sent to Kindle successfully"
UNSUPPORTED_MESSAGE = "Send me a PDF, EPUB, or MOBI file, or use /help for available commands"

MISSING_DESTINATION = "Please provide your Kindle email address"
DESTINATION_SET = "Kindle email address set to {destination} successfully"
DESTINATION_STORE_FAILED = "Error setting Kindle email address, please try again later"
CURRENT_DESTINATION = "Your Kindle email address is {destination}"
UNKNOWN_COMMAND = "Unknown command: {name}, use /help for available commands"

GREETING = (
    "Hello {first_name}! Send me a PDF, EPUB, or MOBI file and I'll send it to your Kindle.\n"
    "Use /set_kindle_email to set your Kindle email address and don't forget to "
    "whitelist {sender} in your Kindle settings."
)
HELP = (
    "Available commands:\n"
    "/set_kindle_email <kindle_email_address> - set your Kindle email address\n"
    "/kindle_email - show your current Kindle email address\n"
    "/help - show this help message"
)


def send_notice(notifier: Notifier, chat_id: int, text: str) -> bool:
    """Send *text* to *chat_id*, logging instead of raising on failure.

    Notices are fire-and-forget: a failed send is recorded for operators
    and never surfaced to the user a second time.
    """
    try:
        notifier.notify(chat_id, text)
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to send notice to chat %s: %s", chat_id, exc)
        return False
    return True


def format_size_limit(limit: int) -> str:
    """Render a byte ceiling for a notice: whole MB, else KB, else bytes."""
    if limit >= 1024 * 1024:
        return f"{limit // (1024 * 1024)}MB"
    if limit >= 1024:
        return f"{limit // 1024}KB"
    return f"{limit} bytes"
