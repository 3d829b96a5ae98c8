"""Command router: a fixed lookup table from command name to handler."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from bookdrop.channels import Notifier
from bookdrop.core import notices
from bookdrop.core.errors import InvalidDestinationError, StoreError
from bookdrop.core.record_store import RecordStore
from bookdrop.core.validation import validate_destination
from bookdrop.models.config import DeliveryConfig
from bookdrop.models.events import CommandEvent

logger = logging.getLogger(__name__)

CommandHandler = Callable[[CommandEvent], str]


class CommandRouter:
    """Routes ``CommandEvent`` objects to their handlers.

    Each handler returns the reply text; the router sends it.  Unknown
    commands get a fixed reply naming the command.
    """

    def __init__(
        self, config: DeliveryConfig, store: RecordStore, notifier: Notifier
    ) -> None:
        self._config = config
        self._store = store
        self._notifier = notifier
        self._handlers: Mapping[str, CommandHandler] = MappingProxyType(
            {
                "start": self._start,
                "help": self._help,
                "set_kindle_email": self._set_kindle_email,
                "kindle_email": self._kindle_email,
            }
        )

    @property
    def command_names(self) -> list[str]:
        return sorted(self._handlers)

    def route(self, event: CommandEvent) -> str:
        """Run the handler for *event* and send its reply.  Returns the reply."""
        if event.chat_id is None:
            raise ValueError(f"command event {event.event_id} has no chat")

        handler = self._handlers.get(event.name)
        if handler is None:
            reply = notices.UNKNOWN_COMMAND.format(name=event.name)
        else:
            reply = handler(event)
        notices.send_notice(self._notifier, event.chat_id, reply)
        return reply

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _start(self, event: CommandEvent) -> str:
        return notices.GREETING.format(
            first_name=event.first_name or "there",
            sender=self._config.sender_address,
        )

    def _help(self, event: CommandEvent) -> str:
        return notices.HELP

    def _set_kindle_email(self, event: CommandEvent) -> str:
        if event.user_id is None:
            raise ValueError(f"command event {event.event_id} has no sender")

        argument = event.argument.strip()
        if not argument:
            return notices.MISSING_DESTINATION

        try:
            destination = validate_destination(argument, self._config.destination_suffix)
        except InvalidDestinationError as exc:
            return str(exc)

        try:
            self._store.set_destination(event.user_id, destination)
        except StoreError as exc:
            logger.error(
                "Error setting destination for user %s to %s: %s",
                event.user_id,
                destination,
                exc,
            )
            return notices.DESTINATION_STORE_FAILED

        logger.info("User %s set destination to %s", event.user_id, destination)
        return notices.DESTINATION_SET.format(destination=destination)

    def _kindle_email(self, event: CommandEvent) -> str:
        if event.user_id is None:
            raise ValueError(f"command event {event.event_id} has no sender")
        try:
            destination = self._store.get_destination(event.user_id)
        except StoreError as exc:
            logger.error("Destination lookup failed for user %s: %s", event.user_id, exc)
            destination = None
        if destination is None:
            return notices.NOT_CONFIGURED
        return notices.CURRENT_DESTINATION.format(destination=destination)
