"""Channel protocols for the external collaborators of the delivery core.

The core only depends on these protocols:

- ``EventSource``: long-polled inbound events.
- ``PayloadFetcher``: downloads a payload by opaque file handle.
- ``Notifier``: sends a short text notice to a chat.
- ``Transmitter``: delivers payload bytes to a destination address.

``bookdrop.channels.telegram`` and ``bookdrop.channels.ses`` provide the
production implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from bookdrop.models.events import InboundEvent


@runtime_checkable
class EventSource(Protocol):
    """Produces inbound events, blocking up to *timeout* seconds per poll."""

    def poll(self, timeout: float) -> list[InboundEvent]:
        """Return the next batch of events, possibly empty.

        Raises
        ------
        EventSourceClosed
            When the source will never produce events again.
        """
        ...


@runtime_checkable
class PayloadFetcher(Protocol):
    """Retrieves payload bytes by opaque file handle."""

    def fetch(self, file_id: str, limit: int) -> bytes:
        """Return at most *limit* bytes of the payload."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Sends one discrete text message to a chat."""

    def notify(self, chat_id: int, text: str) -> None:
        ...


@runtime_checkable
class Transmitter(Protocol):
    """Hands a payload to the outbound delivery channel."""

    def transmit(self, destination: str, payload: bytes, file_name: str) -> None:
        ...
