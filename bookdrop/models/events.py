"""Inbound events produced by the event source.

Every update pulled from the long-poll source is normalised into one of
three frozen event types before it reaches the dispatcher.  Events are
transient: they live for a single dispatch cycle and are never persisted.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """The three inbound event shapes."""

    COMMAND = "command"
    PAYLOAD = "payload"
    UNRECOGNIZED = "unrecognized"


class InboundEventBase(BaseModel):
    """Fields shared by all inbound events.

    ``user_id`` and ``chat_id`` are optional because the upstream source
    does not guarantee them; handlers that need them fail loudly and the
    dispatcher contains the failure.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    user_id: int | None = None
    chat_id: int | None = None
    first_name: str = ""
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    event_kind: EventKind


class CommandEvent(InboundEventBase):
    """A ``/name argument`` message."""

    event_kind: EventKind = EventKind.COMMAND
    name: str
    argument: str = ""


class PayloadEvent(InboundEventBase):
    """A document attached to a message, described by its declared metadata."""

    event_kind: EventKind = EventKind.PAYLOAD
    file_id: str
    mime_type: str = ""
    file_size: int = 0
    file_name: str = ""


class UnrecognizedEvent(InboundEventBase):
    """Any message that is neither a command nor a document."""

    event_kind: EventKind = EventKind.UNRECOGNIZED


InboundEvent = Union[CommandEvent, PayloadEvent, UnrecognizedEvent]
