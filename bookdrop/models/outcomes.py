"""Result types returned by the pipeline and dispatcher."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DeliveryStage(str, Enum):
    """Linear pipeline stages.  There are no backward edges."""

    RESOLVE_DESTINATION = "resolve_destination"
    VALIDATE_PAYLOAD = "validate_payload"
    FETCH = "fetch"
    TRANSMIT = "transmit"
    LOG = "log"
    DELIVERED = "delivered"


class DeliveryResult(BaseModel):
    """Terminal state of one pass through the delivery pipeline.

    ``stage`` is where the pipeline stopped.  A delivered payload always
    ends at ``DELIVERED``; ``audit_logged`` records whether the audit row
    was written.
    """

    model_config = ConfigDict(frozen=True)

    stage: DeliveryStage
    delivered: bool = False
    error_code: str = ""
    record_id: int | None = None
    audit_logged: bool = False


class TaskOutcome(str, Enum):
    """How the dispatcher's per-event task ended."""

    DELIVERED = "delivered"
    REJECTED = "rejected"
    COMMAND_HANDLED = "command_handled"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


class StopReason(str, Enum):
    """Why ``BoundedDispatcher.run`` returned."""

    CANCELLED = "cancelled"
    SOURCE_CLOSED = "source_closed"
