"""Bookdrop data models — all Pydantic v2, all frozen (immutable)."""

from bookdrop.models.config import MIB, BackoffPolicy, DeliveryConfig
from bookdrop.models.events import (
    CommandEvent,
    EventKind,
    InboundEvent,
    InboundEventBase,
    PayloadEvent,
    UnrecognizedEvent,
)
from bookdrop.models.outcomes import (
    DeliveryResult,
    DeliveryStage,
    StopReason,
    TaskOutcome,
)
from bookdrop.models.records import DeliveryRecord, UserConfig

__all__ = [
    # config
    "MIB",
    "BackoffPolicy",
    "DeliveryConfig",
    # events
    "EventKind",
    "InboundEventBase",
    "CommandEvent",
    "PayloadEvent",
    "UnrecognizedEvent",
    "InboundEvent",
    # outcomes
    "DeliveryStage",
    "DeliveryResult",
    "TaskOutcome",
    "StopReason",
    # records
    "UserConfig",
    "DeliveryRecord",
]
