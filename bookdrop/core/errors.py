"""Error taxonomy for the dispatch and delivery core.

``DeliveryError`` subclasses are terminal pipeline outcomes: each one
carries the stage it stopped at and the fixed notice shown to the user.
``StoreError`` is raised by the Record Store and is non-fatal during
audit logging.
"""

from __future__ import annotations

from bookdrop.core import notices
from bookdrop.models.outcomes import DeliveryStage


class BookdropError(RuntimeError):
    """Base class for all bookdrop errors."""


class ConfigurationError(BookdropError):
    """Raised when required settings are missing or invalid."""


class StoreError(BookdropError):
    """Raised when a Record Store statement fails."""


class ChannelError(BookdropError):
    """Raised when a Telegram or SES call fails."""


class EventSourceClosed(BookdropError):
    """Raised by an event source that will never produce events again."""


class InvalidDestinationError(ValueError):
    """Raised when a destination address fails validation."""


class DeliveryError(BookdropError):
    """A terminal pipeline failure with a fixed user-facing notice."""

    code: str = "delivery_error"
    stage: DeliveryStage = DeliveryStage.RESOLVE_DESTINATION
    notice: str = ""

    def user_notice(self) -> str:
        return self.notice


class NotConfiguredError(DeliveryError):
    code = "not_configured"
    stage = DeliveryStage.RESOLVE_DESTINATION
    notice = notices.NOT_CONFIGURED


class UnsupportedTypeError(DeliveryError):
    code = "unsupported_type"
    stage = DeliveryStage.VALIDATE_PAYLOAD
    notice = notices.UNSUPPORTED_TYPE


class TooLargeError(DeliveryError):
    code = "too_large"
    stage = DeliveryStage.VALIDATE_PAYLOAD

    def __init__(self, message: str, *, limit: int) -> None:
        super().__init__(message)
        self.limit = limit

    def user_notice(self) -> str:
        return notices.TOO_LARGE.format(limit=notices.format_size_limit(self.limit))


class FetchFailedError(DeliveryError):
    code = "fetch_failed"
    stage = DeliveryStage.FETCH
    notice = notices.FETCH_FAILED


class TransmitFailedError(DeliveryError):
    code = "transmit_failed"
    stage = DeliveryStage.TRANSMIT
    notice = notices.TRANSMIT_FAILED
