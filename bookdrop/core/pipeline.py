"""Delivery pipeline: one payload event in, zero or one DeliveryRecord out.

Stages run strictly in order and never go backwards:

1. ResolveDestination: look up the user's destination.
2. ValidatePayload: mime allow-list and declared size ceiling.
3. Fetch: download, capped at the ceiling, with retry.
4. Transmit: hand bytes to the outbound channel, with retry.
5. Log: append the audit row (best-effort).

A terminal failure in stages 1-4 sends its fixed notice and returns.
A failure in stage 5 is recorded for operators only; the user still
sees the delivered notice because the payload has already been sent.
"""

from __future__ import annotations

import logging
import mimetypes

from bookdrop.channels import Notifier, PayloadFetcher, Transmitter
from bookdrop.core import notices
from bookdrop.core.errors import (
    DeliveryError,
    FetchFailedError,
    NotConfiguredError,
    StoreError,
    TransmitFailedError,
)
from bookdrop.core.record_store import RecordStore
from bookdrop.core.retry import Retrier
from bookdrop.core.validation import validate_payload
from bookdrop.models.config import DeliveryConfig
from bookdrop.models.events import PayloadEvent
from bookdrop.models.outcomes import DeliveryResult, DeliveryStage

logger = logging.getLogger(__name__)


class DeliveryPipeline:
    """Drives a single ``PayloadEvent`` through validate, fetch, transmit and log.

    Parameters
    ----------
    config:
        Core configuration (size ceiling, backoff policy).
    store:
        Record Store for destination lookup and audit rows.
    fetcher:
        Downloads payload bytes by file handle.
    transmitter:
        Delivers payload bytes to the destination.
    notifier:
        Sends progress and failure notices to the user's chat.
    retrier:
        Retry wrapper for fetch and transmit.  Built from
        ``config.backoff`` when omitted.
    """

    def __init__(
        self,
        config: DeliveryConfig,
        store: RecordStore,
        fetcher: PayloadFetcher,
        transmitter: Transmitter,
        notifier: Notifier,
        *,
        retrier: Retrier | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._fetcher = fetcher
        self._transmitter = transmitter
        self._notifier = notifier
        self._retrier = retrier or Retrier(config.backoff)

    def deliver(self, event: PayloadEvent) -> DeliveryResult:
        """Run the pipeline for *event* and return where it stopped.

        Raises
        ------
        ValueError
            If the event has no sender or chat.  The dispatcher treats
            this as an unexpected failure.
        """
        if event.user_id is None or event.chat_id is None:
            raise ValueError(f"payload event {event.event_id} has no sender or chat")

        try:
            destination = self._resolve_destination(event)
            validate_payload(event, self._config.max_payload_size)
            notices.send_notice(self._notifier, event.chat_id, notices.SENDING)
            payload = self._fetch(event)
            self._transmit(event, destination, payload)
        except DeliveryError as exc:
            logger.info(
                "Delivery for user %s stopped at %s: %s",
                event.user_id,
                exc.stage.value,
                exc,
            )
            notices.send_notice(self._notifier, event.chat_id, exc.user_notice())
            return DeliveryResult(stage=exc.stage, error_code=exc.code)

        record_id = self._log(event, len(payload))
        notices.send_notice(self._notifier, event.chat_id, notices.DELIVERED)
        return DeliveryResult(
            stage=DeliveryStage.DELIVERED,
            delivered=True,
            record_id=record_id,
            audit_logged=record_id is not None,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _resolve_destination(self, event: PayloadEvent) -> str:
        try:
            destination = self._store.get_destination(event.user_id)
        except StoreError as exc:
            logger.error(
                "Destination lookup failed for user %s: %s", event.user_id, exc
            )
            raise NotConfiguredError(f"lookup failed for user {event.user_id}") from exc
        if destination is None:
            raise NotConfiguredError(f"no destination for user {event.user_id}")
        return destination

    def _fetch(self, event: PayloadEvent) -> bytes:
        limit = self._config.max_payload_size
        try:
            payload = self._retrier.call(
                lambda: self._fetcher.fetch(event.file_id, limit),
                description=f"fetch {event.file_id}",
            )
        except Exception as exc:
            logger.error(
                "Error downloading file %s for user %s: %s",
                event.file_id,
                event.user_id,
                exc,
            )
            raise FetchFailedError(f"fetch of {event.file_id} failed") from exc
        # The fetcher is expected to cap already; never pass on more than the ceiling.
        return payload[:limit]

    def _transmit(self, event: PayloadEvent, destination: str, payload: bytes) -> None:
        file_name = attachment_name(event)
        try:
            self._retrier.call(
                lambda: self._transmitter.transmit(destination, payload, file_name),
                description=f"transmit {file_name}",
            )
        except Exception as exc:
            logger.error(
                "Error sending %s for user %s to %s: %s",
                file_name,
                event.user_id,
                destination,
                exc,
            )
            raise TransmitFailedError(f"transmit of {file_name} failed") from exc

    def _log(self, event: PayloadEvent, size: int) -> int | None:
        try:
            return self._store.append_delivery_record(
                event.user_id, attachment_name(event), size
            )
        except StoreError as exc:
            logger.error(
                "Error logging delivered file %s for user %s: %s",
                attachment_name(event),
                event.user_id,
                exc,
            )
            return None


def attachment_name(event: PayloadEvent) -> str:
    """Return the file name to deliver under, deriving one if none was declared."""
    if event.file_name:
        return event.file_name
    extension = mimetypes.guess_extension(event.mime_type) or ""
    return f"{event.file_id}{extension}"
