"""Bounded dispatcher: pulls inbound events and processes them concurrently.

One loop thread polls the event source.  Each event is handled on its
own worker thread after acquiring one of ``max_workers`` slots; slot
acquisition is the only backpressure.  Workers are isolated: an
unexpected exception in one is logged with user/chat context and never
reaches the loop or other workers.

Cancellation stops the loop from pulling further events, and no event
is spawned once the stop signal is set, even from a batch already
polled and even when slots are free.  Workers that already started run to completion; call ``wait_idle`` to join them.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter

from bookdrop.channels import EventSource, Notifier
from bookdrop.core import notices
from bookdrop.core.commands import CommandRouter
from bookdrop.core.errors import EventSourceClosed
from bookdrop.core.pipeline import DeliveryPipeline
from bookdrop.models.config import DeliveryConfig
from bookdrop.models.events import CommandEvent, InboundEvent, PayloadEvent
from bookdrop.models.outcomes import StopReason, TaskOutcome

logger = logging.getLogger(__name__)

# Seconds between stop-signal checks while waiting for a free slot.
_SLOT_POLL_INTERVAL = 0.1


class BoundedDispatcher:
    """Routes inbound events to the pipeline or command router with bounded parallelism.

    Parameters
    ----------
    config:
        Core configuration; ``max_workers`` sizes the slot pool.
    source:
        The long-polled event source.
    pipeline:
        Handles ``PayloadEvent`` objects.
    commands:
        Handles ``CommandEvent`` objects.
    notifier:
        Used for the fixed reply to unrecognised messages.
    poll_timeout:
        Long-poll timeout passed to ``source.poll``.
    poll_error_delay:
        Pause after an unexpected poll failure before polling again.
    """

    def __init__(
        self,
        config: DeliveryConfig,
        source: EventSource,
        pipeline: DeliveryPipeline,
        commands: CommandRouter,
        notifier: Notifier,
        *,
        poll_timeout: float = 60.0,
        poll_error_delay: float = 3.0,
    ) -> None:
        self._config = config
        self._source = source
        self._pipeline = pipeline
        self._commands = commands
        self._notifier = notifier
        self._poll_timeout = poll_timeout
        self._poll_error_delay = poll_error_delay

        self._slots = threading.BoundedSemaphore(config.max_workers)
        self._lock = threading.Lock()
        self._workers: set[threading.Thread] = set()
        self._in_flight = 0
        self._peak_in_flight = 0
        self._outcomes: Counter[TaskOutcome] = Counter()

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> int:
        """Number of slots currently held."""
        with self._lock:
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest slot usage observed since construction."""
        with self._lock:
            return self._peak_in_flight

    @property
    def outcome_counts(self) -> dict[TaskOutcome, int]:
        with self._lock:
            return dict(self._outcomes)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self, stop: threading.Event) -> StopReason:
        """Poll and dispatch until *stop* is set or the source closes."""
        logger.info(
            "Dispatcher started (max_workers=%d, poll_timeout=%.0fs)",
            self._config.max_workers,
            self._poll_timeout,
        )
        while not stop.is_set():
            try:
                events = self._source.poll(self._poll_timeout)
            except EventSourceClosed as exc:
                logger.warning("Event source closed: %s", exc)
                return StopReason.SOURCE_CLOSED
            except Exception:
                logger.exception("Polling the event source failed")
                stop.wait(self._poll_error_delay)
                continue

            for event in events:
                if not self._acquire_slot(stop):
                    logger.info(
                        "Stop requested; event %s and the rest of its batch not dispatched",
                        event.event_id,
                    )
                    break
                self._spawn(event)

        logger.info("Dispatcher stopped (%d task(s) still in flight)", self.in_flight)
        return StopReason.CANCELLED

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Join all spawned workers.  Returns ``True`` if none are left running.

        *timeout* bounds the whole wait, not each join.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            workers = list(self._workers)
        for worker in workers:
            if deadline is None:
                worker.join()
            else:
                worker.join(max(0.0, deadline - time.monotonic()))
        with self._lock:
            return not any(w.is_alive() for w in self._workers)

    # ------------------------------------------------------------------
    # Per-event task
    # ------------------------------------------------------------------

    def handle(self, event: InboundEvent) -> TaskOutcome:
        """Process one event on the calling thread and return how it ended.

        Expected failures come back as outcomes.  Anything raised from
        here is an unexpected failure for the caller to contain.
        """
        if isinstance(event, PayloadEvent):
            result = self._pipeline.deliver(event)
            return TaskOutcome.DELIVERED if result.delivered else TaskOutcome.REJECTED

        if isinstance(event, CommandEvent):
            self._commands.route(event)
            return TaskOutcome.COMMAND_HANDLED

        if event.chat_id is None:
            raise ValueError(f"event {event.event_id} has no chat")
        notices.send_notice(self._notifier, event.chat_id, notices.UNSUPPORTED_MESSAGE)
        return TaskOutcome.UNSUPPORTED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _acquire_slot(self, stop: threading.Event) -> bool:
        # Stop is checked before every attempt, so no event is spawned once it is set.
        while not stop.is_set():
            if self._slots.acquire(timeout=_SLOT_POLL_INTERVAL):
                with self._lock:
                    self._in_flight += 1
                    self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
                return True
        return False

    def _release_slot(self) -> None:
        with self._lock:
            self._in_flight -= 1
            self._workers.discard(threading.current_thread())
        self._slots.release()

    def _spawn(self, event: InboundEvent) -> None:
        worker = threading.Thread(
            target=self._run_task,
            args=(event,),
            name=f"bookdrop-{event.event_kind.value}-{event.event_id}",
        )
        with self._lock:
            self._workers.add(worker)
        try:
            worker.start()
        except RuntimeError:
            logger.exception("Could not start a worker for event %s", event.event_id)
            with self._lock:
                self._in_flight -= 1
                self._workers.discard(worker)
            self._slots.release()

    def _run_task(self, event: InboundEvent) -> None:
        try:
            try:
                outcome = self.handle(event)
            except Exception:
                logger.exception(
                    "Unexpected failure handling %s event %s (user_id=%s, chat_id=%s)",
                    event.event_kind.value,
                    event.event_id,
                    event.user_id,
                    event.chat_id,
                )
                outcome = TaskOutcome.FAILED
            with self._lock:
                self._outcomes[outcome] += 1
        finally:
            self._release_slot()
