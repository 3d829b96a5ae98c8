"""Shared test fixtures for bookdrop."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from bookdrop.core.errors import EventSourceClosed
from bookdrop.core.record_store import RecordStore
from bookdrop.core.retry import Retrier
from bookdrop.models.config import MIB, BackoffPolicy, DeliveryConfig
from bookdrop.models.events import (
    CommandEvent,
    InboundEvent,
    PayloadEvent,
    UnrecognizedEvent,
)


# ---------------------------------------------------------------------------
# Fake channels
# ---------------------------------------------------------------------------


class FakeNotifier:
    """Records every notice; optionally fails every send."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self._lock = threading.Lock()
        self.sent: list[tuple[int, str]] = []

    def notify(self, chat_id: int, text: str) -> None:
        if self.fail:
            raise RuntimeError("sendMessage unavailable")
        with self._lock:
            self.sent.append((chat_id, text))

    def texts_for(self, chat_id: int) -> list[str]:
        with self._lock:
            return [text for cid, text in self.sent if cid == chat_id]


class FakeFetcher:
    """Returns *payload* (capped at the requested limit) after *failures* errors."""

    def __init__(self, payload: bytes = b"%PDF-1.7 book", *, failures: int = 0) -> None:
        self.payload = payload
        self.failures = failures
        self.calls: list[tuple[str, int]] = []

    def fetch(self, file_id: str, limit: int) -> bytes:
        self.calls.append((file_id, limit))
        if len(self.calls) <= self.failures:
            raise ConnectionError(f"download attempt {len(self.calls)} failed")
        return self.payload[:limit]


class FakeTransmitter:
    """Records deliveries after *failures* errors."""

    def __init__(self, *, failures: int = 0) -> None:
        self.failures = failures
        self.attempts = 0
        self.delivered: list[tuple[str, bytes, str]] = []

    def transmit(self, destination: str, payload: bytes, file_name: str) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionError(f"send attempt {self.attempts} failed")
        self.delivered.append((destination, payload, file_name))


class FakeSource:
    """Yields the given batches, then reports the source closed."""

    def __init__(self, batches: list[list[InboundEvent]]) -> None:
        self._batches = list(batches)
        self.polls = 0

    def poll(self, timeout: float) -> list[InboundEvent]:
        self.polls += 1
        if not self._batches:
            raise EventSourceClosed("no more batches")
        return self._batches.pop(0)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> RecordStore:
    """Provide a fresh RecordStore backed by a temp SQLite database."""
    return RecordStore(tmp_dir / "bookdrop.db")


@pytest.fixture
def delivery_config() -> DeliveryConfig:
    """Core config with a three-attempt backoff and tiny intervals."""
    return DeliveryConfig(
        max_workers=4,
        max_payload_size=20 * MIB,
        sender_address="books@example.com",
        backoff=BackoffPolicy(
            initial_interval=0.001,
            max_interval=0.01,
            max_elapsed=5.0,
            max_attempts=3,
        ),
    )


@pytest.fixture
def retrier(delivery_config: DeliveryConfig) -> Retrier:
    """Retrier that never sleeps."""
    return Retrier(delivery_config.backoff, sleep=lambda _seconds: None)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def transmitter() -> FakeTransmitter:
    return FakeTransmitter()


@pytest.fixture
def user_id() -> int:
    """Provide a deterministic test user id."""
    return 4242


@pytest.fixture
def configured_store(store: RecordStore, user_id: int) -> RecordStore:
    """A store where the test user already has a destination."""
    store.set_destination(user_id, "reader@kindle.com")
    return store


# ---------------------------------------------------------------------------
# Event factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_payload_event(user_id: int) -> Callable[..., PayloadEvent]:
    """Factory fixture: build a PayloadEvent with sensible defaults."""

    def _factory(**overrides: Any) -> PayloadEvent:
        defaults: dict[str, Any] = {
            "user_id": user_id,
            "chat_id": user_id,
            "file_id": "file-abc",
            "mime_type": "application/epub+zip",
            "file_size": 1024,
            "file_name": "dune.epub",
        }
        defaults.update(overrides)
        return PayloadEvent(**defaults)

    return _factory


@pytest.fixture
def make_command_event(user_id: int) -> Callable[..., CommandEvent]:
    """Factory fixture: build a CommandEvent with sensible defaults."""

    def _factory(name: str = "help", argument: str = "", **overrides: Any) -> CommandEvent:
        defaults: dict[str, Any] = {
            "user_id": user_id,
            "chat_id": user_id,
            "first_name": "Ada",
            "name": name,
            "argument": argument,
        }
        defaults.update(overrides)
        return CommandEvent(**defaults)

    return _factory


@pytest.fixture
def make_unrecognized_event(user_id: int) -> Callable[..., UnrecognizedEvent]:
    def _factory(**overrides: Any) -> UnrecognizedEvent:
        defaults: dict[str, Any] = {"user_id": user_id, "chat_id": user_id}
        defaults.update(overrides)
        return UnrecognizedEvent(**defaults)

    return _factory


# ---------------------------------------------------------------------------
# Fake-channel factories for tests that need non-default fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def make_transmitter() -> Callable[..., FakeTransmitter]:
    return FakeTransmitter


@pytest.fixture
def make_notifier() -> Callable[..., FakeNotifier]:
    return FakeNotifier


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    return FakeSource
