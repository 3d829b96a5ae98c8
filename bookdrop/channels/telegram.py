"""Telegram Bot API channel — event source, payload fetcher and notifier.

Uses a synchronous ``httpx.Client`` against the Bot API:

- ``getUpdates`` long-polling with offset tracking (``poll``)
- ``getFile`` plus a streamed, byte-capped download (``fetch``)
- ``sendMessage`` (``notify``)

A single ``httpx.Client`` is shared by the poll loop and every worker;
each call is one discrete request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from bookdrop.core.errors import ChannelError, EventSourceClosed
from bookdrop.models.events import (
    CommandEvent,
    InboundEvent,
    PayloadEvent,
    UnrecognizedEvent,
)

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"

# getUpdates status codes that mean the token will never work again.
_FATAL_POLL_STATUSES = frozenset({401, 404})


class TelegramApiError(ChannelError):
    """Raised when the Bot API answers ``ok: false`` or a non-JSON body."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TelegramChannel:
    """Bot API client implementing ``EventSource``, ``PayloadFetcher`` and ``Notifier``.

    Parameters
    ----------
    token:
        The bot token.
    network_timeout:
        Timeout for ordinary API calls, and the slack added on top of the
        long-poll timeout for ``getUpdates``.
    download_timeout:
        Timeout for payload downloads.
    client:
        Pre-built ``httpx.Client``.  Tests pass one with a mock transport.
    error_pause:
        Pause after a transient ``getUpdates`` failure.
    """

    def __init__(
        self,
        token: str,
        *,
        network_timeout: float = 30.0,
        download_timeout: float = 30.0,
        client: httpx.Client | None = None,
        api_base: str = TELEGRAM_API_BASE,
        error_pause: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._token = token
        self._network_timeout = network_timeout
        self._download_timeout = download_timeout
        self._client = client or httpx.Client(timeout=network_timeout)
        self._api_base = api_base.rstrip("/")
        self._error_pause = error_pause
        self._sleep = sleep
        self._offset = 0

    @property
    def offset(self) -> int:
        """Next ``update_id`` the source will ask for."""
        return self._offset

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Bot API plumbing
    # ------------------------------------------------------------------

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    def _file_url(self, file_path: str) -> str:
        return f"{self._api_base}/file/bot{self._token}/{file_path}"

    def _call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        response = self._client.post(
            self._method_url(method),
            json=payload or {},
            timeout=timeout if timeout is not None else self._network_timeout,
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise TelegramApiError(
                f"{method}: non-JSON response ({response.status_code})",
                status_code=response.status_code,
            ) from exc

        if not data.get("ok"):
            raise TelegramApiError(
                f"{method} failed ({response.status_code}): "
                f"{data.get('description', 'unknown error')}",
                status_code=response.status_code,
            )
        return data.get("result")

    def get_me(self) -> dict[str, Any]:
        """Return the bot's own user object."""
        return self._call("getMe")

    # ------------------------------------------------------------------
    # EventSource
    # ------------------------------------------------------------------

    def poll(self, timeout: float) -> list[InboundEvent]:
        """Long-poll ``getUpdates`` and return the parsed events.

        Every returned update is acknowledged by advancing the offset,
        including updates that carry no message.  Transient failures are
        logged and yield an empty batch after ``error_pause``.
        """
        try:
            updates = self._call(
                "getUpdates",
                {
                    "offset": self._offset,
                    "timeout": int(timeout),
                    "allowed_updates": ["message"],
                },
                timeout=timeout + self._network_timeout,
            )
        except TelegramApiError as exc:
            if exc.status_code in _FATAL_POLL_STATUSES:
                raise EventSourceClosed(f"getUpdates rejected the bot token: {exc}") from exc
            logger.warning("getUpdates failed: %s", exc)
            self._sleep(self._error_pause)
            return []
        except httpx.HTTPError as exc:
            logger.warning("getUpdates request failed: %s", exc)
            self._sleep(self._error_pause)
            return []

        events: list[InboundEvent] = []
        for update in updates or []:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self._offset = max(self._offset, update_id + 1)
            try:
                event = parse_update(update)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed update %s: %s", update_id, exc)
                continue
            if event is not None:
                events.append(event)
        return events

    # ------------------------------------------------------------------
    # PayloadFetcher
    # ------------------------------------------------------------------

    def fetch(self, file_id: str, limit: int) -> bytes:
        """Download the file behind *file_id*, reading at most *limit* bytes."""
        file_info = self._call("getFile", {"file_id": file_id})
        file_path = (file_info or {}).get("file_path")
        if not file_path:
            raise ChannelError(f"getFile returned no file_path for {file_id}")

        with self._client.stream(
            "GET", self._file_url(file_path), timeout=self._download_timeout
        ) as response:
            response.raise_for_status()
            return read_capped(response.iter_bytes(), limit)

    # ------------------------------------------------------------------
    # Notifier
    # ------------------------------------------------------------------

    def notify(self, chat_id: int, text: str) -> None:
        self._call("sendMessage", {"chat_id": chat_id, "text": text})


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def read_capped(chunks: Iterable[bytes], limit: int) -> bytes:
    """Concatenate *chunks*, stopping at exactly *limit* bytes."""
    buffer = bytearray()
    for chunk in chunks:
        remaining = limit - len(buffer)
        if remaining <= 0:
            break
        buffer += chunk[:remaining]
    return bytes(buffer)


def parse_command(text: str) -> tuple[str, str]:
    """Split ``/name@bot argument text`` into ``(name, argument)``."""
    head, _, argument = text.strip().partition(" ")
    name = head[1:].split("@", 1)[0]
    return name, argument.strip()


def parse_update(update: dict[str, Any]) -> InboundEvent | None:
    """Convert one Bot API update into an inbound event.

    Returns ``None`` for updates without a message.
    """
    message = update.get("message")
    if not message:
        return None

    sender = message.get("from") or {}
    chat = message.get("chat") or {}
    common: dict[str, Any] = {
        "event_id": str(update.get("update_id", "")),
        "user_id": sender.get("id"),
        "chat_id": chat.get("id"),
        "first_name": sender.get("first_name", ""),
    }

    document = message.get("document")
    if document:
        return PayloadEvent(
            file_id=document["file_id"],
            mime_type=document.get("mime_type", ""),
            file_size=document.get("file_size", 0),
            file_name=document.get("file_name", ""),
            **common,
        )

    text = message.get("text") or ""
    if text.startswith("/"):
        name, argument = parse_command(text)
        return CommandEvent(name=name, argument=argument, **common)

    return UnrecognizedEvent(**common)
