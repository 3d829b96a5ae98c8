"""Destination and payload validation rules."""

from __future__ import annotations

from pydantic import validate_email

from bookdrop.core.errors import (
    InvalidDestinationError,
    TooLargeError,
    UnsupportedTypeError,
)
from bookdrop.models.events import PayloadEvent

# Built once at import, never mutated.
SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/epub+zip",
        "application/vnd.amazon.ebook",
        "application/x-mobipocket-ebook",
    }
)


def validate_destination(address: str, suffix: str = "@kindle.com") -> str:
    """Return the bare, normalised address if it is an acceptable destination.

    Accepts ``Name <user@kindle.com>`` as well as a plain address.

    Raises
    ------
    InvalidDestinationError
        If the address does not parse or does not end with *suffix*.
    """
    try:
        _, email = validate_email(address.strip())
    except ValueError as exc:
        raise InvalidDestinationError(f"invalid email address: {exc}") from exc

    if not email.lower().endswith(suffix.lower()):
        raise InvalidDestinationError("email address is not a kindle email address")
    return email


def validate_payload(event: PayloadEvent, max_size: int) -> None:
    """Check the declared mime type and size of a payload event.

    Runs before any network call.  The declared size is advisory; the
    fetch step enforces the same ceiling on the actual bytes.
    """
    if event.mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedTypeError(f"unsupported mime type {event.mime_type!r}")
    if event.file_size > max_size:
        raise TooLargeError(
            f"declared size {event.file_size} exceeds limit {max_size}",
            limit=max_size,
        )
