"""Amazon SES transmitter — delivers payloads as e-mail attachments.

Builds a MIME message carrying the payload under its file name and sends
it with ``send_raw_email``.  Retries are the caller's job, so botocore's
own retry loop is limited to a single attempt.
"""

from __future__ import annotations

import logging
import mimetypes
from email.message import EmailMessage
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from bookdrop.core.errors import ChannelError

logger = logging.getLogger(__name__)


def build_message(sender: str, destination: str, payload: bytes, file_name: str) -> EmailMessage:
    """Return a MIME message with *payload* attached as *file_name*."""
    content_type, _ = mimetypes.guess_type(file_name)
    maintype, _, subtype = (content_type or "application/octet-stream").partition("/")

    message = EmailMessage()
    message["From"] = sender
    message["To"] = destination
    message["Subject"] = file_name
    message.set_content(f"{file_name} delivered by bookdrop.")
    message.add_attachment(payload, maintype=maintype, subtype=subtype, filename=file_name)
    return message


class SesTransmitter:
    """``Transmitter`` backed by ``ses.send_raw_email``.

    Parameters
    ----------
    sender:
        Verified SES sender address; users whitelist it on their Kindle.
    client:
        Pre-built SES client.  Tests inject a stub.
    region_name:
        AWS region for the default client.
    timeout:
        Connect and read timeout for the default client.
    """

    def __init__(
        self,
        sender: str,
        *,
        client: Any | None = None,
        region_name: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._sender = sender
        self._client = client or boto3.client(
            "ses",
            region_name=region_name,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )

    def transmit(self, destination: str, payload: bytes, file_name: str) -> None:
        message = build_message(self._sender, destination, payload, file_name)
        try:
            response = self._client.send_raw_email(
                Source=self._sender,
                Destinations=[destination],
                RawMessage={"Data": message.as_bytes()},
            )
        except (BotoCoreError, ClientError) as exc:
            raise ChannelError(f"send_raw_email to {destination} failed: {exc}") from exc
        logger.info(
            "Sent %s (%d bytes) to %s (message_id=%s)",
            file_name,
            len(payload),
            destination,
            response.get("MessageId", ""),
        )
