"""Unit tests for the SES transmitter."""

from __future__ import annotations

from email import message_from_bytes
from email.policy import default

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from bookdrop.channels import Transmitter
from bookdrop.channels.ses import SesTransmitter, build_message
from bookdrop.core.errors import ChannelError


class _StubSes:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[dict] = []

    def send_raw_email(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"MessageId": "m-1"}


class TestBuildMessage:
    def test_attachment_carries_payload_and_name(self):
        message = build_message("books@example.com", "r@kindle.com", b"%PDF-1.7", "dune.pdf")
        parsed = message_from_bytes(message.as_bytes(), policy=default)

        assert parsed["From"] == "books@example.com"
        assert parsed["To"] == "r@kindle.com"
        (attachment,) = list(parsed.iter_attachments())
        assert attachment.get_filename() == "dune.pdf"
        assert attachment.get_content_type() == "application/pdf"
        assert attachment.get_content() == b"%PDF-1.7"

    def test_unknown_extension_is_octet_stream(self):
        message = build_message("a@example.com", "r@kindle.com", b"x", "book.unknownext")
        (attachment,) = list(message.iter_attachments())
        assert attachment.get_content_type() == "application/octet-stream"


class TestSesTransmitter:
    def test_is_a_transmitter(self):
        assert isinstance(SesTransmitter("a@example.com", client=_StubSes()), Transmitter)

    def test_sends_raw_email(self):
        client = _StubSes()
        SesTransmitter("books@example.com", client=client).transmit(
            "r@kindle.com", b"data", "a.epub"
        )

        (call,) = client.calls
        assert call["Source"] == "books@example.com"
        assert call["Destinations"] == ["r@kindle.com"]
        assert b"a.epub" in call["RawMessage"]["Data"]

    @pytest.mark.parametrize(
        "error",
        [
            ClientError(
                {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
                "SendRawEmail",
            ),
            EndpointConnectionError(endpoint_url="https://email.us-east-1.amazonaws.com"),
        ],
    )
    def test_aws_errors_become_channel_error(self, error):
        transmitter = SesTransmitter("books@example.com", client=_StubSes(error))
        with pytest.raises(ChannelError, match="r@kindle.com"):
            transmitter.transmit("r@kindle.com", b"data", "a.epub")
