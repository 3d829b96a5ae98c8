"""Unit tests for destination and payload validation."""

from __future__ import annotations

import pytest

from bookdrop.core.errors import (
    InvalidDestinationError,
    TooLargeError,
    UnsupportedTypeError,
)
from bookdrop.core.validation import (
    SUPPORTED_MIME_TYPES,
    validate_destination,
    validate_payload,
)
from bookdrop.models.config import MIB


class TestValidateDestination:
    def test_plain_kindle_address(self):
        assert validate_destination("reader@kindle.com") == "reader@kindle.com"

    def test_display_name_form_returns_bare_address(self):
        assert validate_destination("Ada <ada@kindle.com>") == "ada@kindle.com"

    def test_surrounding_whitespace_ignored(self):
        assert validate_destination("  reader@kindle.com ") == "reader@kindle.com"

    def test_suffix_is_case_insensitive(self):
        assert validate_destination("reader@Kindle.COM").lower().endswith("@kindle.com")

    def test_non_kindle_domain_rejected(self):
        with pytest.raises(InvalidDestinationError, match="not a kindle"):
            validate_destination("reader@gmail.com")

    def test_lookalike_domain_rejected(self):
        with pytest.raises(InvalidDestinationError):
            validate_destination("reader@notkindle.com.evil.org")

    @pytest.mark.parametrize("address", ["", "not-an-email", "a@@kindle.com"])
    def test_malformed_rejected(self, address: str):
        with pytest.raises(InvalidDestinationError, match="invalid email address"):
            validate_destination(address)

    def test_custom_suffix(self):
        assert validate_destination("x@free.kindle.com", "@free.kindle.com") == "x@free.kindle.com"
        with pytest.raises(InvalidDestinationError):
            validate_destination("x@kindle.com", "@free.kindle.com")


class TestValidatePayload:
    def test_allow_list_has_exactly_four_types(self):
        assert SUPPORTED_MIME_TYPES == {
            "application/pdf",
            "application/epub+zip",
            "application/vnd.amazon.ebook",
            "application/x-mobipocket-ebook",
        }
        assert isinstance(SUPPORTED_MIME_TYPES, frozenset)

    @pytest.mark.parametrize("mime_type", sorted(SUPPORTED_MIME_TYPES))
    def test_supported_types_pass(self, make_payload_event, mime_type: str):
        validate_payload(make_payload_event(mime_type=mime_type), 20 * MIB)

    @pytest.mark.parametrize("mime_type", ["text/plain", "image/png", "", "application/zip"])
    def test_unsupported_types_rejected(self, make_payload_event, mime_type: str):
        with pytest.raises(UnsupportedTypeError):
            validate_payload(make_payload_event(mime_type=mime_type), 20 * MIB)

    def test_size_at_ceiling_passes(self, make_payload_event):
        validate_payload(make_payload_event(file_size=20 * MIB), 20 * MIB)

    def test_size_over_ceiling_rejected(self, make_payload_event):
        with pytest.raises(TooLargeError) as excinfo:
            validate_payload(make_payload_event(file_size=20 * MIB + 1), 20 * MIB)
        assert excinfo.value.user_notice() == "File is too large. Maximum file size is 20MB"

    @pytest.mark.parametrize(
        ("limit", "shown"),
        [(512 * 1024, "512KB"), (900, "900 bytes"), (3 * MIB + 5, "3MB")],
    )
    def test_too_large_notice_for_small_ceilings(self, make_payload_event, limit, shown):
        with pytest.raises(TooLargeError) as excinfo:
            validate_payload(make_payload_event(file_size=limit + 1), limit)
        assert excinfo.value.user_notice() == f"File is too large. Maximum file size is {shown}"

    def test_type_checked_before_size(self, make_payload_event):
        event = make_payload_event(mime_type="video/mp4", file_size=100 * MIB)
        with pytest.raises(UnsupportedTypeError):
            validate_payload(event, 20 * MIB)
