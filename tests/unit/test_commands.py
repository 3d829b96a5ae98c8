"""Unit tests for the command router."""

from __future__ import annotations

from pathlib import Path

import pytest

from bookdrop.core import notices
from bookdrop.core.commands import CommandRouter
from bookdrop.core.errors import StoreError
from bookdrop.core.record_store import RecordStore


class _WriteFailingStore(RecordStore):
    def set_destination(self, user_id: int, destination: str) -> None:
        raise StoreError("readonly database")


@pytest.fixture
def router(delivery_config, store, notifier) -> CommandRouter:
    return CommandRouter(delivery_config, store, notifier)


class TestRouting:
    def test_command_table(self, router: CommandRouter):
        assert router.command_names == ["help", "kindle_email", "set_kindle_email", "start"]

    def test_unknown_command(self, router, make_command_event, notifier, user_id):
        reply = router.route(make_command_event("frobnicate"))
        assert reply == "Unknown command: frobnicate, use /help for available commands"
        assert notifier.texts_for(user_id) == [reply]

    def test_commands_are_case_sensitive(self, router, make_command_event):
        assert router.route(make_command_event("HELP")).startswith("Unknown command")

    def test_missing_chat_raises(self, router, make_command_event):
        with pytest.raises(ValueError):
            router.route(make_command_event("help", chat_id=None))


class TestStartAndHelp:
    def test_start_names_user_and_sender(self, router, make_command_event):
        reply = router.route(make_command_event("start"))
        assert "Hello Ada!" in reply
        assert "books@example.com" in reply

    def test_help_lists_commands(self, router, make_command_event):
        reply = router.route(make_command_event("help"))
        assert "/set_kindle_email" in reply
        assert "/help" in reply


class TestSetKindleEmail:
    def test_empty_argument(self, router, make_command_event, store, user_id):
        reply = router.route(make_command_event("set_kindle_email", "  "))
        assert reply == notices.MISSING_DESTINATION
        assert store.get_destination(user_id) is None

    def test_invalid_address_replies_with_reason(self, router, make_command_event, store, user_id):
        reply = router.route(make_command_event("set_kindle_email", "me@gmail.com"))
        assert reply == "email address is not a kindle email address"
        assert store.get_destination(user_id) is None

    def test_valid_address_stored(self, router, make_command_event, store, user_id):
        reply = router.route(make_command_event("set_kindle_email", "me@kindle.com"))
        assert reply == "Kindle email address set to me@kindle.com successfully"
        assert store.get_destination(user_id) == "me@kindle.com"

    def test_second_call_overwrites(self, router, make_command_event, store, user_id):
        router.route(make_command_event("set_kindle_email", "one@kindle.com"))
        router.route(make_command_event("set_kindle_email", "two@kindle.com"))
        assert store.get_destination(user_id) == "two@kindle.com"

    def test_store_failure_is_generic(
        self, delivery_config, tmp_dir: Path, notifier, make_command_event, user_id
    ):
        router = CommandRouter(delivery_config, _WriteFailingStore(tmp_dir / "ro.db"), notifier)
        reply = router.route(make_command_event("set_kindle_email", "me@kindle.com"))
        assert reply == notices.DESTINATION_STORE_FAILED
        assert "readonly" not in reply


class TestKindleEmail:
    def test_not_configured(self, router, make_command_event):
        assert router.route(make_command_event("kindle_email")) == notices.NOT_CONFIGURED

    def test_shows_current(self, router, make_command_event, store, user_id):
        store.set_destination(user_id, "me@kindle.com")
        reply = router.route(make_command_event("kindle_email"))
        assert reply == "Your Kindle email address is me@kindle.com"
