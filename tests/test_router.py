"""Tests for the command / content-type router."""

import sys
import os
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from bot.router import Command, ContentType, Router, Slash
from sdk.models import Chat, Message, PhotoSize, User


def _message(text: str | None = None, **fields) -> Message:
    """Build a minimal SDK Message model for router tests."""
    return Message(
        message_id=1,
        date=0,
        chat=Chat(id=1000, type="private"),
        from_field=User(id=42, is_bot=False, first_name="Ada"),
        text=text,
        **fields,
    )


PHOTO = [PhotoSize(file_id="f", file_unique_id="u", width=10, height=10)]


class Recorder:
    """Handler stub recording contexts and returning a fixed result."""

    def __init__(self, result=True, consume_rest: bool = False) -> None:
        self.result = result
        self.consume_rest = consume_rest
        self.calls = []

    def __call__(self, context):
        self.calls.append({
            "command": context.command,
            "rest": context.args.peek_rest(),
        })
        if self.consume_rest:
            context.args.scan_rest_of_string()
        return self.result


# ── priority & backtracking ──────────────────────────────────────────────────


class TestPriority:
    """Registration order is priority order."""

    def test_first_registered_wins(self) -> None:
        router = Router()
        first, second = Recorder(), Recorder()
        router.add(Command("start"), first)
        router.add(Command("start"), second)
        assert router.process(_message("/start")) is True
        assert len(first.calls) == 1
        assert second.calls == []

    def test_unhandled_backtracks_to_next_route(self) -> None:
        router = Router()
        declines, accepts = Recorder(result=False), Recorder()
        router.add(Command("start"), declines)
        router.add(Command("start"), accepts)
        assert router.process(_message("/start")) is True
        assert len(declines.calls) == 1
        assert len(accepts.calls) == 1

    def test_failed_match_resets_cursor(self) -> None:
        router = Router()
        help_handler = Recorder()
        router.add(Command("start"), Recorder())
        router.add(Command("help"), help_handler)
        router.process(_message("/help"))
        assert help_handler.calls == [{"command": "help", "rest": ""}]

    def test_none_return_counts_as_handled(self) -> None:
        router = Router()
        router.add(Command("ping"), lambda context: None)
        assert router.process(_message("/ping")) is True

    def test_command_before_content_catch(self) -> None:
        router = Router()
        cmd, photo = Recorder(), Recorder()
        router.add(Command("start"), cmd)
        router.add(ContentType.PHOTO, photo)
        router.process(_message("/start", photo=PHOTO))
        assert len(cmd.calls) == 1
        assert photo.calls == []


# ── command matching ─────────────────────────────────────────────────────────


class TestCommandMatching:
    """Names, aliases, case and slash policy."""

    def test_aliases_in_order(self) -> None:
        router = Router()
        handler = Recorder()
        router.add(Command("help", "h", "?"), handler)
        router.process(_message("/h"))
        router.process(_message("/?"))
        assert [c["command"] for c in handler.calls] == ["h", "?"]

    def test_case_insensitive_by_default(self) -> None:
        router = Router()
        handler = Recorder()
        router.add(Command("start"), handler)
        assert router.process(_message("/START")) is True
        assert handler.calls[0]["command"] == "START"

    def test_case_sensitive(self) -> None:
        router = Router(case_sensitive=True)
        router.add(Command("start"), Recorder())
        assert router.process(_message("/START")) is False

    def test_prefix_is_not_a_match(self) -> None:
        router = Router()
        router.add(Command("start"), Recorder())
        assert router.process(_message("/starts")) is False

    def test_slash_required(self) -> None:
        router = Router()
        router.add(Command("start"), Recorder())
        assert router.process(_message("start")) is False

    def test_slash_optional(self) -> None:
        router = Router()
        handler = Recorder()
        router.add(Command("hello", slash=Slash.OPTIONAL), handler)
        assert router.process(_message("hello")) is True
        assert router.process(_message("/hello")) is True
        assert len(handler.calls) == 2

    def test_slash_forbidden(self) -> None:
        router = Router()
        router.add(Command("yes", slash=Slash.FORBIDDEN), Recorder())
        assert router.process(_message("yes")) is True
        assert router.process(_message("/yes")) is False

    def test_leading_whitespace_skipped(self) -> None:
        router = Router()
        handler = Recorder()
        router.add(Command("start"), handler)
        assert router.process(_message("  \n/start")) is True

    def test_bot_suffix_stripped(self) -> None:
        router = Router(bot_name="demo_bot")
        handler = Recorder()
        router.add(Command("start"), handler)
        assert router.process(_message("/start@demo_bot now")) is True
        assert handler.calls[0] == {"command": "start", "rest": "now"}

    def test_bot_name_from_connected_client(self) -> None:
        client = MagicMock()
        client.user = User(id=1, is_bot=True, first_name="B", username="demo_bot")
        router = Router(client)
        router.add(Command("start"), Recorder())
        assert router.process(_message("/start@other_bot")) is False

    def test_handler_parses_arguments(self) -> None:
        router = Router()
        seen = {}

        def handle_add(context):
            seen["a"] = context.args.scan_int()
            seen["b"] = context.args.scan_int()

        router.add(Command("add"), handle_add)
        router.partial_match = Recorder()
        router.process(_message("/add 2 40"))
        assert seen == {"a": 2, "b": 40}
        assert router.partial_match.calls == []


# ── content types ────────────────────────────────────────────────────────────


class TestContentTypes:
    """Content-type routes test message fields."""

    @pytest.mark.parametrize(
        "content_type, fields",
        [
            (ContentType.PHOTO, {"photo": PHOTO}),
            (ContentType.CONTACT, {"contact": {"phone_number": "1", "first_name": "A"}}),
            (ContentType.LOCATION, {"location": {"longitude": 1.0, "latitude": 2.0}}),
            (ContentType.DOCUMENT, {"document": {"file_id": "d", "file_unique_id": "u"}}),
            (ContentType.NEW_CHAT_MEMBERS, {"new_chat_members": [{"id": 5, "is_bot": False, "first_name": "N"}]}),
            (ContentType.LEFT_CHAT_MEMBER, {"left_chat_member": {"id": 5, "is_bot": False, "first_name": "N"}}),
            (ContentType.NEW_CHAT_TITLE, {"new_chat_title": "Room"}),
            (ContentType.DELETE_CHAT_PHOTO, {"delete_chat_photo": True}),
        ],
    )
    def test_matches(self, content_type, fields) -> None:
        router = Router()
        handler = Recorder()
        router.add(content_type, handler)
        assert router.process(Message.model_validate({
            "message_id": 1, "date": 0, "chat": {"id": 1, "type": "group"}, **fields,
        })) is True
        assert handler.calls == [{"command": "", "rest": ""}]

    def test_empty_photo_list_does_not_match(self) -> None:
        assert ContentType.PHOTO.matches(_message()) is False

    def test_caption_photo_reaches_content_route(self) -> None:
        router = Router()
        handler = Recorder()
        router.add(Command("start"), Recorder())
        router.add(ContentType.PHOTO, handler)
        assert router.process(_message(photo=PHOTO, caption="look")) is True
        assert len(handler.calls) == 1


# ── partial match ────────────────────────────────────────────────────────────


class TestPartialMatch:
    """Leftover text after a successful handler."""

    def test_start_extra_text(self) -> None:
        router = Router()
        partial = Recorder()
        router.add(Command("start"), Recorder())
        router.partial_match = partial
        assert router.process(_message("/start extra text")) is True
        assert partial.calls == [{"command": "start", "rest": "extra text"}]

    def test_invoked_once_per_message(self) -> None:
        router = Router()
        partial = Recorder()
        router.add(Command("start"), Recorder(result=False))
        router.add(Command("start"), Recorder())
        router.partial_match = partial
        router.process(_message("/start leftovers"))
        assert len(partial.calls) == 1

    def test_partial_match_cannot_veto(self) -> None:
        router = Router()
        router.add(Command("start"), Recorder())
        router.partial_match = Recorder(result=False)
        assert router.process(_message("/start extra")) is True

    def test_trailing_whitespace_is_not_leftover(self) -> None:
        router = Router()
        partial = Recorder()
        router.add(Command("start"), Recorder())
        router.partial_match = partial
        router.process(_message("/start  \n "))
        assert partial.calls == []

    def test_consumed_arguments_are_not_leftover(self) -> None:
        router = Router()
        partial = Recorder()
        router.add(Command("echo"), Recorder(consume_rest=True))
        router.partial_match = partial
        router.process(_message("/echo all of this"))
        assert partial.calls == []

    def test_no_partial_handler(self) -> None:
        router = Router()
        router.add(Command("start"), Recorder())
        assert router.process(_message("/start extra")) is True


# ── fallbacks ────────────────────────────────────────────────────────────────


class TestUnknownCommand:
    """Unmatched text goes to unknown_command with inverted result."""

    @pytest.mark.parametrize("result", [True, False])
    def test_result_is_negated(self, result: bool) -> None:
        router = Router()
        unknown = Recorder(result=result)
        router.unknown_command = unknown
        assert router.process(_message("/unknown")) is (not result)
        assert unknown.calls == [{"command": "unknown", "rest": ""}]

    def test_absent_means_unconsumed(self) -> None:
        assert Router().process(_message("/unknown")) is False

    def test_plain_text_is_unknown_command(self) -> None:
        router = Router()
        unknown = Recorder()
        router.unknown_command = unknown
        router.process(_message("hello there"))
        assert unknown.calls == [{"command": "hello", "rest": "there"}]

    def test_unknown_word_is_whitespace_delimited(self) -> None:
        router = Router(skip_chars=frozenset(","))
        unknown = Recorder()
        router.unknown_command = unknown
        router.process(_message("/nope a,b"))
        assert unknown.calls[0]["command"] == "nope"
        assert unknown.calls[0]["rest"].strip() == "a,b"

    def test_not_handled_checks_partial_match(self) -> None:
        router = Router()
        router.unknown_command = Recorder(result=False)
        partial = Recorder()
        router.partial_match = partial
        assert router.process(_message("/nope with args")) is True
        assert partial.calls == [{"command": "nope", "rest": "with args"}]

    def test_unsupported_not_called_for_text(self) -> None:
        router = Router()
        unsupported = Recorder()
        router.unsupported_content_type = unsupported
        router.process(_message("/x"))
        assert unsupported.calls == []


class TestUnsupportedContentType:
    """Unmatched messages without text."""

    @pytest.mark.parametrize("result", [True, False])
    def test_result_is_negated(self, result: bool) -> None:
        router = Router()
        unsupported = Recorder(result=result)
        router.unsupported_content_type = unsupported
        assert router.process(_message(photo=PHOTO)) is (not result)
        assert unsupported.calls == [{"command": "", "rest": ""}]

    def test_absent_means_unconsumed(self) -> None:
        assert Router().process(_message(photo=PHOTO)) is False

    def test_unknown_not_called_without_text(self) -> None:
        router = Router()
        unknown = Recorder()
        router.unknown_command = unknown
        router.process(_message(photo=PHOTO))
        assert unknown.calls == []


# ── errors & registration ───────────────────────────────────────────────────


class TestRegistration:
    """Decorators, listings and handler failures."""

    def test_decorators(self) -> None:
        router = Router()

        @router.command("start", "begin", description="Say hi")
        def handle_start(context):
            return True

        @router.content(ContentType.STICKER)
        def handle_sticker(context):
            return True

        assert [entry.handler for entry in router.routes()] == [handle_start, handle_sticker]
        assert router.commands() == {"start": "Say hi"}

    def test_handler_exception_propagates(self) -> None:
        router = Router()

        def boom(context):
            raise ValueError("broken handler")

        router.add(Command("boom"), boom)
        with pytest.raises(ValueError):
            router.process(_message("/boom"))

    def test_command_needs_a_name(self) -> None:
        with pytest.raises(ValueError):
            Command()
