"""Ordered command / content-type router.

Routes are tried strictly in registration order, so specific commands
should be registered before generic content-type catches.  Each route either
consumes a command word from the message text or tests the message for a
kind of content; the first route whose handler reports the message as
handled wins.

Handler protocol:
    ``handler(context) -> bool | None``.  ``None`` and truthy values mean
    "handled"; ``False`` means "not mine", and the router backtracks to the
    next route.

Fallbacks:
    ``partial_match`` runs when a handler succeeded but left text behind.
    ``unknown_command`` runs for unmatched text and ``unsupported_content_type``
    for unmatched messages without text.  For these two the return value is
    inverted: ``process()`` returns ``not fallback(context)``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
from typing import Callable, Dict, Optional, Union

from bot.context import Context
from bot.scanner import WHITESPACE_AND_NEWLINES, Arguments, Cursor
from core.logger import BotLogger
from sdk.client import BotClient
from sdk.models import Message

logger = BotLogger.get_logger()

Handler = Callable[[Context], Optional[bool]]


def _handled(result: Optional[bool]) -> bool:
    return True if result is None else bool(result)


# ── Matchers ─────────────────────────────────────────────────────────────────


class ContentType(enum.Enum):
    """Kinds of message content a route can match on."""

    AUDIO = "audio"
    DOCUMENT = "document"
    PHOTO = "photo"
    STICKER = "sticker"
    VIDEO = "video"
    VIDEO_NOTE = "video_note"
    VOICE = "voice"
    CONTACT = "contact"
    LOCATION = "location"
    VENUE = "venue"
    NEW_CHAT_MEMBERS = "new_chat_members"
    LEFT_CHAT_MEMBER = "left_chat_member"
    NEW_CHAT_TITLE = "new_chat_title"
    NEW_CHAT_PHOTO = "new_chat_photo"
    DELETE_CHAT_PHOTO = "delete_chat_photo"
    PINNED_MESSAGE = "pinned_message"

    def matches(self, message: Message) -> bool:
        value = getattr(message, self.value)
        if isinstance(value, list):
            return len(value) > 0
        if isinstance(value, bool):
            return value
        return value is not None


class Slash(enum.Enum):
    """Whether a command word must, may or must not start with ``/``."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    FORBIDDEN = "forbidden"


class Command:
    """A command name with optional aliases, tried in the order given."""

    def __init__(self, *names: str, slash: Slash = Slash.REQUIRED, description: str = "") -> None:
        if not names:
            raise ValueError("Command needs at least one name")
        self.names = tuple(name.lstrip("/") for name in names)
        self.slash = slash
        self.description = description

    @property
    def name(self) -> str:
        return self.names[0]

    def fetch_from(self, cursor: Cursor) -> Optional[tuple[str, Cursor]]:
        """Consume a matching command word.

        Returns ``(word_without_slash, cursor_after)``, or ``None`` with the
        caller's cursor untouched.
        """
        word, after = cursor.scan_word()
        if word is None:
            return None

        if word.startswith("/"):
            if self.slash is Slash.FORBIDDEN:
                return None
            word = word[1:]
        elif self.slash is Slash.REQUIRED:
            return None

        for name in self.names:
            if cursor.same(word, name):
                return word, after
        return None

    def __repr__(self) -> str:
        return f"Command({', '.join(map(repr, self.names))}, slash={self.slash.name})"


Matcher = Union[Command, ContentType]


@dataclasses.dataclass(frozen=True, slots=True)
class RouteEntry:
    """A registered ``(matcher, handler)`` pair."""

    matcher: Matcher
    handler: Handler


# ── Router ───────────────────────────────────────────────────────────────────


class Router:
    """Priority-ordered table of routes plus three fallbacks.

    Usage::

        router = Router(client)

        @router.command("start", description="Say hello")
        def handle_start(context):
            context.respond_async("Hello!")

        @router.content(ContentType.PHOTO)
        def handle_photo(context):
            ...

        router.process(message)
    """

    def __init__(
        self,
        client: Optional[BotClient] = None,
        bot_name: Optional[str] = None,
        case_sensitive: bool = False,
        skip_chars: frozenset[str] = WHITESPACE_AND_NEWLINES,
    ) -> None:
        self.client = client
        self._bot_name = bot_name
        self.case_sensitive = case_sensitive
        self.skip_chars = skip_chars
        #: Event loop passed on to handler contexts for async replies.
        self.loop: Optional[asyncio.AbstractEventLoop] = None

        self.partial_match: Optional[Handler] = None
        self.unknown_command: Optional[Handler] = None
        self.unsupported_content_type: Optional[Handler] = None

        self._routes: list[RouteEntry] = []

    @property
    def bot_name(self) -> Optional[str]:
        """Explicit bot name, else the connected client's username, else ``None``."""
        if self._bot_name is not None:
            return self._bot_name
        if self.client is not None and self.client.user is not None:
            return self.client.user.username
        return None

    # ── registration ─────────────────────────────────────────────────────

    def add(self, matcher: Matcher, handler: Handler) -> None:
        """Append a route; it is tried after every route added before it."""
        self._routes.append(RouteEntry(matcher, handler))

    def command(
        self,
        *names: str,
        slash: Slash = Slash.REQUIRED,
        description: str = "",
    ) -> Callable[[Handler], Handler]:
        """Decorator registering *handler* for a command and its aliases.

        Example::

            @router.command("help", "h", description="Show available commands")
            def handle_help(context): ...
        """
        def decorator(func: Handler) -> Handler:
            self.add(Command(*names, slash=slash, description=description), func)
            return func
        return decorator

    def content(self, content_type: ContentType) -> Callable[[Handler], Handler]:
        """Decorator registering *handler* for a content type."""
        def decorator(func: Handler) -> Handler:
            self.add(content_type, func)
            return func
        return decorator

    def routes(self) -> list[RouteEntry]:
        return list(self._routes)

    def commands(self) -> Dict[str, str]:
        """Registered command names mapped to their descriptions, in order."""
        return {
            entry.matcher.name: entry.matcher.description
            for entry in self._routes
            if isinstance(entry.matcher, Command)
        }

    # ── dispatch ─────────────────────────────────────────────────────────

    def _context(self, message: Message, cursor: Cursor, command: str) -> Context:
        return Context(self.client, message, Arguments(cursor), command, loop=self.loop)

    def _match(self, matcher: Matcher, message: Message, start: Cursor) -> Optional[tuple[str, Cursor]]:
        if isinstance(matcher, Command):
            return matcher.fetch_from(start)
        if matcher.matches(message):
            return "", start
        return None

    def _check_partial_match(self, context: Context) -> None:
        if not context.args.is_at_end and self.partial_match is not None:
            logger.debug(
                "Partial match",
                extra={"command": context.command, "leftover": context.args.peek_rest()[:80]},
            )
            self.partial_match(context)

    def process(self, message: Message) -> bool:
        """Dispatch *message* to the first route that handles it.

        Returns whether the message was consumed, fallbacks included.
        Exceptions raised by handlers propagate to the caller.
        """
        text = message.extract_command(self.bot_name) or ""
        start = Cursor(text, case_sensitive=self.case_sensitive, skip_chars=self.skip_chars)

        for entry in self._routes:
            matched = self._match(entry.matcher, message, start)
            if matched is None:
                continue
            command, cursor = matched
            context = self._context(message, cursor, command)
            if _handled(entry.handler(context)):
                self._check_partial_match(context)
                return True

        if text:
            if self.unknown_command is None:
                return False
            word, after = dataclasses.replace(start, skip_chars=WHITESPACE_AND_NEWLINES).scan_word()
            after = dataclasses.replace(after, skip_chars=self.skip_chars)
            context = self._context(message, after, (word or "").lstrip("/"))
            logger.debug("Unknown command", extra={"command": context.command, "chat_id": message.chat.id})
            handled = _handled(self.unknown_command(context))
            if not handled:
                self._check_partial_match(context)
            return not handled

        if self.unsupported_content_type is None:
            return False
        context = self._context(message, start, "")
        return not _handled(self.unsupported_content_type(context))
