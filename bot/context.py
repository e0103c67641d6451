"""Per-dispatch context handed to router handlers."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
from typing import Any, Optional

from bot.scanner import Arguments
from sdk.client import BotClient, Completion
from sdk.models import Message, User


class Context:
    """What a handler sees: the message, its arguments and the matched command.

    ``args`` is positioned just past the consumed command token; ``command``
    is the token as the user typed it, without the leading slash (empty for
    content-type matches).
    """

    def __init__(
        self,
        client: Optional[BotClient],
        message: Message,
        args: Arguments,
        command: str = "",
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.client = client
        self.message = message
        self.args = args
        self.command = command
        self.loop = loop

    @property
    def chat_id(self) -> int:
        return self.message.chat.id

    @property
    def from_user(self) -> Optional[User]:
        return self.message.from_field

    @property
    def private_chat(self) -> bool:
        return self.message.chat.type == "private"

    def _require_client(self) -> BotClient:
        if self.client is None:
            raise RuntimeError("Context has no client to respond with")
        return self.client

    def respond_sync(self, text: str, **kwargs: Any) -> Optional[Message]:
        """Reply in the originating chat, blocking until sent."""
        return self._require_client().send_message(self.chat_id, text, **kwargs)

    def respond_async(
        self,
        text: str,
        completion: Optional[Completion] = None,
        **kwargs: Any,
    ) -> Future:
        """Reply in the originating chat without blocking.

        The completion, if any, runs on the context's loop.
        """
        return self._require_client().send_message_async(
            self.chat_id, text, loop=self.loop, completion=completion, **kwargs,
        )
