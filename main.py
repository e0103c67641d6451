"""Entry point: long-poll Telegram and route messages.

Besides the stock ``/start`` and ``/help`` this registers a small ``/echo``
command and a photo handler, to show argument parsing and content routes.
"""

import asyncio

from bot.context import Context
from bot.dispatcher import run
from bot.handlers import install_defaults
from bot.router import ContentType, Router
from config import (
    API_URL,
    AUTO_RECONNECT,
    BOT_TOKEN,
    REQUEST_TIMEOUT,
    ROUTER_CASE_SENSITIVE,
    SKIP_PENDING_UPDATES,
    UPDATES_LIMIT,
    UPDATES_TIMEOUT,
)
from core.logger import BotLogger
from sdk.client import BotClient
from sdk.poller import UpdatePoller

logger = BotLogger.get_logger()


def build_router(client: BotClient) -> Router:
    router = Router(client, case_sensitive=ROUTER_CASE_SENSITIVE)

    @router.command("echo", "say", description="Repeat the given text")
    def handle_echo(context: Context) -> None:
        text = context.args.scan_rest_of_string()
        context.respond_async(text or "Usage: /echo <text>")

    @router.content(ContentType.PHOTO)
    def handle_photo(context: Context) -> None:
        largest = max(context.message.photo, key=lambda p: p.width * p.height)
        context.respond_async(f"📷 Nice photo ({largest.width}×{largest.height}).")

    return install_defaults(router)


def main() -> None:
    if not BOT_TOKEN:
        raise EnvironmentError("BOT_TOKEN environment variable is not set or is empty.")

    with BotClient(BOT_TOKEN, url=API_URL, timeout=REQUEST_TIMEOUT) as client:
        poller = UpdatePoller(
            client,
            limit=UPDATES_LIMIT,
            timeout=UPDATES_TIMEOUT,
            auto_reconnect=AUTO_RECONNECT,
        )
        try:
            asyncio.run(run(client, build_router(client), poller, skip_pending=SKIP_PENDING_UPDATES))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
