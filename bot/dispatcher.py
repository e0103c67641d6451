"""Update dispatcher and main polling loop.

Pulls updates from an :class:`~sdk.poller.UpdatePoller` (whose long poll runs
in a worker thread) and routes each message through a
:class:`~bot.router.Router` on the event loop.  Handler replies sent with
``respond_async`` complete back on the same loop.
"""

import asyncio
from typing import Optional

from bot.router import Router
from core.logger import BotLogger
from sdk.client import BotClient
from sdk.models import Update
from sdk.poller import UpdatePoller

logger = BotLogger.get_logger()


def process_update(router: Router, update: Update) -> bool:
    """Route a single update.  Returns whether a handler consumed it.

    A failing handler is logged and only aborts this update.
    """
    message = update.message
    if message is None:
        logger.debug("Update has no message — skipping", extra={"update_id": update.update_id})
        return False

    try:
        consumed = router.process(message)
    except Exception:
        logger.exception("Handler failed", extra={"update_id": update.update_id, "chat_id": message.chat.id})
        return False

    logger.debug("Processed update", extra={"update_id": update.update_id, "consumed": consumed})
    return consumed


async def run(
    client: BotClient,
    router: Router,
    poller: Optional[UpdatePoller] = None,
    only_mine: bool = True,
    skip_pending: bool = False,
) -> None:
    """Start the async long-polling loop.

    Runs until an update fetch fails with auto-reconnect disabled, in which
    case the error is re-raised.

    Raises:
        RuntimeError: If the bot identity cannot be fetched.
        TransportError: If polling stops on a fetch error.
    """
    if client.user is None and await asyncio.to_thread(client.connect) is None:
        raise RuntimeError(f"Unable to fetch bot information: {client.last_error}")

    poller = poller or UpdatePoller(client)
    router.loop = asyncio.get_running_loop()

    if skip_pending:
        await asyncio.to_thread(poller.flush)

    logger.info("Bot is running. Polling for updates...", extra={"bot_username": client.user.username})
    while True:
        update = await poller.next_update(only_mine=only_mine)
        if update is None:
            logger.error("Polling stopped", extra={"error": str(poller.last_error)})
            if poller.last_error is not None:
                raise poller.last_error
            return
        process_update(router, update)
