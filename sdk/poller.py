"""Long-polling update source with offset tracking and reconnect backoff.

:class:`UpdatePoller` owns the polling offset and a FIFO buffer of updates
that were fetched but not yet handed out.  Only one poller may drive a given
bot at a time; neither the offset nor the buffer is safe to share.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Deque, List, Optional

from core.logger import BotLogger
from sdk.client import BotClient
from sdk.exceptions import TransportError
from sdk.models import Update
from sdk.wait import wait

logger = BotLogger.get_logger()

#: Seconds to wait before the n-th consecutive reconnect attempt.
RECONNECT_SCHEDULE: tuple[float, ...] = (0.0, 1.0, 2.0, 5.0, 10.0, 20.0)
MAX_RECONNECT_DELAY: float = 30.0


def default_reconnect_delay(retry_count: int) -> float:
    """Map a consecutive-retry count to a delay in seconds.

    ``0..5`` follow :data:`RECONNECT_SCHEDULE`; anything beyond waits
    :data:`MAX_RECONNECT_DELAY`.
    """
    if 0 <= retry_count < len(RECONNECT_SCHEDULE):
        return RECONNECT_SCHEDULE[retry_count]
    return MAX_RECONNECT_DELAY


class UpdatePoller:
    """Hand out updates one at a time, fetching batches with ``getUpdates``.

    Usage::

        poller = UpdatePoller(client)
        while (update := poller.next_update_sync()) is not None:
            router.process(update.message)
    """

    def __init__(
        self,
        client: BotClient,
        limit: int = 100,
        timeout: int = 60,
        auto_reconnect: bool = True,
        reconnect_delay: Callable[[int], float] = default_reconnect_delay,
        offset: Optional[int] = None,
    ) -> None:
        """Create a poller.

        Args:
            client: Transport used for ``getUpdates``.
            limit: Maximum number of updates per fetch.
            timeout: Server-side long-poll timeout in seconds.
            auto_reconnect: Retry failed fetches instead of reporting them.
            reconnect_delay: Backoff policy, ``retry_count -> seconds``.
            offset: Initial offset; ``None`` lets the server choose.
        """
        self.client = client
        self.limit = limit
        self.timeout = timeout
        self.auto_reconnect = auto_reconnect
        self.reconnect_delay = reconnect_delay
        self.offset = offset
        self.last_error: Optional[TransportError] = None
        self._pending: Deque[Update] = deque()
        self._retry_count = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _fetch(self, timeout: int) -> List[Update]:
        updates = self.client.get_updates(offset=self.offset, limit=self.limit, timeout=timeout)
        self._retry_count = 0
        self.last_error = None
        if updates:
            self.offset = max(u.update_id for u in updates) + 1
            self._pending.extend(updates)
            logger.debug(
                "Fetched updates",
                extra={"api_endpoint": "getUpdates", "count": len(updates), "offset": self.offset},
            )
        return updates

    def _bot_name(self) -> Optional[str]:
        user = self.client.user
        return user.username if user is not None else None

    def next_update_sync(self, only_mine: bool = True) -> Optional[Update]:
        """Return the next update, blocking while fetching from the server.

        Args:
            only_mine: Skip messages carrying commands addressed to another
                bot (``/cmd@other_bot``).  Skipped updates are still
                acknowledged through the offset.

        Returns:
            The next :class:`Update`, or ``None`` if a fetch failed with
            auto-reconnect disabled; :attr:`last_error` then holds the error.
        """
        while True:
            while self._pending:
                update = self._pending.popleft()
                if only_mine and update.message is not None and not update.message.addressed_to(self._bot_name()):
                    logger.debug("Skipping update addressed to another bot", extra={"update_id": update.update_id})
                    continue
                return update

            try:
                self._fetch(self.timeout)
            except TransportError as exc:
                self.last_error = exc
                self.client.last_error = exc
                if not self.auto_reconnect:
                    logger.warning(
                        "getUpdates failed", extra={"api_endpoint": "getUpdates", "error": str(exc)},
                    )
                    return None
                delay = self.reconnect_delay(self._retry_count)
                logger.warning(
                    "getUpdates failed, reconnecting",
                    extra={
                        "api_endpoint": "getUpdates",
                        "error": str(exc),
                        "retry_count": self._retry_count,
                        "delay": delay,
                    },
                )
                self._retry_count += 1
                wait(delay)

    async def next_update(self, only_mine: bool = True) -> Optional[Update]:
        """Asynchronous :meth:`next_update_sync`; the long poll runs in a worker thread."""
        return await asyncio.to_thread(self.next_update_sync, only_mine)

    def flush(self) -> int:
        """Acknowledge every update currently waiting on the server.

        Call this at start-up to ignore messages sent while the bot was
        offline.  Returns the number of updates discarded.

        Raises:
            TransportError: If a fetch fails; flushing never retries.
        """
        discarded = len(self._pending)
        self._pending.clear()
        while True:
            updates = self._fetch(0)
            if not updates:
                break
            discarded += len(updates)
            self._pending.clear()
        logger.info("Flushed pending updates", extra={"count": discarded, "offset": self.offset})
        return discarded
