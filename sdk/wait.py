"""Blocking wait that does not starve asynchronous completions.

Synchronous callers sometimes need to pause (between reconnect attempts, or
to give an async reply time to go out) while completions from
:meth:`sdk.client.BotClient.request_async` are still being delivered to an
asyncio loop owned by the same thread.  ``time.sleep`` would freeze that
loop; :func:`wait` keeps running it instead.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Optional


def wait(seconds: float, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    """Block the calling thread for *seconds*.

    A timer thread signals a synchronization primitive once the delay
    elapses.  Without *loop* the caller simply blocks on a
    :class:`threading.Event`.  With *loop* the primitive is a future on that
    loop and the caller drives the loop until it resolves, so callbacks
    scheduled on it (``call_soon_threadsafe`` from worker threads) still run.

    Raises:
        RuntimeError: If *loop* is already running; use
            ``await asyncio.sleep()`` from inside the loop instead.
    """
    if loop is None:
        if seconds <= 0:
            return
        done = threading.Event()
        timer = threading.Timer(seconds, done.set)
        timer.daemon = True
        timer.start()
        done.wait()
        return

    if loop.is_running():
        raise RuntimeError("wait() cannot block a running event loop")

    waiter: asyncio.Future = loop.create_future()

    def _signal() -> None:
        if not waiter.done():
            waiter.set_result(None)

    timer = threading.Timer(max(seconds, 0), loop.call_soon_threadsafe, args=(_signal,))
    timer.daemon = True
    timer.start()
    try:
        loop.run_until_complete(waiter)
    finally:
        timer.cancel()
