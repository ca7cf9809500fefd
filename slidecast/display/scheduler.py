"""Recurring timers on the running event loop."""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class IntervalScheduler:
    """Creates and cancels recurring timers backed by asyncio tasks.

    Cancelling a timer stops future ticks; a tick that is already running is
    shielded and allowed to finish.
    """

    def create(self, callback: TickCallback, seconds: float) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(self._run(callback, seconds))

    def cancel(self, handle: asyncio.Task) -> None:
        handle.cancel()

    async def _run(self, callback: TickCallback, seconds: float) -> None:
        while True:
            await asyncio.sleep(seconds)
            try:
                await asyncio.shield(callback())
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Timer callback failed")
