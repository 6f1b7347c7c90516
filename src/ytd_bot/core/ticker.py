"""Scoped "still working" progress updates.

Usage::

    async with ProgressTicker(notify, interval=5.0):
        result = await pipeline.run(...)

The background task starts on entry and is cancelled and awaited on
every exit path, so no repeating timer outlives the request.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from types import TracebackType

from ytd_bot import messages
from ytd_bot.core.protocols import ProgressCallback

logger = logging.getLogger(__name__)


class ProgressTicker:
    """Call *notify* every *interval* seconds until the block exits.

    A ``None`` callback or a non-positive interval makes the ticker a
    no-op.  Exceptions raised by *notify* are logged and the ticker keeps
    running.
    """

    def __init__(
        self,
        notify: ProgressCallback | None,
        *,
        interval: float,
        render: Callable[[int], str] = messages.still_working,
    ) -> None:
        self._notify = notify
        self._interval = interval
        self._render = render
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> ProgressTicker:
        if self._notify is not None and self._interval > 0:
            self._task = asyncio.create_task(self._run(self._notify))
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self, notify: ProgressCallback) -> None:
        elapsed = 0.0
        while True:
            await asyncio.sleep(self._interval)
            elapsed += self._interval
            self.ticks += 1
            try:
                await notify(self._render(int(elapsed)))
            except Exception:
                logger.warning("Progress update failed", exc_info=True)
