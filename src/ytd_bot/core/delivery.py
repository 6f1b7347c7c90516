"""Delivery gate — send a produced file, then always delete it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from ytd_bot.core.protocols import MediaSender

logger = logging.getLogger(__name__)

SETTLE_DELAY_SECONDS = 0.5
RETRY_DELAY_SECONDS = 1.0


class DeliveryGate:
    """Send a file through a caller-supplied action and clean it up.

    The send outcome is the only thing reported back.  Deletion runs
    whether or not the send raised; a failed deletion is retried once
    after *retry_delay* and then only logged.

    Parameters
    ----------
    settle_delay:
        Pause before the first deletion attempt so the upload client can
        release its file handle.
    retry_delay:
        Pause before the single deletion retry.
    sleep:
        Awaitable sleep function; replaceable in tests.
    """

    def __init__(
        self,
        *,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settle_delay = settle_delay
        self._retry_delay = retry_delay
        self._sleep = sleep

    async def deliver(self, path: Path, send: MediaSender) -> bool:
        """Run *send* on *path*; return ``True`` when the send succeeded."""
        delivered = False
        try:
            await send(path)
            delivered = True
        except Exception:
            logger.exception("Delivery of %s failed", path.name)
        finally:
            await self._cleanup(path)
        return delivered

    async def _cleanup(self, path: Path) -> None:
        await self._sleep(self._settle_delay)
        if self._try_remove(path):
            return

        await self._sleep(self._retry_delay)
        if not self._try_remove(path):
            logger.error("Giving up on deleting %s", path)

    @staticmethod
    def _try_remove(path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)
            return False
        logger.debug("Deleted %s", path)
        return True
