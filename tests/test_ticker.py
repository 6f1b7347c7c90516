"""Tests for scoped progress updates (core/ticker.py)."""

from __future__ import annotations

import asyncio

import pytest

from ytd_bot.core.ticker import ProgressTicker


class TestProgressTicker:
    def test_ticks_while_block_runs(self) -> None:
        received: list[str] = []

        async def notify(text: str) -> None:
            received.append(text)

        async def scenario() -> ProgressTicker:
            async with ProgressTicker(notify, interval=0.01, render=lambda s: f"t{s}") as ticker:
                await asyncio.sleep(0.055)
            return ticker

        ticker = asyncio.run(scenario())
        assert ticker.ticks >= 2
        assert len(received) == ticker.ticks
        assert ticker.running is False

    def test_stops_on_exit(self) -> None:
        received: list[str] = []

        async def notify(text: str) -> None:
            received.append(text)

        async def scenario() -> int:
            async with ProgressTicker(notify, interval=0.01):
                await asyncio.sleep(0.025)
            count = len(received)
            await asyncio.sleep(0.05)
            return count

        count_at_exit = asyncio.run(scenario())
        assert len(received) == count_at_exit

    def test_stops_when_block_raises(self) -> None:
        async def notify(_text: str) -> None:
            return None

        ticker = ProgressTicker(notify, interval=0.01)

        async def scenario() -> None:
            async with ticker:
                assert ticker.running
                raise ValueError("pipeline blew up")

        with pytest.raises(ValueError):
            asyncio.run(scenario())
        assert ticker.running is False

    def test_none_callback_is_noop(self) -> None:
        async def scenario() -> ProgressTicker:
            async with ProgressTicker(None, interval=0.01) as ticker:
                assert ticker.running is False
                await asyncio.sleep(0.03)
            return ticker

        assert asyncio.run(scenario()).ticks == 0

    def test_zero_interval_is_noop(self) -> None:
        async def notify(_text: str) -> None:
            raise AssertionError("should not be called")

        async def scenario() -> ProgressTicker:
            async with ProgressTicker(notify, interval=0) as ticker:
                await asyncio.sleep(0.02)
            return ticker

        assert asyncio.run(scenario()).ticks == 0

    def test_notify_errors_do_not_stop_ticker(self) -> None:
        async def notify(_text: str) -> None:
            raise RuntimeError("message deleted")

        async def scenario() -> ProgressTicker:
            async with ProgressTicker(notify, interval=0.01) as ticker:
                await asyncio.sleep(0.055)
            return ticker

        assert asyncio.run(scenario()).ticks >= 2
