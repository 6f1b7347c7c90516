"""Tests for the delivery gate (core/delivery.py).

The gate's sleep is replaced so no test waits; the file is always
gone afterwards whatever the send did.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

from conftest import no_sleep
from ytd_bot.core.delivery import DeliveryGate


def _gate(sleeps: list[float] | None = None) -> DeliveryGate:
    async def sleep(seconds: float) -> None:
        if sleeps is not None:
            sleeps.append(seconds)

    return DeliveryGate(settle_delay=0.5, retry_delay=1.0, sleep=sleep)


class TestDeliver:
    def test_successful_send_returns_true_and_deletes(self, tmp_path: Path) -> None:
        path = tmp_path / "song.mp3"
        path.write_bytes(b"data")
        sent: list[Path] = []

        async def send(p: Path) -> None:
            assert p.exists()
            sent.append(p)

        assert asyncio.run(_gate().deliver(path, send)) is True
        assert sent == [path]
        assert not path.exists()

    def test_failed_send_returns_false_and_still_deletes(self, tmp_path: Path) -> None:
        path = tmp_path / "song.mp3"
        path.write_bytes(b"data")

        async def send(_p: Path) -> None:
            raise RuntimeError("upload rejected")

        assert asyncio.run(_gate().deliver(path, send)) is False
        assert not path.exists()

    def test_settle_delay_before_delete(self, tmp_path: Path) -> None:
        path = tmp_path / "song.mp3"
        path.write_bytes(b"data")
        sleeps: list[float] = []

        async def send(_p: Path) -> None:
            return None

        asyncio.run(_gate(sleeps).deliver(path, send))
        assert sleeps == [0.5]

    def test_missing_file_is_not_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "gone.mp3"

        async def send(_p: Path) -> None:
            return None

        gate = DeliveryGate(sleep=no_sleep)
        assert asyncio.run(gate.deliver(path, send)) is True


class TestCleanupRetry:
    def test_retries_once_after_oserror(self, tmp_path: Path) -> None:
        path = tmp_path / "locked.mp3"
        path.write_bytes(b"data")
        sleeps: list[float] = []
        calls = {"n": 0}
        real_unlink = Path.unlink

        def flaky_unlink(self: Path, missing_ok: bool = False) -> None:
            calls["n"] += 1
            if calls["n"] == 1:
                raise PermissionError("file in use")
            real_unlink(self, missing_ok=missing_ok)

        async def send(_p: Path) -> None:
            return None

        with patch.object(Path, "unlink", flaky_unlink):
            assert asyncio.run(_gate(sleeps).deliver(path, send)) is True

        assert calls["n"] == 2
        assert sleeps == [0.5, 1.0]
        assert not path.exists()

    def test_gives_up_after_second_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "locked.mp3"
        path.write_bytes(b"data")
        calls = {"n": 0}

        def always_fails(self: Path, missing_ok: bool = False) -> None:
            calls["n"] += 1
            raise PermissionError("file in use")

        async def send(_p: Path) -> None:
            return None

        with patch.object(Path, "unlink", always_fails):
            assert asyncio.run(_gate().deliver(path, send)) is True

        assert calls["n"] == 2
        assert path.exists()
