"""Tests for the terminal front-end (cli/interactive.py).

questionary is replaced by a small fake whose prompts answer from a
scripted list; the flow controller is a mock.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from ytd_bot.cli import exit_codes
from ytd_bot.cli.interactive import (
    CONSOLE_USER_ID,
    _import_questionary,
    _session_loop,
    build_choices,
    copy_into,
    follow_buttons,
    render_reply,
)
from ytd_bot.core.callbacks import ChooseFormat, SelectResult
from ytd_bot.core.models import Button, MediaKind, Outcome, Reply
from ytd_bot.exceptions import EnvironmentError


def _fake_questionary(selections: list[Any], texts: list[Any] | None = None) -> Any:
    def prompt(answers: list[Any]) -> MagicMock:
        question = MagicMock()
        question.ask_async = AsyncMock(return_value=answers.pop(0))
        return question

    return SimpleNamespace(
        Choice=lambda title, value: SimpleNamespace(title=title, value=value),
        select=MagicMock(side_effect=lambda *_a, **_k: prompt(selections)),
        text=MagicMock(side_effect=lambda *_a, **_k: prompt(texts or [])),
    )


def _results_reply() -> Reply:
    return Reply(
        "Pick one",
        buttons=((Button("1. Song", "select:0"),), (Button("2. Other", "select:1"),)),
    )


def _format_reply() -> Reply:
    return Reply(
        "Format?",
        buttons=((Button("Audio", "format:audio"), Button("Video", "format:video")),),
    )


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

class TestBuildChoices:
    def test_flattens_rows_and_adds_cancel(self) -> None:
        choices = build_choices(_fake_questionary([]), _format_reply())
        assert [c.title for c in choices] == ["Audio", "Video", "Cancel"]
        assert choices[0].value == "format:audio"


class TestRenderReply:
    def test_delivered_is_green(self) -> None:
        assert "green" in render_reply(Reply("done", Outcome.DELIVERED))

    def test_failure_is_red(self) -> None:
        assert "red" in render_reply(Reply("nope", Outcome.SIZE_EXCEEDED))


class TestImportQuestionary:
    def test_missing_raises_environment_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "questionary", None)
        with pytest.raises(EnvironmentError, match="questionary is not installed"):
            _import_questionary()


# ---------------------------------------------------------------------------
# copy_into
# ---------------------------------------------------------------------------

class TestCopyInto:
    def test_copies_file(self, tmp_path: Path) -> None:
        source = tmp_path / "work" / "song.mp3"
        source.parent.mkdir()
        source.write_bytes(b"abc")
        output = tmp_path / "out"

        asyncio.run(copy_into(output)(source))

        assert (output / "song.mp3").read_bytes() == b"abc"
        assert source.exists()


# ---------------------------------------------------------------------------
# follow_buttons
# ---------------------------------------------------------------------------

class TestFollowButtons:
    def test_dispatches_until_no_buttons(self, tmp_path: Path) -> None:
        flow = MagicMock()
        final = Reply("Delivered", Outcome.DELIVERED)
        flow.dispatch = AsyncMock(side_effect=[_format_reply(), final])
        questionary = _fake_questionary(["select:1", "format:audio"])

        result = asyncio.run(follow_buttons(flow, questionary, _results_reply(), tmp_path))

        assert result is final
        commands = [c.args[1] for c in flow.dispatch.await_args_list]
        assert commands == [SelectResult(1), ChooseFormat(MediaKind.AUDIO)]
        assert all(c.args[0] == CONSOLE_USER_ID for c in flow.dispatch.await_args_list)

    def test_cancel_choice(self, tmp_path: Path) -> None:
        flow = MagicMock()
        flow.dispatch = AsyncMock()
        flow.cancel.return_value = Reply("Cancelled", Outcome.CANCELLED)
        questionary = _fake_questionary(["__cancel__"])

        result = asyncio.run(follow_buttons(flow, questionary, _results_reply(), tmp_path))

        assert result.outcome is Outcome.CANCELLED
        flow.cancel.assert_called_once_with(CONSOLE_USER_ID)
        flow.dispatch.assert_not_awaited()

    def test_interrupted_prompt_cancels(self, tmp_path: Path) -> None:
        flow = MagicMock()
        flow.cancel.return_value = Reply("Cancelled", Outcome.CANCELLED)
        questionary = _fake_questionary([None])

        asyncio.run(follow_buttons(flow, questionary, _results_reply(), tmp_path))

        flow.cancel.assert_called_once_with(CONSOLE_USER_ID)

    def test_reply_without_buttons_returns_immediately(self, tmp_path: Path) -> None:
        flow = MagicMock()
        reply = Reply("No results", Outcome.NO_RESULTS)
        questionary = _fake_questionary([])

        assert asyncio.run(follow_buttons(flow, questionary, reply, tmp_path)) is reply
        questionary.select.assert_not_called()


class TestSessionLoop:
    def test_empty_query_exits(self, tmp_path: Path) -> None:
        flow = MagicMock()
        flow.start_flow = AsyncMock()
        questionary = _fake_questionary([], texts=[""])

        assert asyncio.run(_session_loop(flow, questionary, tmp_path)) == exit_codes.SUCCESS
        flow.start_flow.assert_not_awaited()

    def test_searches_then_exits(self, tmp_path: Path) -> None:
        flow = MagicMock()
        flow.start_flow = AsyncMock(return_value=Reply("No results", Outcome.NO_RESULTS))
        questionary = _fake_questionary([], texts=["lofi", None])

        assert asyncio.run(_session_loop(flow, questionary, tmp_path)) == exit_codes.SUCCESS
        flow.start_flow.assert_awaited_once_with(CONSOLE_USER_ID, "lofi")
