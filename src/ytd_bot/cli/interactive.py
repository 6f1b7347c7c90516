"""``ytd-bot console`` — drive the chat flow from a terminal.

The same :class:`~ytd_bot.core.flow.FlowController` the bot uses is
exercised here: buttons become questionary choices and "delivery"
copies the finished file into a local output directory.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any

from ytd_bot.cli import exit_codes
from ytd_bot.cli.console import console
from ytd_bot.core.callbacks import parse_callback
from ytd_bot.core.flow import FlowController
from ytd_bot.core.models import Outcome, Reply
from ytd_bot.core.protocols import MediaSender
from ytd_bot.exceptions import EnvironmentError

CONSOLE_USER_ID = 0
_CANCEL = "__cancel__"

_OUTCOME_STYLES: dict[Outcome, str] = {
    Outcome.DELIVERED: "bold green",
    Outcome.OK: "cyan",
    Outcome.CANCELLED: "yellow",
    Outcome.NO_RESULTS: "yellow",
    Outcome.INVALID_SELECTION: "yellow",
    Outcome.EXPIRED: "yellow",
}


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

def render_reply(reply: Reply) -> str:
    style = _OUTCOME_STYLES.get(reply.outcome, "bold red")
    return f"[{style}]{reply.text}[/{style}]"


def build_choices(questionary: Any, reply: Reply) -> list[Any]:
    """Flatten the reply's button rows into questionary choices."""
    choices = [
        questionary.Choice(title=button.label, value=button.data)
        for row in reply.buttons
        for button in row
    ]
    choices.append(questionary.Choice(title="Cancel", value=_CANCEL))
    return choices


def copy_into(output_dir: Path) -> MediaSender:
    """Return a sender that copies the finished file into *output_dir*."""

    async def send(path: Path) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / path.name
        await asyncio.to_thread(shutil.copy2, path, target)
        console.print(f"[green]Saved[/green] {target}")

    return send


async def _print_progress(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


# ---------------------------------------------------------------------------
# Session loop
# ---------------------------------------------------------------------------

async def follow_buttons(
    flow: FlowController,
    questionary: Any,
    reply: Reply,
    output_dir: Path,
    *,
    user_id: int = CONSOLE_USER_ID,
) -> Reply:
    """Keep prompting until the flow stops offering buttons."""
    while reply.has_buttons:
        console.print(render_reply(reply))
        data = await questionary.select(
            "Choose:",
            choices=build_choices(questionary, reply),
            use_arrow_keys=True,
            use_shortcuts=False,
        ).ask_async()
        if data is None or data == _CANCEL:
            return flow.cancel(user_id)
        reply = await flow.dispatch(
            user_id,
            parse_callback(data),
            sender=copy_into(output_dir),
            progress=_print_progress,
        )
    return reply


async def _session_loop(flow: FlowController, questionary: Any, output_dir: Path) -> int:
    while True:
        query = await questionary.text("Search (empty to quit):").ask_async()
        if not query or not query.strip():
            return exit_codes.SUCCESS
        console.print(f"[bold]Searching…[/bold] {query}")
        reply = await flow.start_flow(CONSOLE_USER_ID, query)
        reply = await follow_buttons(flow, questionary, reply, output_dir)
        console.print(render_reply(reply))


def run_console(flow: FlowController, output_dir: Path) -> int:
    """Run the interactive loop until the user submits an empty query."""
    questionary = _import_questionary()
    return asyncio.run(_session_loop(flow, questionary, output_dir))
