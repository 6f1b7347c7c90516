"""Telegram transport layer (python-telegram-bot).

Translates updates into :class:`~ytd_bot.core.flow.FlowController`
calls and renders the returned :class:`~ytd_bot.core.models.Reply`
objects.  No download or session logic lives here.
"""

from ytd_bot.bot.application import build_application, run_bot

__all__: list[str] = ["build_application", "run_bot"]
