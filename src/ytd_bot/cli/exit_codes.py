"""Process exit statuses returned by ``ytd-bot`` subcommands."""

from __future__ import annotations

SUCCESS: int = 0
"""The command finished; for ``run`` this means the bot stopped cleanly."""

GENERAL_ERROR: int = 1
"""A YtdBotError reached the boundary, or a doctor check failed."""

UNEXPECTED_ERROR: int = 2
"""Anything else escaped; the traceback is logged."""

CONFIGURATION_ERROR: int = 3
"""The environment or ``.env`` file held a missing or malformed setting."""

KEYBOARD_INTERRUPT: int = 130
"""Interrupted with Ctrl+C (128 + SIGINT)."""
