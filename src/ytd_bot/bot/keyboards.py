"""Reply → inline keyboard rendering."""

from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ytd_bot.core.models import Reply


def to_markup(reply: Reply) -> InlineKeyboardMarkup | None:
    """Render the reply's button rows, or ``None`` when it has none."""
    if not reply.has_buttons:
        return None
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(button.label, callback_data=button.data) for button in row]
            for row in reply.buttons
        ]
    )
