"""User-facing update handlers.

Free text is routed by priority: a pending broadcast (admin only), then
a pending feedback message, then a search.  Inline buttons are decoded
once by :func:`~ytd_bot.core.callbacks.parse_callback` and dispatched on
the resulting command variant.
"""

from __future__ import annotations

import logging
from pathlib import Path

from telegram import Message, Update, User
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest, TelegramError
from telegram.ext import ContextTypes

from ytd_bot import messages
from ytd_bot.bot import admin
from ytd_bot.bot.keyboards import to_markup
from ytd_bot.bot.services import get_services
from ytd_bot.core.callbacks import (
    ChooseFormat,
    ChooseQuality,
    parse_callback,
)
from ytd_bot.core.models import MediaKind, Reply, UserMode
from ytd_bot.core.protocols import MediaSender, ProgressCallback
from ytd_bot.exceptions import InvalidCallbackError

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT_SECONDS = 300


# ---------------------------------------------------------------------------
# Bookkeeping
# ---------------------------------------------------------------------------

async def track_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Upsert every sender into the user directory (runs before all handlers)."""
    user = update.effective_user
    if user is None:
        return
    get_services(context).users.track_user(user.id, user.first_name, user.username)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = get_services(context)
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return
    await message.reply_text(
        messages.welcome(services.settings.is_admin(user.id)),
        parse_mode=ParseMode.HTML,
    )
    services.users.record(user.id, "start_command")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    services = get_services(context)
    user = update.effective_user
    message = update.effective_message
    if message is None:
        return
    is_admin = services.settings.is_admin(user.id if user else None)
    await message.reply_text(messages.help_text(is_admin), parse_mode=ParseMode.HTML)


async def search_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """``/search [query]`` — search right away or prompt for a query."""
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return
    query = " ".join(context.args or ()).strip()
    if not query:
        await message.reply_text(messages.SEARCH_PROMPT)
        return
    await run_search(message, context, user.id, query)


async def feedback_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return
    get_services(context).flow.enter_mode(user.id, UserMode.AWAITING_FEEDBACK)
    await message.reply_text(messages.FEEDBACK_PROMPT)


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return
    reply = get_services(context).flow.cancel(user.id)
    await message.reply_text(reply.text)


# ---------------------------------------------------------------------------
# Free text
# ---------------------------------------------------------------------------

async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None or message.text is None:
        return

    flow = get_services(context).flow
    mode = flow.active_mode(user.id)
    if mode is UserMode.AWAITING_BROADCAST:
        await admin.handle_broadcast_text(context, message, user.id, message.text)
        return
    if mode is UserMode.AWAITING_FEEDBACK:
        await handle_feedback_text(context, message, user, message.text)
        return
    await run_search(message, context, user.id, message.text)


async def on_non_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remind users in a capture mode that only text is accepted."""
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return
    mode = get_services(context).flow.active_mode(user.id)
    if mode is UserMode.AWAITING_BROADCAST:
        await message.reply_text(messages.BROADCAST_TEXT_ONLY)
    elif mode is UserMode.AWAITING_FEEDBACK:
        await message.reply_text(messages.FEEDBACK_TEXT_ONLY)


async def run_search(
    message: Message,
    context: ContextTypes.DEFAULT_TYPE,
    user_id: int,
    query: str,
) -> None:
    status = await message.reply_text(messages.searching(query.strip()))
    reply = await get_services(context).flow.start_flow(user_id, query)
    await _show(status, reply)


async def handle_feedback_text(
    context: ContextTypes.DEFAULT_TYPE,
    message: Message,
    user: User,
    text: str,
) -> None:
    services = get_services(context)

    services.flow.leave_mode(user.id, UserMode.AWAITING_FEEDBACK)
    feedback_id = services.feedback.save(user.id, text)
    if feedback_id is None:
        await message.reply_text(messages.FEEDBACK_SAVE_FAILED)
        return

    if services.settings.admin_id:
        label = messages.user_label(user.id, user.username, user.first_name)
        try:
            await context.bot.send_message(
                services.settings.admin_id,
                messages.feedback_notification(label, user.id, text),
                parse_mode=ParseMode.HTML,
            )
        except TelegramError:
            logger.exception("Could not forward feedback #%s to the admin", feedback_id)
    await message.reply_text(messages.FEEDBACK_THANKS)


# ---------------------------------------------------------------------------
# Inline buttons
# ---------------------------------------------------------------------------

async def on_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    user = update.effective_user
    if query is None or user is None or query.message is None:
        return
    await query.answer()

    try:
        command = parse_callback(query.data or "")
    except InvalidCallbackError as exc:
        logger.warning("Ignoring callback from %s: %s", user.id, exc)
        await _edit(query.message, messages.INVALID_SELECTION)
        return

    flow = get_services(context).flow
    status = query.message
    session = flow.session(user.id)
    title = (session.selected_video_title if session else None) or ""

    kind = MediaKind.VIDEO
    base: str | None = None
    if isinstance(command, ChooseFormat):
        kind = command.kind
        if kind is MediaKind.AUDIO:
            base = messages.processing_audio(title)
        else:
            base = messages.fetching_qualities(title)
    elif isinstance(command, ChooseQuality):
        base = messages.processing_video(command.label, title)

    if base is not None:
        await _edit(status, base)
    reply = await flow.dispatch(
        user.id,
        command,
        sender=_sender(context, status.chat.id, kind, title),
        progress=_progress(status, base or ""),
    )
    await _show(status, reply)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sender(
    context: ContextTypes.DEFAULT_TYPE,
    chat_id: int,
    kind: MediaKind,
    title: str,
) -> MediaSender:
    """Build the upload action the delivery gate will run."""

    async def send(path: Path) -> None:
        if kind is MediaKind.AUDIO:
            await context.bot.send_chat_action(chat_id, ChatAction.UPLOAD_VOICE)
            with path.open("rb") as fp:
                await context.bot.send_audio(
                    chat_id,
                    audio=fp,
                    title=title[:128] or None,
                    filename=path.name,
                    read_timeout=UPLOAD_TIMEOUT_SECONDS,
                    write_timeout=UPLOAD_TIMEOUT_SECONDS,
                )
        else:
            await context.bot.send_chat_action(chat_id, ChatAction.UPLOAD_VIDEO)
            with path.open("rb") as fp:
                await context.bot.send_video(
                    chat_id,
                    video=fp,
                    caption=title[:1024] or None,
                    filename=path.name,
                    supports_streaming=True,
                    read_timeout=UPLOAD_TIMEOUT_SECONDS,
                    write_timeout=UPLOAD_TIMEOUT_SECONDS,
                )

    return send


def _progress(status: Message, base: str) -> ProgressCallback:
    async def notify(text: str) -> None:
        await status.edit_text(f"{base}\n\n{text}")

    return notify


async def _show(status: Message, reply: Reply) -> None:
    await _edit(status, reply.text, reply)


async def _edit(status: Message, text: str, reply: Reply | None = None) -> None:
    """Edit a status message, tolerating "message is not modified"."""
    try:
        await status.edit_text(text, reply_markup=to_markup(reply) if reply else None)
    except BadRequest as exc:
        if "not modified" not in str(exc).lower():
            raise
        logger.debug("Status message unchanged: %s", exc)
