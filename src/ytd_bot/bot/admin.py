"""Administrator commands.

Every command is silently ignored for anyone but the configured admin.
"""

from __future__ import annotations

import asyncio
import logging

from telegram import Message, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from ytd_bot import messages
from ytd_bot.bot.services import BotServices, get_services
from ytd_bot.core.models import UserMode

logger = logging.getLogger(__name__)

BROADCAST_PAUSE_SECONDS = 0.05


def _admin_context(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> tuple[BotServices, int, Message] | None:
    """Return ``(services, admin_id, message)`` when the admin sent *update*."""
    services = get_services(context)
    user = update.effective_user
    message = update.effective_message
    if user is None or message is None:
        return None
    if not services.settings.is_admin(user.id):
        return None
    return services, user.id, message


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    admin_context = _admin_context(update, context)
    if admin_context is None:
        return
    services, _admin_id, message = admin_context

    stats = services.users.stats()
    await message.reply_text(
        messages.stats(
            stats.total_users,
            stats.active_today,
            stats.active_week,
            services.feedback.pending_count(),
            stats.popular_searches,
        ),
        parse_mode=ParseMode.HTML,
    )


async def feedback_list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    admin_context = _admin_context(update, context)
    if admin_context is None:
        return
    services, _admin_id, message = admin_context

    pending = services.feedback.pending()
    if not pending:
        await message.reply_text(messages.FEEDBACK_LIST_EMPTY)
        return
    for record in pending:
        await message.reply_text(
            messages.feedback_entry(
                record.id,
                messages.user_label(record.user_id, record.username, record.first_name),
                record.user_id,
                record.timestamp or "unknown",
                record.message,
            ),
            parse_mode=ParseMode.HTML,
        )


def parse_reply_args(text: str) -> tuple[int, str] | None:
    """Split ``/reply <id> <message>``; ``None`` when malformed."""
    parts = text.split(maxsplit=2)
    if len(parts) < 3 or not parts[1].isdigit():
        return None
    body = parts[2].strip()
    if not body:
        return None
    return int(parts[1]), body


async def reply_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    admin_context = _admin_context(update, context)
    if admin_context is None:
        return
    services, _admin_id, message = admin_context

    parsed = parse_reply_args(message.text or "")
    if parsed is None:
        await message.reply_text(messages.REPLY_USAGE)
        return
    feedback_id, body = parsed

    record = services.feedback.get(feedback_id)
    if record is None:
        await message.reply_text(messages.feedback_not_found(feedback_id))
        return

    try:
        await context.bot.send_message(
            record.user_id,
            messages.admin_reply(record.message, body),
            parse_mode=ParseMode.HTML,
        )
    except TelegramError:
        logger.exception("Could not deliver reply for feedback #%s", feedback_id)
        await message.reply_text(messages.REPLY_FAILED)
        return

    services.feedback.save_reply(feedback_id, body)
    await message.reply_text(messages.reply_sent(record.user_id, feedback_id))


async def broadcast_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    admin_context = _admin_context(update, context)
    if admin_context is None:
        return
    services, admin_id, message = admin_context

    services.flow.enter_mode(admin_id, UserMode.AWAITING_BROADCAST)
    await message.reply_text(messages.BROADCAST_PROMPT, parse_mode=ParseMode.HTML)


async def handle_broadcast_text(
    context: ContextTypes.DEFAULT_TYPE,
    message: Message,
    user_id: int,
    text: str,
) -> None:
    """Send *text* to every known user except the admin."""
    services = get_services(context)
    services.flow.leave_mode(user_id, UserMode.AWAITING_BROADCAST)
    if not services.settings.is_admin(user_id):
        return

    await message.reply_text(messages.BROADCAST_STARTED, parse_mode=ParseMode.HTML)
    sent, failed = await broadcast(
        context,
        services.users.all_user_ids(),
        messages.announcement(text),
        skip=user_id,
    )
    await message.reply_text(
        messages.broadcast_complete(sent, failed),
        parse_mode=ParseMode.HTML,
    )


async def broadcast(
    context: ContextTypes.DEFAULT_TYPE,
    user_ids: list[int],
    html: str,
    *,
    skip: int,
) -> tuple[int, int]:
    """Send *html* to each of *user_ids*; return ``(sent, failed)``."""
    sent = failed = 0
    for user_id in user_ids:
        if user_id == skip:
            continue
        try:
            await context.bot.send_message(user_id, html, parse_mode=ParseMode.HTML)
        except TelegramError as exc:
            logger.warning("Broadcast to %s failed: %s", user_id, exc)
            failed += 1
        else:
            sent += 1
        await asyncio.sleep(BROADCAST_PAUSE_SECONDS)
    logger.info("Broadcast finished: %d sent, %d failed", sent, failed)
    return sent, failed
