"""python-telegram-bot :class:`Application` construction and startup."""

from __future__ import annotations

import logging

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    TypeHandler,
    filters,
)

from ytd_bot import messages
from ytd_bot.bot import admin, handlers
from ytd_bot.bot.services import SERVICES_KEY, BotServices
from ytd_bot.config import Settings
from ytd_bot.factory import build_flow
from ytd_bot.infra.database import Database, FeedbackRepository, UserRepository
from ytd_bot.infra.ffmpeg_detector import require_ffmpeg

logger = logging.getLogger(__name__)

CALLBACK_PATTERN = r"^(select|format|quality):"


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log any handler exception and tell the user something went wrong."""
    logger.error("Error while handling an update", exc_info=context.error)
    if not isinstance(update, Update) or update.effective_chat is None:
        return
    try:
        await context.bot.send_message(update.effective_chat.id, messages.GENERIC_FAILURE)
    except TelegramError:
        logger.exception("Could not send the failure notice")


async def _close_database(application: Application) -> None:
    services: BotServices | None = application.bot_data.get(SERVICES_KEY)
    if services is not None and services.database is not None:
        services.database.close()


def build_application(services: BotServices) -> Application:
    """Create the application and register every handler."""
    token = services.settings.require_token()
    application = (
        Application.builder()
        .token(token)
        .concurrent_updates(True)
        .read_timeout(30)
        .write_timeout(30)
        .post_shutdown(_close_database)
        .build()
    )
    application.bot_data[SERVICES_KEY] = services

    application.add_handler(TypeHandler(Update, handlers.track_user), group=-1)

    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("help", handlers.help_command))
    application.add_handler(CommandHandler("search", handlers.search_command))
    application.add_handler(CommandHandler("feedback", handlers.feedback_command))
    application.add_handler(CommandHandler("cancel", handlers.cancel_command))

    application.add_handler(CommandHandler("stats", admin.stats_command))
    application.add_handler(CommandHandler("feedback_list", admin.feedback_list_command))
    application.add_handler(CommandHandler("reply", admin.reply_command))
    application.add_handler(CommandHandler("broadcast", admin.broadcast_command))

    application.add_handler(CallbackQueryHandler(handlers.on_callback, pattern=CALLBACK_PATTERN))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.on_text))
    application.add_handler(
        MessageHandler(
            ~filters.TEXT & ~filters.COMMAND & ~filters.StatusUpdate.ALL,
            handlers.on_non_text,
        )
    )

    application.add_error_handler(on_error)
    return application


def build_services(settings: Settings) -> BotServices:
    database = Database(settings.db_path)
    users = UserRepository(database)
    return BotServices(
        settings=settings,
        flow=build_flow(settings, activity=users),
        users=users,
        feedback=FeedbackRepository(database),
        database=database,
    )


def run_bot(settings: Settings) -> None:
    """Check prerequisites, then poll Telegram until interrupted.

    Raises
    ------
    ConfigurationError
        When the bot token is missing.
    FfmpegNotFoundError
        When ffmpeg cannot be located.
    """
    settings.require_token()
    ffmpeg = require_ffmpeg(settings.ffmpeg_path)
    logger.info("Using ffmpeg at %s", ffmpeg)

    application = build_application(build_services(settings))
    logger.info("Bot starting (admin: %s)", settings.admin_id or "none")
    application.run_polling(allowed_updates=Update.ALL_TYPES)
