"""Per-application dependencies stored in ``Application.bot_data``."""

from __future__ import annotations

from dataclasses import dataclass

from telegram.ext import ContextTypes

from ytd_bot.config import Settings
from ytd_bot.core.flow import FlowController
from ytd_bot.infra.database import Database, FeedbackRepository, UserRepository

SERVICES_KEY = "services"


@dataclass(frozen=True, slots=True)
class BotServices:
    settings: Settings
    flow: FlowController
    users: UserRepository
    feedback: FeedbackRepository
    database: Database | None = None


def get_services(context: ContextTypes.DEFAULT_TYPE) -> BotServices:
    return context.application.bot_data[SERVICES_KEY]
