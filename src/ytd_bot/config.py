"""Runtime configuration loaded from the environment.

An optional ``.env`` file in the working directory is read first with
python-dotenv; variables already present in the process environment
take precedence over it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ytd_bot.exceptions import ConfigurationError

MIB = 1024 * 1024

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable runtime settings."""

    bot_token: str | None = None
    admin_id: int = 0
    """Telegram user id of the administrator; ``0`` disables admin commands."""
    db_path: Path = Path("bot_stats.db")
    downloads_dir: Path = Path("downloads")
    cookies_path: Path | None = None
    ffmpeg_path: Path | None = None
    max_upload_mb: int = 49
    progress_interval: float = 5.0
    log_level: str = "INFO"

    @property
    def budget_bytes(self) -> int:
        return self.max_upload_mb * MIB

    def is_admin(self, user_id: int | None) -> bool:
        return bool(self.admin_id) and user_id == self.admin_id

    def require_token(self) -> str:
        """Return the bot token or raise :class:`ConfigurationError`."""
        if not self.bot_token:
            raise ConfigurationError(
                "TELEGRAM_BOT_TOKEN is not set.",
                hint="Create a bot with @BotFather and put its token in .env "
                "or the environment.",
            )
        return self.bot_token


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}.",
        ) from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}.")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc
    if value < 0:
        raise ConfigurationError(
            f"{name} must not be negative, got {value}.",
            hint="Use 0 to disable progress updates.",
        )
    return value


def _path(env: Mapping[str, str], name: str) -> Path | None:
    raw = env.get(name, "").strip()
    return Path(raw).expanduser() if raw else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    dotenv_path: Path | None = None,
) -> Settings:
    """Build :class:`Settings` from *env* (defaults to ``os.environ``).

    ``.env`` loading only happens when reading the real process
    environment.

    Raises
    ------
    ConfigurationError
        When a variable is present but malformed.
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    log_level = env.get("YTD_BOT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(
            f"YTD_BOT_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}.",
        )

    settings = Settings(
        bot_token=env.get("TELEGRAM_BOT_TOKEN", "").strip() or None,
        admin_id=_int(env, "ADMIN_ID", 0),
        db_path=_path(env, "YTD_BOT_DB_PATH") or Path("bot_stats.db"),
        downloads_dir=_path(env, "YTD_BOT_DOWNLOADS_DIR") or Path("downloads"),
        cookies_path=_path(env, "YTD_BOT_COOKIES_PATH"),
        ffmpeg_path=_path(env, "YTD_BOT_FFMPEG_PATH"),
        max_upload_mb=_int(env, "YTD_BOT_MAX_UPLOAD_MB", 49, minimum=1),
        progress_interval=_float(env, "YTD_BOT_PROGRESS_INTERVAL", 5.0),
        log_level=log_level,
    )
    logging.getLogger(__name__).debug("Loaded settings: %s", settings_summary(settings))
    return settings


def settings_summary(settings: Settings) -> dict[str, str]:
    """Describe *settings* for logs and diagnostics without the token."""
    return {
        "bot_token": "set" if settings.bot_token else "missing",
        "admin_id": str(settings.admin_id or "none"),
        "db_path": str(settings.db_path),
        "downloads_dir": str(settings.downloads_dir),
        "cookies_path": str(settings.cookies_path or "none"),
        "ffmpeg_path": str(settings.ffmpeg_path or "PATH"),
        "max_upload_mb": str(settings.max_upload_mb),
        "progress_interval": str(settings.progress_interval),
        "log_level": settings.log_level,
    }
