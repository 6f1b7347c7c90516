"""Process-wide logging setup.

Modules obtain loggers with ``logging.getLogger(__name__)`` and never
attach handlers themselves; :func:`configure_logging` is called exactly
once by the CLI entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "telegram", "apscheduler")


def configure_logging(level: str | int = "INFO", *, console: Console | None = None) -> None:
    """Route all records through a single :class:`RichHandler`.

    Parameters
    ----------
    level:
        Root log level, either a name (``"DEBUG"``) or a numeric value.
    console:
        Optional Rich console; defaults to one writing to stderr.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class YtDlpLogger:
    """Adapter handed to yt-dlp via its ``logger`` option.

    yt-dlp calls ``debug``/``info``/``warning``/``error`` with preformatted
    strings; they are forwarded to a regular stdlib logger.
    """

    def __init__(self, name: str = "ytd_bot.infra.ytdlp") -> None:
        self._logger = logging.getLogger(name)

    def debug(self, msg: str) -> None:
        # yt-dlp routes info-level output through debug() with a prefix.
        if msg.startswith("[debug] "):
            self._logger.debug(msg[len("[debug] "):])
        else:
            self._logger.debug(msg)

    def info(self, msg: str) -> None:
        self._logger.info(msg)

    def warning(self, msg: str) -> None:
        self._logger.warning(msg)

    def error(self, msg: str) -> None:
        self._logger.error(msg)
