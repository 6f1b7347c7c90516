"""Infrastructure layer — external system integration.

This layer wraps all interaction with yt-dlp, ffmpeg, SQLite, and the
filesystem.  Every raw third-party exception is caught here and either
re-raised as a :class:`~ytd_bot.exceptions.YtdBotError` subclass or
logged and replaced by the neutral value its contract promises.

Rules
-----
* No imports from ``bot`` or ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from ytd_bot.infra.database import Database, FeedbackRepository, UserRepository
from ytd_bot.infra.ffmpeg_detector import FfmpegStatus, detect_ffmpeg, require_ffmpeg
from ytd_bot.infra.ffmpeg_transcoder import FfmpegTranscoder
from ytd_bot.infra.ytdlp_download_provider import YtDlpFetcher
from ytd_bot.infra.ytdlp_provider import YtDlpMediaProbe

__all__: list[str] = [
    "Database",
    "FeedbackRepository",
    "FfmpegStatus",
    "FfmpegTranscoder",
    "UserRepository",
    "YtDlpFetcher",
    "YtDlpMediaProbe",
    "detect_ffmpeg",
    "require_ffmpeg",
]
