"""Object graph assembly shared by the Telegram bot and the console."""

from __future__ import annotations

from ytd_bot.config import Settings
from ytd_bot.core.delivery import DeliveryGate
from ytd_bot.core.flow import FlowController
from ytd_bot.core.protocols import ActivityLog
from ytd_bot.core.session import InMemoryStore
from ytd_bot.core.size_budget import SizeBudgetPipeline
from ytd_bot.infra.ffmpeg_transcoder import FfmpegTranscoder
from ytd_bot.infra.ytdlp_download_provider import YtDlpFetcher
from ytd_bot.infra.ytdlp_provider import YtDlpMediaProbe


def build_flow(settings: Settings, *, activity: ActivityLog | None = None) -> FlowController:
    """Wire yt-dlp, ffmpeg, and in-memory stores into a :class:`FlowController`."""
    probe = YtDlpMediaProbe(cookies_path=settings.cookies_path)
    fetcher = YtDlpFetcher(
        cookies_path=settings.cookies_path,
        ffmpeg_location=settings.ffmpeg_path,
    )
    transcoder = FfmpegTranscoder(fetcher, ffmpeg_path=settings.ffmpeg_path or "ffmpeg")
    pipeline = SizeBudgetPipeline(
        probe,
        transcoder,
        settings.downloads_dir,
        budget_bytes=settings.budget_bytes,
    )
    return FlowController(
        probe,
        pipeline,
        DeliveryGate(),
        sessions=InMemoryStore(),
        modes=InMemoryStore(),
        activity=activity,
        progress_interval=settings.progress_interval,
    )
