"""yt-dlp backed media fetcher.

This module is the **only** place in the codebase that invokes the
yt-dlp download machinery.  yt-dlp exceptions are caught here and
re-raised as :class:`~ytd_bot.exceptions.ResolutionError` (the item
could not be extracted) or :class:`~ytd_bot.exceptions.EncodingError`
(the ffmpeg postprocessing step failed).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ytd_bot.core.models import MediaKind
from ytd_bot.exceptions import EncodingError, ResolutionError, YtdBotError
from ytd_bot.infra.ytdlp_provider import import_ytdlp, watch_url
from ytd_bot.utils.logging import YtDlpLogger

logger = logging.getLogger(__name__)

_EXTENSIONS: dict[MediaKind, str] = {
    MediaKind.AUDIO: "mp3",
    MediaKind.VIDEO: "mp4",
}


class YtDlpFetcher:
    """Download one media item and encode it to MP3 or MP4.

    Parameters
    ----------
    cookies_path:
        Optional Netscape cookies file handed to yt-dlp.
    ffmpeg_location:
        Optional explicit ffmpeg binary for yt-dlp's postprocessors.
    """

    def __init__(
        self,
        *,
        cookies_path: Path | None = None,
        ffmpeg_location: Path | None = None,
    ) -> None:
        self._cookies_path = cookies_path
        self._ffmpeg_location = ffmpeg_location

    def _build_opts(
        self,
        destination: Path,
        *,
        kind: MediaKind,
        bitrate_kbps: int | None = None,
        format_selector: str | None = None,
    ) -> dict[str, Any]:
        """Return yt-dlp options writing to ``<destination>.<ext>``."""
        opts: dict[str, Any] = {
            "outtmpl": f"{destination}.%(ext)s",
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "noplaylist": True,
            "logger": YtDlpLogger(),
        }
        if self._cookies_path is not None:
            opts["cookiefile"] = str(self._cookies_path)
        if self._ffmpeg_location is not None:
            opts["ffmpeg_location"] = str(self._ffmpeg_location)

        if kind is MediaKind.AUDIO:
            opts["format"] = "bestaudio/best"
            opts["postprocessors"] = [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": "mp3",
                    "preferredquality": str(bitrate_kbps or 128),
                },
            ]
        else:
            opts["format"] = format_selector or "best"
            opts["merge_output_format"] = "mp4"
            opts["postprocessors"] = [
                {"key": "FFmpegVideoRemuxer", "preferedformat": "mp4"},
            ]
        return opts

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        media_id: str,
        destination: Path,
        *,
        kind: MediaKind,
        bitrate_kbps: int | None = None,
        format_selector: str | None = None,
    ) -> Path:
        """Download *media_id* next to *destination* and return the file.

        Raises
        ------
        ResolutionError
            When yt-dlp cannot extract the item.
        EncodingError
            When the download or postprocessing fails.
        """
        opts = self._build_opts(
            destination,
            kind=kind,
            bitrate_kbps=bitrate_kbps,
            format_selector=format_selector,
        )
        logger.debug("Fetching %s as %s with format %r", media_id, kind.value, opts["format"])
        info = await asyncio.to_thread(self._download, media_id, opts)
        return self._locate_output(destination, _EXTENSIONS[kind], info)

    # ------------------------------------------------------------------
    # yt-dlp call (runs in a worker thread)
    # ------------------------------------------------------------------

    @staticmethod
    def _download(media_id: str, opts: dict[str, Any]) -> dict[str, Any]:
        yt_dlp = import_ytdlp()
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info: Any = ydl.extract_info(watch_url(media_id), download=True)
        except yt_dlp.utils.PostProcessingError as exc:
            raise EncodingError(str(exc)) from exc
        except yt_dlp.utils.DownloadError as exc:
            if "postprocessing" in str(exc).lower():
                raise EncodingError(str(exc)) from exc
            raise ResolutionError(
                str(exc),
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        except YtdBotError:
            raise
        except Exception as exc:
            raise EncodingError(f"Unexpected yt-dlp download error: {exc}") from exc
        return dict(info) if isinstance(info, dict) else {}

    @staticmethod
    def _locate_output(destination: Path, ext: str, info: dict[str, Any]) -> Path:
        """Find the file yt-dlp finally wrote for *destination*."""
        expected = destination.with_name(f"{destination.name}.{ext}")
        if expected.is_file():
            return expected

        for entry in info.get("requested_downloads") or ():
            candidate = entry.get("filepath") if isinstance(entry, dict) else None
            if candidate and Path(candidate).is_file():
                return Path(candidate)

        if destination.parent.is_dir():
            for candidate in sorted(destination.parent.iterdir()):
                if candidate.name.startswith(f"{destination.name}.") and candidate.is_file():
                    return candidate

        raise EncodingError(f"yt-dlp finished but no output file was found for {destination.name}.")
