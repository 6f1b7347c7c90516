"""yt-dlp backed implementation of :class:`~ytd_bot.core.protocols.MediaProbe`.

All yt-dlp exceptions are caught here.  ``search`` re-raises them as
:class:`~ytd_bot.exceptions.ResolutionError`; ``title`` and ``formats``
log them and fall back, as their contracts require.  Blocking yt-dlp
calls run in a worker thread so the event loop keeps serving other
users.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ytd_bot.core.models import SearchResultItem, VideoFormat
from ytd_bot.exceptions import (
    EnvironmentError,
    ResolutionError,
    YtdBotError,
    append_ytdlp_upgrade_suggestion,
)
from ytd_bot.utils.logging import YtDlpLogger

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={media_id}"


def watch_url(media_id: str) -> str:
    return WATCH_URL.format(media_id=media_id)


def import_ytdlp() -> Any:
    """Import yt-dlp lazily, mapping its absence to a typed error."""
    try:
        import yt_dlp
        import yt_dlp.utils
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "yt-dlp is not installed. Install with: pip install yt-dlp",
        ) from exc
    return yt_dlp


class YtDlpMediaProbe:
    """Concrete :class:`MediaProbe` backed by the yt-dlp Python API.

    Usage::

        probe = YtDlpMediaProbe(cookies_path=Path("cookies.txt"))
        results = await probe.search("lofi beats")

    This class satisfies the :class:`~ytd_bot.core.protocols.MediaProbe`
    protocol structurally — no explicit inheritance required.
    """

    def __init__(self, *, cookies_path: Path | None = None, max_results: int = 10) -> None:
        self._cookies_path = cookies_path
        self._max_results = max_results

    def _build_opts(self, **extra: Any) -> dict[str, Any]:
        """Return yt-dlp options suitable for metadata-only extraction."""
        opts: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "skip_download": True,
            "logger": YtDlpLogger(),
        }
        if self._cookies_path is not None:
            opts["cookiefile"] = str(self._cookies_path)
        opts.update(extra)
        return opts

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    async def search(self, query: str) -> list[SearchResultItem]:
        """Return up to ``max_results`` videos matching *query*.

        Raises
        ------
        ResolutionError
            When yt-dlp cannot run the search.
        """
        info = await asyncio.to_thread(
            self._extract,
            f"ytsearch{self._max_results}:{query}",
            extract_flat="in_playlist",
        )
        return self._parse_search_entries(info)

    async def title(self, media_id: str) -> str:
        """Return the title of *media_id*, or ``video-<id>`` on any failure."""
        try:
            info = await asyncio.to_thread(self._extract, watch_url(media_id))
        except YtdBotError as exc:
            logger.warning("Could not resolve title for %s: %s", media_id, exc)
            return f"video-{media_id}"
        title = info.get("title")
        if not isinstance(title, str) or not title.strip():
            return f"video-{media_id}"
        return title

    async def formats(self, media_id: str) -> list[VideoFormat]:
        """Return every format yt-dlp reports, or ``[]`` on any failure."""
        try:
            info = await asyncio.to_thread(self._extract, watch_url(media_id))
        except YtdBotError as exc:
            logger.warning("Could not list formats for %s: %s", media_id, exc)
            return []
        return self._parse_formats(self._extract_raw_formats(info))

    # ------------------------------------------------------------------
    # yt-dlp call (runs in a worker thread)
    # ------------------------------------------------------------------

    def _extract(self, target: str, **extra: Any) -> dict[str, Any]:
        yt_dlp = import_ytdlp()
        try:
            with yt_dlp.YoutubeDL(self._build_opts(**extra)) as ydl:
                info: Any = ydl.extract_info(target, download=False)
        except yt_dlp.utils.DownloadError as exc:
            raise ResolutionError(
                str(exc),
                hint=append_ytdlp_upgrade_suggestion(
                    "The video may be private, removed, or geo-restricted.",
                ),
            ) from exc
        except Exception as exc:
            raise ResolutionError(f"Unexpected yt-dlp error: {exc}") from exc

        if not isinstance(info, dict):
            raise ResolutionError("yt-dlp returned no metadata.")
        return dict(info)  # shallow copy, detached from yt-dlp internals

    # ------------------------------------------------------------------
    # Raw-dict → domain-model parsers (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_search_entries(info: dict[str, Any]) -> list[SearchResultItem]:
        entries: object = info.get("entries")
        if not isinstance(entries, list):
            return []

        items: list[SearchResultItem] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            media_id = str(entry["id"])
            raw_duration = entry.get("duration")
            items.append(
                SearchResultItem(
                    id=media_id,
                    title=str(entry.get("title") or f"video-{media_id}"),
                    channel=entry.get("channel") or entry.get("uploader"),
                    duration=int(raw_duration) if raw_duration is not None else None,
                )
            )
        return items

    @staticmethod
    def _extract_raw_formats(info: dict[str, Any]) -> list[dict[str, Any]]:
        """Safely pull the ``formats`` list from a raw info dict."""
        raw: object = info.get("formats")
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict)]

    @staticmethod
    def _parse_single_format(raw: dict[str, Any]) -> VideoFormat:
        """Convert one raw format dict to a :class:`VideoFormat`."""
        raw_size = raw.get("filesize")
        if raw_size is None:
            raw_size = raw.get("filesize_approx")
        filesize: int | None = int(raw_size) if raw_size is not None else None

        height = raw.get("height")
        width = raw.get("width")
        return VideoFormat(
            format_id=str(raw.get("format_id", "")),
            height=height if isinstance(height, int) else None,
            width=width if isinstance(width, int) else None,
            vcodec=str(raw.get("vcodec") or "none"),
            acodec=str(raw.get("acodec") or "none"),
            filesize=filesize,
            format_note=raw.get("format_note"),
            ext=str(raw.get("ext", "")) or None,
        )

    @classmethod
    def _parse_formats(cls, raw_formats: list[dict[str, Any]]) -> list[VideoFormat]:
        return [cls._parse_single_format(entry) for entry in raw_formats]
