"""ffmpeg backed implementation of :class:`~ytd_bot.core.protocols.Transcoder`.

``fetch`` is delegated to :class:`YtDlpFetcher`; ``recompress`` runs
ffmpeg as an asyncio subprocess.  A failed recompression is logged and
answered with the untouched input path, never with an exception.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ytd_bot.core.models import MediaKind
from ytd_bot.infra.ytdlp_download_provider import YtDlpFetcher

logger = logging.getLogger(__name__)

VIDEO_AUDIO_BITRATE = "96k"
_STDERR_TAIL_CHARS = 500


def build_recompress_command(
    ffmpeg: str,
    source: Path,
    output: Path,
    *,
    bitrate_kbps: int | None = None,
    crf: int | None = None,
    max_height: int | None = None,
) -> list[str] | None:
    """Return the ffmpeg argv for one compression pass, or ``None``.

    A ``crf`` selects an H.264/AAC video pass (optionally downscaled to
    *max_height*); otherwise a ``bitrate_kbps`` selects an MP3 pass.
    ``None`` means there is nothing to do.
    """
    base = [ffmpeg, "-y", "-hide_banner", "-loglevel", "error", "-i", str(source)]
    if crf is not None:
        args = base + ["-c:v", "libx264", "-preset", "veryfast", "-crf", str(crf)]
        if max_height is not None:
            args += ["-vf", f"scale=-2:'min({max_height},ih)'"]
        args += ["-c:a", "aac", "-b:a", VIDEO_AUDIO_BITRATE, "-movflags", "+faststart"]
        return args + [str(output)]
    if bitrate_kbps is not None:
        return base + ["-vn", "-c:a", "libmp3lame", "-b:a", f"{bitrate_kbps}k", str(output)]
    return None


def recompress_output_path(
    source: Path,
    *,
    bitrate_kbps: int | None = None,
    crf: int | None = None,
    max_height: int | None = None,
) -> Path:
    """Name the output of a pass after its parameters: ``a.mp3`` → ``a.64k.mp3``."""
    tags: list[str] = []
    if crf is not None:
        tags.append(f"crf{crf}")
    if max_height is not None:
        tags.append(f"{max_height}p")
    if bitrate_kbps is not None:
        tags.append(f"{bitrate_kbps}k")
    return source.with_name(f"{source.stem}.{'-'.join(tags) or 'recoded'}{source.suffix}")


class FfmpegTranscoder:
    """Fetch through yt-dlp, recompress through ffmpeg.

    Parameters
    ----------
    fetcher:
        Performs the initial download and encode.
    ffmpeg_path:
        ffmpeg executable (absolute path or a name resolved on PATH).
    """

    def __init__(self, fetcher: YtDlpFetcher, *, ffmpeg_path: Path | str = "ffmpeg") -> None:
        self._fetcher = fetcher
        self._ffmpeg = str(ffmpeg_path)

    async def fetch(
        self,
        media_id: str,
        destination: Path,
        *,
        kind: MediaKind,
        bitrate_kbps: int | None = None,
        format_selector: str | None = None,
    ) -> Path:
        return await self._fetcher.fetch(
            media_id,
            destination,
            kind=kind,
            bitrate_kbps=bitrate_kbps,
            format_selector=format_selector,
        )

    async def recompress(
        self,
        path: Path,
        *,
        bitrate_kbps: int | None = None,
        crf: int | None = None,
        max_height: int | None = None,
    ) -> Path:
        """Re-encode *path*; return the new file or *path* on failure."""
        output = recompress_output_path(
            path, bitrate_kbps=bitrate_kbps, crf=crf, max_height=max_height,
        )
        cmd = build_recompress_command(
            self._ffmpeg, path, output,
            bitrate_kbps=bitrate_kbps, crf=crf, max_height=max_height,
        )
        if cmd is None:
            logger.warning("No compression parameters given for %s", path.name)
            return path

        logger.info("ffmpeg: %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as exc:
            logger.error("Could not start ffmpeg (%s): %s", self._ffmpeg, exc)
            output.unlink(missing_ok=True)
            return path

        if proc.returncode != 0:
            tail = stderr.decode(errors="replace")[-_STDERR_TAIL_CHARS:].strip()
            logger.error("ffmpeg exited with %s for %s: %s", proc.returncode, path.name, tail)
            output.unlink(missing_ok=True)
            return path

        if not output.is_file() or output.stat().st_size == 0:
            logger.error("ffmpeg produced no usable output for %s", path.name)
            output.unlink(missing_ok=True)
            return path
        return output
