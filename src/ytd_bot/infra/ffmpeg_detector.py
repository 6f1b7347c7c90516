"""Locate the ffmpeg toolchain used for audio extraction and recompression.

yt-dlp's ``FFmpegExtractAudio`` postprocessor probes its input with
``ffprobe``, and the compression ladder shells out to ``ffmpeg``.  Both
binaries are looked up here: an explicitly configured ffmpeg path first,
otherwise the system PATH.  ``ffprobe`` is expected next to whichever
ffmpeg was chosen.

Nothing is executed; detection only inspects the filesystem.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from ytd_bot.exceptions import FfmpegNotFoundError

_DOWNLOAD_PAGE = "https://ffmpeg.org/download.html"

_INSTALL_COMMANDS: dict[str, tuple[str, ...]] = {
    "windows": ("winget install Gyan.FFmpeg", "choco install ffmpeg"),
    "linux": ("sudo apt install ffmpeg", "sudo dnf install ffmpeg"),
    "darwin": ("brew install ffmpeg",),
}


@dataclass(frozen=True, slots=True)
class FfmpegStatus:
    """Outcome of :func:`detect_ffmpeg`.

    ``install_commands`` is empty whenever ``found`` is true.  ``ffprobe``
    is ``None`` when ffmpeg was found without its companion probe.
    """

    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]
    ffprobe: Path | None = None


def detect_ffmpeg(configured: Path | None = None) -> FfmpegStatus:
    """Find ffmpeg, preferring *configured* over the PATH.

    A configured path that does not exist is reported as missing; the
    PATH is not consulted in that case.
    """
    if configured is not None:
        if not configured.is_file():
            return _missing(f"configured path {configured} does not exist")
        return _located(configured.resolve(), "configured at")

    on_path = shutil.which("ffmpeg")
    if on_path is None:
        return _missing("not found")
    return _located(Path(on_path).resolve(), "found at")


def require_ffmpeg(configured: Path | None = None) -> Path:
    """Return the ffmpeg binary, raising :class:`FfmpegNotFoundError` if absent."""
    status = detect_ffmpeg(configured)
    if status.found and status.path is not None:
        return status.path

    hint = [
        "Install ffmpeg using one of:",
        *(f"  {command}" for command in status.install_commands),
    ]
    if configured is not None:
        hint.append("Or fix YTD_BOT_FFMPEG_PATH.")
    raise FfmpegNotFoundError(
        f"ffmpeg is not available ({status.version_hint}).",
        hint="\n".join(hint),
    )


def _located(ffmpeg: Path, how: str) -> FfmpegStatus:
    return FfmpegStatus(
        found=True,
        path=ffmpeg,
        version_hint=f"{how} {ffmpeg}",
        install_commands=(),
        ffprobe=_companion_probe(ffmpeg),
    )


def _missing(reason: str) -> FfmpegStatus:
    return FfmpegStatus(
        found=False,
        path=None,
        version_hint=reason,
        install_commands=_platform_install_commands(),
    )


def _companion_probe(ffmpeg: Path) -> Path | None:
    """Return the ``ffprobe`` that sits beside *ffmpeg*, if any."""
    probe = ffmpeg.with_name(ffmpeg.name.replace("ffmpeg", "ffprobe", 1))
    if probe != ffmpeg and probe.is_file():
        return probe
    return None


def _platform_install_commands() -> tuple[str, ...]:
    system = platform.system().lower()
    return _INSTALL_COMMANDS.get(system, (f"Please install ffmpeg from {_DOWNLOAD_PAGE}",))
