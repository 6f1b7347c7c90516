"""Size-budget pipeline — fetch, measure, and re-encode until it fits.

The pipeline resolves a title, asks the :class:`Transcoder` for an
initial file, and walks a fixed compression ladder until the file is at
or under the budget.  It never returns an oversized file: exhausting the
ladder is reported as :class:`~ytd_bot.exceptions.SizeExceededError`.

Guarantees
----------
* The ladder is finite; each rung is attempted exactly once.
* A rung's output replaces the previous file only when it exists and is
  non-empty.
* Every file the pipeline created is gone when it reports a failure.
* Only :class:`~ytd_bot.exceptions.YtdBotError` subclasses end up in
  :attr:`DownloadResult.error`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from ytd_bot.core.callbacks import BEST_SELECTOR
from ytd_bot.core.models import DownloadResult, MediaKind, VideoFormat
from ytd_bot.core.protocols import MediaProbe, Transcoder
from ytd_bot.exceptions import EncodingError, SizeExceededError, YtdBotError
from ytd_bot.utils.text import sanitize_filename

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
DEFAULT_BUDGET_BYTES = 49 * MIB
"""One unit below Telegram's 50 MB bot upload cap."""

INITIAL_AUDIO_BITRATE_KBPS = 128
VIDEO_HEIGHT_CEILING = 720
_MAX_STEM_CHARS = 120


# ---------------------------------------------------------------------------
# Ladder definition
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Rung:
    """One re-encoding attempt on the compression ladder."""

    bitrate_kbps: int | None = None
    crf: int | None = None
    max_height: int | None = None

    def describe(self) -> str:
        parts: list[str] = []
        if self.bitrate_kbps is not None:
            parts.append(f"{self.bitrate_kbps}k")
        if self.crf is not None:
            parts.append(f"crf {self.crf}")
        if self.max_height is not None:
            parts.append(f"{self.max_height}p")
        return " @ ".join(parts) or "default"


AUDIO_LADDER: tuple[Rung, ...] = (
    Rung(bitrate_kbps=64),
    Rung(bitrate_kbps=48),
    Rung(bitrate_kbps=32),
)

VIDEO_LADDER: tuple[Rung, ...] = (
    Rung(crf=28),
    Rung(crf=32),
    Rung(crf=35, max_height=480),
)


# ---------------------------------------------------------------------------
# Format selector construction (pure)
# ---------------------------------------------------------------------------

def build_video_selector(selector: str, fmt: VideoFormat | None = None) -> str:
    """Build the yt-dlp format string for a video request.

    Rules
    -----
    * The ``best`` sentinel picks the best stream at or below 720p,
      preferring mp4, with an unbounded fallback.
    * A format that already carries audio is used as-is.
    * ``mp4`` video prefers ``m4a`` audio, with mp4 fallback.
    * ``webm`` video prefers ``webm`` audio, with webm/best fallback.
    * Unknown containers fall back to generic ``bestaudio/best``.
    """
    if selector == BEST_SELECTOR:
        ceiling = VIDEO_HEIGHT_CEILING
        return f"best[height<={ceiling}][ext=mp4]/best[height<={ceiling}]/best"
    if fmt is not None and fmt.has_audio:
        return selector

    ext = (fmt.ext or "").lower() if fmt is not None else ""
    if ext == "mp4":
        return f"{selector}+bestaudio[ext=m4a]/best[ext=mp4]"
    if ext == "webm":
        return f"{selector}+bestaudio[ext=webm]/best[ext=webm]/best"
    return f"{selector}+bestaudio/best"


def output_stem(title: str, media_id: str, request_id: str) -> str:
    """Return the extension-less file name for one request.

    The request id suffix keeps concurrent downloads of the same title
    apart in the shared downloads directory.
    """
    base = sanitize_filename(title)[:_MAX_STEM_CHARS].rstrip()
    if not base:
        base = f"video-{media_id}"
    return f"{base}-{request_id}"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class SizeBudgetPipeline:
    """Produce a local media file no larger than *budget_bytes*.

    Parameters
    ----------
    probe:
        Source of the media title.
    transcoder:
        Performs the initial fetch and every recompression pass.
    downloads_dir:
        Shared output directory; created on first use.
    budget_bytes:
        Inclusive size ceiling.
    """

    def __init__(
        self,
        probe: MediaProbe,
        transcoder: Transcoder,
        downloads_dir: Path,
        *,
        budget_bytes: int = DEFAULT_BUDGET_BYTES,
        audio_ladder: tuple[Rung, ...] = AUDIO_LADDER,
        video_ladder: tuple[Rung, ...] = VIDEO_LADDER,
    ) -> None:
        self._probe = probe
        self._transcoder = transcoder
        self._downloads_dir = downloads_dir
        self._budget = budget_bytes
        self._ladders: dict[MediaKind, tuple[Rung, ...]] = {
            MediaKind.AUDIO: audio_ladder,
            MediaKind.VIDEO: video_ladder,
        }

    @property
    def budget_bytes(self) -> int:
        return self._budget

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        media_id: str,
        kind: MediaKind,
        *,
        format_selector: str | None = None,
        format_hint: VideoFormat | None = None,
    ) -> DownloadResult:
        """Fetch *media_id* as *kind* and fit it under the budget.

        Typed failures are returned in :attr:`DownloadResult.error`;
        anything else propagates to the caller's error boundary.
        """
        request_id = uuid.uuid4().hex[:8]
        try:
            path = await self._produce(
                media_id, kind, request_id, format_selector, format_hint,
            )
        except YtdBotError as exc:
            logger.warning(
                "Pipeline for %s (%s, request %s) failed: %s",
                media_id, kind.value, request_id, exc,
            )
            return DownloadResult(error=exc)
        return DownloadResult(file_path=path)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _produce(
        self,
        media_id: str,
        kind: MediaKind,
        request_id: str,
        format_selector: str | None,
        format_hint: VideoFormat | None,
    ) -> Path:
        title = await self._probe.title(media_id)
        self._downloads_dir.mkdir(parents=True, exist_ok=True)
        destination = self._downloads_dir / output_stem(title, media_id, request_id)

        try:
            if kind is MediaKind.AUDIO:
                path = await self._transcoder.fetch(
                    media_id,
                    destination,
                    kind=kind,
                    bitrate_kbps=INITIAL_AUDIO_BITRATE_KBPS,
                )
            else:
                path = await self._transcoder.fetch(
                    media_id,
                    destination,
                    kind=kind,
                    format_selector=build_video_selector(
                        format_selector or BEST_SELECTOR, format_hint,
                    ),
                )
        except BaseException:
            self._discard_partials(destination)
            raise

        if not self._usable(path):
            self._discard_partials(destination)
            raise EncodingError(
                f"Transcoder reported {path.name} but produced no usable file.",
            )

        logger.info("Fetched %s (%s) to %s", media_id, kind.value, path.name)
        return await self._fit(path, self._ladders[kind], destination)

    async def _fit(self, path: Path, ladder: tuple[Rung, ...], destination: Path) -> Path:
        """Walk *ladder* until *path* fits, replacing it rung by rung."""
        try:
            size = self._size_of(path)
            if size <= self._budget:
                return path

            for step, rung in enumerate(ladder, start=1):
                logger.info(
                    "%s is %.2f MiB (budget %.2f MiB); rung %d/%d: %s",
                    path.name, size / MIB, self._budget / MIB,
                    step, len(ladder), rung.describe(),
                )
                candidate = await self._transcoder.recompress(
                    path,
                    bitrate_kbps=rung.bitrate_kbps,
                    crf=rung.crf,
                    max_height=rung.max_height,
                )
                path = self._adopt(path, candidate)
                size = self._size_of(path)
                if size <= self._budget:
                    return path
        except BaseException:
            self._remove(path)
            self._discard_partials(destination)
            raise

        self._remove(path)
        raise SizeExceededError(
            f"File is {size / MIB:.1f} MiB after {len(ladder)} compression passes "
            f"(limit {self._budget / MIB:.0f} MiB).",
            size_bytes=size,
            budget_bytes=self._budget,
            hint="Try a shorter video or a lower quality.",
        )

    def _adopt(self, previous: Path, candidate: Path) -> Path:
        """Return the file to continue with after one rung."""
        if candidate == previous:
            logger.warning("Compression produced no new output; keeping %s", previous.name)
            return previous
        if not self._usable(candidate):
            logger.warning("Compression output %s is missing or empty; keeping %s",
                           candidate.name, previous.name)
            self._remove(candidate)
            return previous
        self._remove(previous)
        return candidate

    # ------------------------------------------------------------------
    # Filesystem helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _size_of(path: Path) -> int:
        return path.stat().st_size

    @staticmethod
    def _usable(path: Path) -> bool:
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove %s", path, exc_info=True)

    def _discard_partials(self, destination: Path) -> None:
        """Delete anything the transcoder left behind for *destination*."""
        if not destination.parent.is_dir():
            return
        for leftover in destination.parent.iterdir():
            if leftover.name.startswith(destination.name):
                self._remove(leftover)
