"""Shared pytest fixtures and fakes for the ytd-bot test suite.

Guidelines
----------
* No internet access in any test.
* yt-dlp, ffmpeg and Telegram are faked at the infra boundary.
* Core tests drive the real state machine against in-memory fakes.
* Tests must not depend on OS state.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from ytd_bot.core.models import MediaKind, SearchResultItem, VideoFormat
from ytd_bot.exceptions import ResolutionError


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_item(index: int = 0, **overrides: object) -> SearchResultItem:
    defaults: dict[str, object] = {
        "id": f"vid{index}",
        "title": f"Song {index}",
        "channel": "Channel",
        "duration": 200,
    }
    defaults.update(overrides)
    return SearchResultItem(**defaults)  # type: ignore[arg-type]


def make_format(**overrides: object) -> VideoFormat:
    defaults: dict[str, object] = {
        "format_id": "136",
        "height": 720,
        "width": 1280,
        "vcodec": "avc1.4d401f",
        "acodec": "none",
        "filesize": 20_000_000,
        "ext": "mp4",
    }
    defaults.update(overrides)
    return VideoFormat(**defaults)  # type: ignore[arg-type]


def write_sparse(path: Path, size: int) -> Path:
    """Create *path* with an apparent size of *size* bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fp:
        fp.truncate(size)
    return path


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeProbe:
    """In-memory :class:`MediaProbe`."""

    def __init__(
        self,
        results: Sequence[SearchResultItem] = (),
        formats: Sequence[VideoFormat] = (),
        *,
        title: str = "Song Title",
        search_error: bool = False,
    ) -> None:
        self.results = list(results)
        self.format_list = list(formats)
        self.title_text = title
        self.search_error = search_error
        self.queries: list[str] = []

    async def search(self, query: str) -> list[SearchResultItem]:
        self.queries.append(query)
        if self.search_error:
            raise ResolutionError("search backend down")
        return list(self.results)

    async def title(self, media_id: str) -> str:
        return self.title_text

    async def formats(self, media_id: str) -> list[VideoFormat]:
        return list(self.format_list)


class FakeTranscoder:
    """:class:`Transcoder` that writes sparse files of scripted sizes.

    ``fetch_size`` is the size of the initial file; each recompression
    pops the next size from ``recompress_sizes``.  A ``None`` entry
    simulates a failed pass (the input path is returned unchanged).
    """

    def __init__(
        self,
        fetch_size: int,
        recompress_sizes: Sequence[int | None] = (),
        *,
        fetch_error: Exception | None = None,
    ) -> None:
        self.fetch_size = fetch_size
        self.recompress_sizes = list(recompress_sizes)
        self.fetch_error = fetch_error
        self.fetch_calls: list[dict[str, object]] = []
        self.recompress_calls: list[dict[str, object]] = []

    async def fetch(
        self,
        media_id: str,
        destination: Path,
        *,
        kind: MediaKind,
        bitrate_kbps: int | None = None,
        format_selector: str | None = None,
    ) -> Path:
        self.fetch_calls.append(
            {
                "media_id": media_id,
                "destination": destination,
                "kind": kind,
                "bitrate_kbps": bitrate_kbps,
                "format_selector": format_selector,
            }
        )
        ext = "mp3" if kind is MediaKind.AUDIO else "mp4"
        if self.fetch_error is not None:
            write_sparse(destination.with_name(f"{destination.name}.{ext}.part"), 10)
            raise self.fetch_error
        return write_sparse(destination.with_name(f"{destination.name}.{ext}"), self.fetch_size)

    async def recompress(
        self,
        path: Path,
        *,
        bitrate_kbps: int | None = None,
        crf: int | None = None,
        max_height: int | None = None,
    ) -> Path:
        step = len(self.recompress_calls) + 1
        self.recompress_calls.append(
            {"bitrate_kbps": bitrate_kbps, "crf": crf, "max_height": max_height}
        )
        size = self.recompress_sizes.pop(0) if self.recompress_sizes else None
        if size is None:
            return path
        return write_sparse(path.with_name(f"{path.stem}.pass{step}{path.suffix}"), size)


class RecordingActivity:
    """:class:`ActivityLog` that keeps every record in a list."""

    def __init__(self) -> None:
        self.entries: list[tuple[int, str, str]] = []

    def record(self, user_id: int, activity_type: str, detail: str = "") -> bool:
        self.entries.append((user_id, activity_type, detail))
        return True

    @property
    def types(self) -> list[str]:
        return [entry[1] for entry in self.entries]


async def no_sleep(_seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def downloads_dir(tmp_path: Path) -> Path:
    return tmp_path / "downloads"
