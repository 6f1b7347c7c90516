"""Pure format filtering, grouping, and sorting logic.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.

Pipeline order (enforced by :func:`select_quality_options`):

1. **Filter** — keep only formats that carry a picture (height > 0).
2. **Group** — one representative per distinct height; the smallest
   known filesize wins.
3. **Sort** — resolution descending.
"""

from __future__ import annotations

from collections.abc import Sequence

from ytd_bot.core.models import VideoFormat


# ---------------------------------------------------------------------------
# 1. Filter
# ---------------------------------------------------------------------------

def filter_video_formats(
    formats: Sequence[VideoFormat],
) -> list[VideoFormat]:
    """Return formats that carry a video stream.

    Audio-only variants (height ``0``/``None`` or ``vcodec == "none"``)
    are never offered as a quality choice.
    """
    return [fmt for fmt in formats if fmt.has_video]


# ---------------------------------------------------------------------------
# 2. Group
# ---------------------------------------------------------------------------

def _size_key(fmt: VideoFormat) -> tuple[int, int]:
    """Known sizes first (ascending), unknown sizes last."""
    if fmt.filesize is None:
        return (1, 0)
    return (0, fmt.filesize)


def group_by_height(
    formats: Sequence[VideoFormat],
) -> dict[int, VideoFormat]:
    """Pick one representative format per distinct height.

    Ties are broken by the smallest estimated filesize; among formats
    with equal (or equally unknown) size the **first** occurrence wins.
    """
    grouped: dict[int, VideoFormat] = {}
    for fmt in formats:
        height = fmt.height or 0
        current = grouped.get(height)
        if current is None or _size_key(fmt) < _size_key(current):
            grouped[height] = fmt
    return grouped


# ---------------------------------------------------------------------------
# 3. Sort
# ---------------------------------------------------------------------------

def sort_by_height(formats: Sequence[VideoFormat]) -> list[VideoFormat]:
    """Sort formats by resolution, highest first."""
    return sorted(formats, key=lambda fmt: -(fmt.height or 0))


# ---------------------------------------------------------------------------
# Composite pipeline
# ---------------------------------------------------------------------------

def select_quality_options(
    formats: Sequence[VideoFormat],
) -> list[VideoFormat]:
    """Run the full filter → group → sort pipeline.

    Returns an empty list when no format with a picture remains.
    """
    filtered = filter_video_formats(formats)
    grouped = group_by_height(filtered)
    return sort_by_height(list(grouped.values()))


def quality_label(fmt: VideoFormat) -> str:
    """Render a format as ``"720p"``."""
    return f"{fmt.height or 0}p"
