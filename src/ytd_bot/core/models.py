"""Domain models for ytd-bot.

Value objects (search results, formats, replies) are **frozen**
dataclasses.  :class:`Session` is the one deliberately mutable record:
it is owned by the flow controller and edited in place on every step of
a user's selection flow.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MediaKind(str, enum.Enum):
    """The two media kinds the pipeline can produce."""

    AUDIO = "audio"
    VIDEO = "video"


class FlowStage(enum.Enum):
    """Position of a user's session in the selection flow."""

    IDLE = "idle"
    SEARCHED = "searched"
    SELECTED = "selected"
    FORMAT_CHOSEN = "format_chosen"


class Outcome(enum.Enum):
    """Machine-readable tag attached to every :class:`Reply`."""

    OK = "ok"
    NO_RESULTS = "no_results"
    INVALID_SELECTION = "invalid_selection"
    EXPIRED = "expired"
    UNAVAILABLE = "unavailable"
    SIZE_EXCEEDED = "size_exceeded"
    FAILED = "failed"
    DELIVERY_FAILED = "delivery_failed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class UserMode(enum.Enum):
    """Modal text-capture states that take priority over searching."""

    AWAITING_FEEDBACK = "awaiting_feedback"
    AWAITING_BROADCAST = "awaiting_broadcast"


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SearchResultItem:
    """One candidate returned by a keyword search."""

    id: str
    """Platform video ID (e.g. ``dQw4w9WgXcQ``)."""

    title: str
    """Human-readable title as returned by the search backend."""

    channel: str | None = None
    """Uploader / channel name, when known."""

    duration: int | None = None
    """Duration in seconds, or ``None`` if unavailable."""


# ---------------------------------------------------------------------------
# Individual format descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class VideoFormat:
    """A single encoding variant reported by the extraction backend.

    ``format_id`` is opaque to this system: it is only ever handed back
    to the transcoder.  A ``height`` of ``0``/``None`` denotes an
    audio-only stream.
    """

    format_id: str
    height: int | None
    width: int | None = None
    vcodec: str | None = None
    acodec: str | None = None
    filesize: int | None = None
    """File size in bytes (exact or approximate), or ``None`` if unknown."""
    format_note: str | None = None
    ext: str | None = None

    @property
    def has_video(self) -> bool:
        return bool(self.height) and self.vcodec != "none"

    @property
    def has_audio(self) -> bool:
        return self.acodec not in (None, "none")


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DownloadResult:
    """Outcome of one pipeline invocation: a file path **xor** an error."""

    file_path: Path | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        if (self.file_path is None) == (self.error is None):
            raise ValueError(
                "DownloadResult requires exactly one of file_path or error",
            )

    @property
    def ok(self) -> bool:
        return self.file_path is not None


# ---------------------------------------------------------------------------
# Per-user session
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Session:
    """In-memory record of one user's selection progress."""

    search_results: list[SearchResultItem] | None = None
    last_search_query: str | None = None
    selected_video_id: str | None = None
    selected_video_title: str | None = None
    video_formats: list[VideoFormat] | None = None
    stage: FlowStage = FlowStage.IDLE

    def select(self, item: SearchResultItem) -> None:
        """Record *item* as the current selection, dropping stale formats."""
        self.selected_video_id = item.id
        self.selected_video_title = item.title
        self.video_formats = None
        self.stage = FlowStage.SELECTED

    def clear_selection(self) -> None:
        """Forget the selection so a stale button cannot replay it."""
        self.selected_video_id = None
        self.selected_video_title = None
        self.video_formats = None
        self.stage = FlowStage.IDLE

    def find_format(self, format_id: str) -> VideoFormat | None:
        for fmt in self.video_formats or ():
            if fmt.format_id == format_id:
                return fmt
        return None


# ---------------------------------------------------------------------------
# User-facing replies
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Button:
    """One inline button: a label and its opaque callback payload."""

    label: str
    data: str


@dataclass(frozen=True, slots=True)
class Reply:
    """Transport-neutral answer produced by every flow operation.

    ``buttons`` is a tuple of rows; each row is a tuple of buttons.
    """

    text: str
    outcome: Outcome = Outcome.OK
    buttons: tuple[tuple[Button, ...], ...] = field(default_factory=tuple)

    @property
    def has_buttons(self) -> bool:
        return len(self.buttons) > 0
