"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Protocol, TypeVar

from ytd_bot.core.models import MediaKind, SearchResultItem, VideoFormat

K = TypeVar("K")
V = TypeVar("V")

MediaSender = Callable[[Path], Awaitable[None]]
"""Platform-specific upload action invoked by the delivery gate."""

ProgressCallback = Callable[[str], Awaitable[None]]
"""Receives periodic "still working" status text."""


class MediaProbe(Protocol):
    """Contract for the search / metadata backend."""

    async def search(self, query: str) -> Sequence[SearchResultItem]:
        """Return candidates for *query*, best match first.

        An empty sequence is a valid, non-error outcome.

        Raises
        ------
        ResolutionError
            When the backend cannot be queried at all.
        """
        ...  # pragma: no cover

    async def title(self, media_id: str) -> str:
        """Return the title of *media_id*.

        Never raises: implementations return a synthetic
        ``video-<media_id>`` string on internal failure.
        """
        ...  # pragma: no cover

    async def formats(self, media_id: str) -> Sequence[VideoFormat]:
        """Return the encoding variants of *media_id*.

        Returns an empty sequence on internal failure (logged, not
        raised).
        """
        ...  # pragma: no cover


class Transcoder(Protocol):
    """Contract for the download + re-encode backend."""

    async def fetch(
        self,
        media_id: str,
        destination: Path,
        *,
        kind: MediaKind,
        bitrate_kbps: int | None = None,
        format_selector: str | None = None,
    ) -> Path:
        """Download *media_id* and encode it next to *destination*.

        *destination* is the extension-less output stem.  Audio uses
        *bitrate_kbps*; video uses *format_selector*.

        Raises
        ------
        ResolutionError
            When the media item cannot be extracted.
        EncodingError
            When the download or postprocessing step fails.
        """
        ...  # pragma: no cover

    async def recompress(
        self,
        path: Path,
        *,
        bitrate_kbps: int | None = None,
        crf: int | None = None,
        max_height: int | None = None,
    ) -> Path:
        """Re-encode *path* more aggressively and return the new file.

        Returns *path* itself, unchanged, when no valid non-empty output
        could be produced (logged, never raised).
        """
        ...  # pragma: no cover


class KeyedStore(Protocol[K, V]):
    """Minimal keyed state container (``Store<UserId, State>``)."""

    def get(self, key: K) -> V | None: ...  # pragma: no cover

    def set(self, key: K, value: V) -> None: ...  # pragma: no cover

    def delete(self, key: K) -> None: ...  # pragma: no cover


class ActivityLog(Protocol):
    """Write-only sink for user activity records."""

    def record(self, user_id: int, activity_type: str, detail: str = "") -> bool:
        ...  # pragma: no cover
