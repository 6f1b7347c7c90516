"""Custom exception hierarchy for ytd-bot.

All exceptions that cross layer boundaries must inherit from
:class:`YtdBotError`.  Raw third-party exceptions (yt-dlp, sqlite3,
ffmpeg subprocess failures) must NEVER propagate beyond the
infrastructure layer — they are caught and re-raised as a typed
subclass defined here.

Hierarchy
---------
YtdBotError
├── ResolutionError
├── EncodingError
├── SizeExceededError
├── SessionExpiredError
├── InvalidSelectionError
├── DeliveryError
├── InvalidCallbackError
├── ConfigurationError
├── FfmpegNotFoundError
└── EnvironmentError
"""

from __future__ import annotations


class YtdBotError(Exception):
    """Base exception for all ytd-bot errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the chat and CLI error boundaries can render a
    clean message without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Media resolution ------------------------------------------------------

class ResolutionError(YtdBotError):
    """Raised when the resolver cannot locate or describe a media item."""


# --- Transcoding -----------------------------------------------------------

class EncodingError(YtdBotError):
    """Raised when a download/transcode step fails to produce a file."""


class SizeExceededError(YtdBotError):
    """Raised when the compression ladder is exhausted above the budget."""

    def __init__(
        self,
        message: str,
        *,
        size_bytes: int,
        budget_bytes: int,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.size_bytes: int = size_bytes
        self.budget_bytes: int = budget_bytes


# --- Session / selection ---------------------------------------------------

class SessionExpiredError(YtdBotError):
    """Raised when a flow step references state a prior step never stored."""


class InvalidSelectionError(YtdBotError):
    """Raised when a result index falls outside the stored search results."""


class InvalidCallbackError(YtdBotError):
    """Raised when callback data does not decode to a known command."""


# --- Delivery --------------------------------------------------------------

class DeliveryError(YtdBotError):
    """Raised when the platform rejects or fails to accept an upload."""


# --- Environment / tooling -------------------------------------------------

class ConfigurationError(YtdBotError):
    """Raised when runtime configuration is missing or malformed."""


class EnvironmentError(YtdBotError):
    """Raised when a required runtime dependency is not available."""


class FfmpegNotFoundError(YtdBotError):
    """Raised when ffmpeg cannot be located on the system PATH."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    pip install --upgrade yt-dlp",
        )
    )
