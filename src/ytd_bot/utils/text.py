"""Small, pure text helpers shared by the core and the chat layer."""

from __future__ import annotations

import re

_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_filename(name: str) -> str:
    """Replace characters that are illegal in file names with ``_``.

    Control characters are dropped and surrounding whitespace and dots
    are stripped, so the result may be empty; callers must supply their
    own fallback in that case.
    """
    cleaned = _CONTROL_CHARS.sub("", name)
    cleaned = _ILLEGAL_FILENAME_CHARS.sub("_", cleaned)
    return cleaned.strip().strip(".").strip()


def escape_html(text: str) -> str:
    """Escape the three characters Telegram's HTML parse mode reserves."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def truncate(text: str, limit: int) -> str:
    """Shorten *text* to at most *limit* characters, marking the cut with ``…``."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"
