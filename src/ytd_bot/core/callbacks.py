"""Inline-button payload encoding and decoding.

Callback data is an opaque string of at most 64 bytes.  It is decoded
exactly once, at the transport boundary, into one of a closed set of
command variants; nothing downstream re-parses strings.

Wire format
-----------
``select:<index>``
    Pick the search result at ``index``.
``format:audio`` / ``format:video``
    Choose the media kind for the current selection.
``quality:<format_id>:<label>``
    Choose a video variant; ``format_id`` may be the sentinel ``best``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ytd_bot.core.models import MediaKind
from ytd_bot.exceptions import InvalidCallbackError

BEST_SELECTOR = "best"
"""Sentinel selector meaning "let the resolver choose"."""

_MAX_CALLBACK_BYTES = 64


@dataclass(frozen=True, slots=True)
class SelectResult:
    index: int


@dataclass(frozen=True, slots=True)
class ChooseFormat:
    kind: MediaKind


@dataclass(frozen=True, slots=True)
class ChooseQuality:
    selector: str
    label: str


CallbackCommand = Union[SelectResult, ChooseFormat, ChooseQuality]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def encode_select(index: int) -> str:
    return f"select:{index}"


def encode_format(kind: MediaKind) -> str:
    return f"format:{kind.value}"


def encode_quality(selector: str, label: str) -> str:
    """Encode a quality choice, trimming the label to fit the payload limit."""
    data = f"quality:{selector}:{label}"
    while len(data.encode("utf-8")) > _MAX_CALLBACK_BYTES and label:
        label = label[:-1]
        data = f"quality:{selector}:{label}"
    return data


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def parse_callback(data: str) -> CallbackCommand:
    """Decode *data* into a command variant.

    Raises
    ------
    InvalidCallbackError
        When *data* does not match any known command.
    """
    prefix, sep, rest = data.partition(":")
    if not sep:
        raise InvalidCallbackError(f"Malformed callback data: {data!r}")

    if prefix == "select":
        if not (rest.isascii() and rest.isdigit()):
            raise InvalidCallbackError(f"Invalid result index: {rest!r}")
        return SelectResult(index=int(rest))

    if prefix == "format":
        try:
            return ChooseFormat(kind=MediaKind(rest))
        except ValueError as exc:
            raise InvalidCallbackError(f"Unknown media kind: {rest!r}") from exc

    if prefix == "quality":
        selector, _, label = rest.partition(":")
        if not selector:
            raise InvalidCallbackError(f"Missing format selector: {data!r}")
        return ChooseQuality(selector=selector, label=label or selector)

    raise InvalidCallbackError(f"Unknown callback command: {prefix!r}")
