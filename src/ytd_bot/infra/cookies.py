"""Browser cookie export → Netscape ``cookies.txt`` conversion.

yt-dlp reads cookies in the Netscape format; browser extensions usually
export JSON.  Each JSON object needs ``domain``, ``name`` and ``value``;
``path``, ``secure``, ``hostOnly`` and ``expirationDate`` are optional.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from ytd_bot.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NETSCAPE_HEADER = "# Netscape HTTP Cookie File"


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def cookie_to_netscape(cookie: Mapping[str, Any]) -> str:
    """Render one JSON cookie as a tab-separated Netscape line."""
    try:
        domain = str(cookie["domain"])
        name = str(cookie["name"])
        value = str(cookie["value"])
    except KeyError as exc:
        raise ConfigurationError(f"Cookie is missing required field {exc.args[0]!r}") from exc

    expiration = cookie.get("expirationDate")
    expires = int(expiration) if expiration else 0
    include_subdomains = not cookie.get("hostOnly", False)
    return "\t".join(
        (
            domain,
            _flag(include_subdomains),
            str(cookie.get("path") or "/"),
            _flag(bool(cookie.get("secure", False))),
            str(expires),
            name,
            value,
        )
    )


def cookies_to_netscape(cookies: Iterable[Mapping[str, Any]]) -> str:
    lines = [NETSCAPE_HEADER, ""]
    lines.extend(cookie_to_netscape(cookie) for cookie in cookies)
    return "\n".join(lines) + "\n"


def convert_cookies_file(source: Path, destination: Path) -> int:
    """Convert a JSON cookie export at *source* into *destination*.

    Returns the number of cookies written.

    Raises
    ------
    ConfigurationError
        When *source* is unreadable, not JSON, or not a list of cookies.
    """
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read cookies file {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"{source} is not valid JSON: {exc}",
            hint="Export cookies from your browser as a JSON array.",
        ) from exc

    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        raise ConfigurationError(
            f"{source} must contain a JSON array of cookie objects.",
        )

    text = cookies_to_netscape(raw)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8")
    logger.info("Wrote %d cookies to %s", len(raw), destination)
    return len(raw)
