"""ytd-bot — Telegram front-end for searching and downloading YouTube media.

Built on the yt-dlp Python API and ffmpeg with a strict layered
architecture.
"""

from ytd_bot.version import __version__

__all__: list[str] = ["__version__"]
