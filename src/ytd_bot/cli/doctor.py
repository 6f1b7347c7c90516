"""``ytd-bot doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment can run the bot: interpreter, yt-dlp,
python-telegram-bot, ffmpeg, and the configured token and cookies.
"""

from __future__ import annotations

import platform
import sys

from ytd_bot.cli import exit_codes
from ytd_bot.cli.console import console
from ytd_bot.config import Settings
from ytd_bot.infra.ffmpeg_detector import detect_ffmpeg
from ytd_bot.version import __version__

OK = "[green]OK[/green]"
WARN = "[yellow]WARN[/yellow]"
FAIL = "[red]FAIL[/red]"

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> Check:
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    return "Python", version, OK if ok else "[red]FAIL (>=3.10 required)[/red]"


def _ytdlp_version_check() -> Check:
    try:
        from yt_dlp.version import __version__ as ydl_ver
    except ImportError:
        return "yt-dlp", "NOT INSTALLED", FAIL
    return "yt-dlp", ydl_ver, OK


def _telegram_version_check() -> Check:
    try:
        import telegram
    except ImportError:
        return "python-telegram-bot", "NOT INSTALLED", FAIL
    return "python-telegram-bot", str(telegram.__version__), OK


def _ffmpeg_check(settings: Settings) -> Check:
    status = detect_ffmpeg(settings.ffmpeg_path)
    if status.found:
        if status.ffprobe is None:
            return "ffmpeg", f"{status.path} (ffprobe missing)", WARN
        return "ffmpeg", str(status.path), OK
    # The bot cannot download anything without ffmpeg.
    return "ffmpeg", status.version_hint, FAIL


def _token_check(settings: Settings) -> Check:
    if settings.bot_token:
        return "Bot token", "configured", OK
    return "Bot token", "TELEGRAM_BOT_TOKEN not set", FAIL


def _admin_check(settings: Settings) -> Check:
    if settings.admin_id:
        return "Admin", str(settings.admin_id), OK
    return "Admin", "ADMIN_ID not set", WARN


def _cookies_check(settings: Settings) -> Check:
    path = settings.cookies_path
    if path is None:
        return "Cookies", "not configured", OK
    if path.is_file():
        return "Cookies", str(path), OK
    return "Cookies", f"{path} missing", FAIL


def _os_check() -> Check:
    system_raw = platform.system()
    system_display = {"Darwin": "macOS"}.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, OK


def collect_checks(settings: Settings) -> list[Check]:
    return [
        ("ytd-bot", __version__, OK),
        _python_version_check(),
        _ytdlp_version_check(),
        _telegram_version_check(),
        _ffmpeg_check(settings),
        _token_check(settings),
        _admin_check(settings),
        _cookies_check(settings),
        _os_check(),
    ]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(settings: Settings) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check fails,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    checks = collect_checks(settings)
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        for label, value, status in checks:
            console.print(f"{label:<20} {value:<40} {status}")
    else:
        table = Table(
            title="ytd-bot doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, value, status)
        console.print()
        console.print(table)
        console.print()

    ffmpeg_status = detect_ffmpeg(settings.ffmpeg_path)
    if not ffmpeg_status.found and ffmpeg_status.install_commands:
        console.print("[yellow]ffmpeg is not installed.[/yellow]")
        console.print("Install using one of the following commands:\n")
        for cmd in ffmpeg_status.install_commands:
            console.print(f"  [bold]{cmd}[/bold]")
        console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR
    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
