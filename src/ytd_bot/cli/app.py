"""CLI application entry point and command routing for ytd-bot.

This module is the **sole process-level error boundary**.  It catches
:class:`~ytd_bot.exceptions.YtdBotError`, ``KeyboardInterrupt``, and any
unexpected ``Exception``, rendering user-friendly messages via Rich and
returning well-defined exit codes.

Sub-commands
------------
* ``ytd-bot run``                          — start the Telegram bot
* ``ytd-bot doctor``                       — environment diagnostics
* ``ytd-bot console [-o DIR]``             — drive the flow in a terminal
* ``ytd-bot convert-cookies SRC DEST``     — JSON → Netscape cookies
* ``ytd-bot --version``
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ytd_bot.cli import exit_codes
from ytd_bot.cli.console import console
from ytd_bot.exceptions import ConfigurationError, YtdBotError
from ytd_bot.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytd-bot",
        description="Telegram bot for searching and downloading YouTube audio and video.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file (default: ./.env when present).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override YTD_BOT_LOG_LEVEL (DEBUG, INFO, WARNING, ...).",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("run", help="Start the Telegram bot (long polling).")
    sub.add_parser("doctor", help="Check the runtime environment.")

    console_parser = sub.add_parser("console", help="Search and download from the terminal.")
    console_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path.cwd(),
        help="Directory that receives finished files (default: current directory).",
    )

    cookies_parser = sub.add_parser(
        "convert-cookies",
        help="Convert a browser JSON cookie export to Netscape format for yt-dlp.",
    )
    cookies_parser.add_argument("source", type=Path, help="JSON cookie export.")
    cookies_parser.add_argument("destination", type=Path, help="Output cookies.txt path.")
    return parser


# ---------------------------------------------------------------------------
# Command dispatch (no business logic)
# ---------------------------------------------------------------------------

def _handle_run(settings) -> int:
    from ytd_bot.bot.application import run_bot

    run_bot(settings)
    return exit_codes.SUCCESS


def _handle_doctor(settings) -> int:
    from ytd_bot.cli.doctor import run_doctor

    return run_doctor(settings)


def _handle_console(settings, output_dir: Path) -> int:
    from ytd_bot.cli.interactive import run_console
    from ytd_bot.factory import build_flow

    return run_console(build_flow(settings), output_dir)


def _handle_convert_cookies(source: Path, destination: Path) -> int:
    from ytd_bot.infra.cookies import convert_cookies_file

    count = convert_cookies_file(source, destination)
    console.print(f"[bold green]Wrote {count} cookies[/bold green] to {destination}")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ytd-bot CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.command == "convert-cookies":
        return _handle_convert_cookies(args.source, args.destination)

    from ytd_bot.config import load_settings
    from ytd_bot.utils.logging import configure_logging

    settings = load_settings(dotenv_path=args.env_file)
    configure_logging(args.log_level.upper() if args.log_level else settings.log_level)

    if args.command == "run":
        return _handle_run(settings)
    if args.command == "doctor":
        return _handle_doctor(settings)
    return _handle_console(settings, args.output)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point."""
    try:
        code = main()
        sys.exit(code)
    except ConfigurationError as exc:
        console.error(exc)
        sys.exit(exit_codes.CONFIGURATION_ERROR)
    except YtdBotError as exc:
        console.error(exc)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
