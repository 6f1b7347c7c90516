"""Allow ``python -m ytd_bot`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m ytd_bot`` behaves identically to the ``ytd-bot``
console script.
"""

from __future__ import annotations

from ytd_bot.cli.app import cli

if __name__ == "__main__":
    cli()
