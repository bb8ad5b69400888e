"""CLI package for NewsTracker command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from NewsTracker.cli.runner import CommandRunner
from NewsTracker.cli.ui import cli


def main() -> None:
    """Run the NewsTracker CLI (console script entry point)."""
    cli()
