"""Command runner: logging setup, component lifecycle and error boundary."""

from __future__ import annotations

from typing import Any, Callable

import click

from NewsTracker.cli.commands import CompileCommand, SearchCommand
from NewsTracker.config import AppConfig
from NewsTracker.renderers import create_output_writer
from NewsTracker.services import create_search_service
from NewsTracker.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run_search(self, action: str) -> None:
        """Execute the search command.

        Args:
            action: The CLI command name (e.g., 'search').

        Raises:
            click.Abort: When the search fails.
        """
        self._configure_logging(action)
        try:
            search_service = create_search_service(self.config)
            output_writer = create_output_writer(self.config)
            command = SearchCommand(
                config=self.config,
                search_service=search_service,
                output_writer=output_writer,
            )
            try:
                failed = command.execute()
                output_writer.finalize(action)
            finally:
                search_service.close()
            if failed:
                log.warning("%d of %d queries returned incomplete results", failed, len(self.config.search.queries))
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Search failed: %s", e)
            raise click.Abort from e

    def run_compile(self, action: str, echo: Callable[[str], Any] = click.echo) -> None:
        """Print compiled request bodies; no request is sent.

        Raises:
            click.Abort: When a query cannot be compiled.
        """
        self._configure_logging(action)
        try:
            CompileCommand(config=self.config, echo=echo).execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Compile failed: %s", e)
            raise click.Abort from e

    def _configure_logging(self, action: str) -> None:
        log_path = configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        if log_path is not None:
            log.debug("Logging to %s", log_path)
