"""Output writers for command results (console, JSON)."""

from __future__ import annotations

from NewsTracker.config import AppConfig
from NewsTracker.renderers.base import MultiOutputWriter, OutputWriter
from NewsTracker.renderers.console import ConsoleOutputWriter, render_text
from NewsTracker.renderers.json import JsonFileWriter, render_json


def create_output_writer(config: AppConfig) -> OutputWriter:
    """Create the output writer for the configured formats.

    Raises:
        ValueError: If no known format is configured.
    """
    writers: list[OutputWriter] = []
    if "console" in config.output.formats:
        writers.append(ConsoleOutputWriter())
    if "json" in config.output.formats:
        writers.append(JsonFileWriter(config.output.base_dir))

    if not writers:
        raise ValueError("No output writers configured")
    return MultiOutputWriter(writers)


__all__ = [
    "ConsoleOutputWriter",
    "JsonFileWriter",
    "MultiOutputWriter",
    "OutputWriter",
    "create_output_writer",
    "render_json",
    "render_text",
]
