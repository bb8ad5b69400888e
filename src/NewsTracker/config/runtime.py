"""Logging configuration (``log`` section)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from NewsTracker.config.common import (
    check_non_empty,
    expect_bool,
    expect_str,
    get_required_value,
    get_section,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Logging settings.

    Attributes:
        level: Root level name, upper case.
        to_file: Whether a per-command log file is written.
        dir: Directory holding log files.
    """

    level: str
    to_file: bool
    dir: str


def load_runtime(raw: Mapping[str, Any]) -> RuntimeConfig:
    """Load the ``log`` section.

    Raises:
        TypeError: If a value has the wrong type.
        ValueError: If the section or a key is missing.
    """
    section = get_section(raw, "log", required=True)
    level = expect_str(get_required_value(section, "level", "log.level"), "log.level")
    to_file = expect_bool(get_required_value(section, "to_file", "log.to_file"), "log.to_file")
    log_dir = expect_str(get_required_value(section, "dir", "log.dir"), "log.dir")
    return RuntimeConfig(level=level.strip().upper(), to_file=to_file, dir=log_dir)


def check_runtime(config: RuntimeConfig) -> None:
    if config.level not in _LOG_LEVELS:
        raise ValueError(f"log.level must be one of {list(_LOG_LEVELS)}")
    if config.to_file:
        check_non_empty(config.dir, "log.dir")
